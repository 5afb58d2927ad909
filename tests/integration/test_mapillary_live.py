#!/usr/bin/env python3
"""
Live check against graph.mapillary.com (skipped without MAPILLARY_ACCESS_TOKEN)
"""

import os
import sys

import pytest

# Add the project root to Python path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.config import MapillaryConfig
from common.types import BoundingBox
from imagery.mapillary import MapillaryService

pytestmark = pytest.mark.skipif(
    not os.getenv("MAPILLARY_ACCESS_TOKEN"), reason="MAPILLARY_ACCESS_TOKEN not set"
)


def test_fetch_around_gramado():
    svc = MapillaryService(MapillaryConfig(access_token=os.environ["MAPILLARY_ACCESS_TOKEN"], timeout_s=30))
    box = BoundingBox.around(-29.378889, -50.876111, 0.005)
    feats = svc.fetch_nearby_features(-29.378889, -50.876111, radius=0.005, limit=5)

    assert len(feats) <= 5
    for f in feats:
        assert f.id
        assert box.contains(f.lat, f.lon)
