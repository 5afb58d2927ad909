from __future__ import annotations

"""
Mapillary Graph API adapter: nearby street-level image metadata.

One GET per call against `/images` with a bounding box around a point. No
caching, no retry and, unless the config sets one, no timeout. Every failure
is logged once here and re-raised to the caller.

Usage:
    svc = MapillaryService(MapillaryConfig.from_env())
    for item in svc.fetch_nearby_images(-29.378889, -50.876111):
        # item -> {"id": ..., "geometry": {...}, "sequence": ..., "captured_at": ..., "creator_id": ...}
        pass
"""

import logging
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlencode

import requests

from common.config import MapillaryConfig
from common.geo import haversine_m
from common.types import BoundingBox, ImageFeature, features_from_payload


log = logging.getLogger(__name__)

DEFAULT_RADIUS_DEG = 0.005  # ~550 m of latitude
DEFAULT_LIMIT = 100


class RemoteServiceError(Exception):
    """Non-2xx answer from the Graph API."""

    def __init__(self, status_code: int, body: str):
        self.status_code = int(status_code)
        self.body = body
        super().__init__(f"Mapillary API Error: {self.status_code} {body}")


class MapillaryService:
    def __init__(self, config: Optional[MapillaryConfig] = None, session: Optional[requests.Session] = None):
        """
        Params:
            config: credential and endpoint settings (defaults to MapillaryConfig.from_env())
            session: optional requests.Session for connection reuse
        """
        self.config = config or MapillaryConfig.from_env()
        self.images_url = f"{self.config.base_url.rstrip('/')}/images"
        self.session = session or requests.Session()

    # ----------------------------
    # Public API
    # ----------------------------
    def get_access_token(self) -> str:
        """Raw configured credential, for consumers that talk to Mapillary directly (e.g. a viewer)."""
        return self.config.access_token

    def build_url(
        self,
        lat: float,
        lng: float,
        radius: float = DEFAULT_RADIUS_DEG,
        limit: int = DEFAULT_LIMIT,
    ) -> str:
        """
        Construct the `/images` query URL (no request performed).
        """
        bbox = BoundingBox.around(lat, lng, radius)
        params = {
            "fields": ",".join(self.config.fields),
            "bbox": bbox.to_param(),
            "limit": int(limit),
            "access_token": self.config.access_token,
        }
        # tokens look like "MLY|<app>|<secret>"; keep separators readable
        return f"{self.images_url}?{urlencode(params, safe=',|')}"

    def fetch_nearby_images(
        self,
        lat: float,
        lng: float,
        radius: float = DEFAULT_RADIUS_DEG,
        limit: int = DEFAULT_LIMIT,
    ) -> List[Dict[str, Any]]:
        """
        Images inside the box lng +/- radius, lat +/- radius (degrees).

        Returns the response's `data` array, or [] when the field is absent.
        Raises RemoteServiceError on a non-2xx status; transport and JSON
        errors propagate unchanged.
        """
        url = self.build_url(lat, lng, radius=radius, limit=limit)
        try:
            r = self.session.get(url, timeout=self.config.timeout_s)
            if not 200 <= r.status_code < 300:
                raise RemoteServiceError(r.status_code, r.text)
            payload = r.json()
            data = payload.get("data") if isinstance(payload, dict) else None
            return list(data or [])
        except Exception as e:
            log.exception(
                "Error fetching Mapillary images: %s",
                e,
                extra={"ctx": {"lat": lat, "lng": lng, "radius": radius, "limit": limit}},
            )
            raise

    def fetch_nearby_features(
        self,
        lat: float,
        lng: float,
        radius: float = DEFAULT_RADIUS_DEG,
        limit: int = DEFAULT_LIMIT,
    ) -> List[ImageFeature]:
        """Same query as fetch_nearby_images(), entries parsed into ImageFeature."""
        return features_from_payload(self.fetch_nearby_images(lat, lng, radius=radius, limit=limit))


def nearest_feature(features: Iterable[ImageFeature], lat: float, lng: float) -> Optional[ImageFeature]:
    """Closest feature with a point geometry, by great-circle distance."""
    best: Optional[ImageFeature] = None
    best_d = float("inf")
    for f in features:
        c = f.coordinates
        if c is None:
            continue
        d = haversine_m(lat, lng, c[1], c[0])
        if d < best_d:
            best, best_d = f, d
    return best
