#!/usr/bin/env python3
"""
Fetch Mapillary image metadata around a point and print it (or append JSONL).

Examples:
  export MAPILLARY_ACCESS_TOKEN='MLY|...'
  python scripts/fetch_nearby_images.py --lat -29.378889 --lon -50.876111
  python scripts/fetch_nearby_images.py --lat 48.8584 --lon 2.2945 --radius 0.002 \
      --limit 20 --out data/mapillary/eiffel.jsonl
"""

import argparse
import json
import os
import sys
from pathlib import Path

import requests

# Add the project root to the path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.config import MapillaryConfig, load_params
from common.logging_setup import get_logger
from common.utils import timer_ms
from imagery.mapillary import DEFAULT_LIMIT, DEFAULT_RADIUS_DEG, MapillaryService, RemoteServiceError

log = get_logger("fetch_nearby_images")


def parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    ap.add_argument("--lat", type=float, required=True, help="Center latitude (deg)")
    ap.add_argument("--lon", type=float, required=True, help="Center longitude (deg)")
    ap.add_argument("--radius", type=float, default=DEFAULT_RADIUS_DEG, help="Half-width of the box (deg)")
    ap.add_argument("--limit", type=int, default=DEFAULT_LIMIT, help="Max images returned")
    ap.add_argument("--params", default=None, help="params.yaml path (default config/params.yaml)")
    ap.add_argument("--out", default=None, help="Append results as JSONL to this file")
    return ap.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    svc = MapillaryService(MapillaryConfig.from_params(load_params(args.params)))
    if not svc.get_access_token():
        log.warning("No Mapillary token set (MAPILLARY_ACCESS_TOKEN); the API will reject the request")

    fetch = timer_ms(svc.fetch_nearby_features)
    try:
        features, latency_ms = fetch(args.lat, args.lon, radius=args.radius, limit=args.limit)
    except RemoteServiceError as e:
        print(f"Mapillary rejected the request: {e.status_code} {e.body}", file=sys.stderr)
        return 2
    except requests.RequestException as e:
        print(f"Mapillary unreachable: {e}", file=sys.stderr)
        return 3

    log.info("fetched %d images in %.0f ms", len(features), latency_ms)

    if args.out:
        out = Path(args.out)
        out.parent.mkdir(parents=True, exist_ok=True)
        with out.open("a", buffering=1) as f:
            for feat in features:
                f.write(json.dumps(feat.to_dict()) + "\n")
        print(f"Wrote {len(features)} images to {out}")
    else:
        for feat in features:
            print(f"{feat.id}\t{feat.lat}\t{feat.lon}\t{feat.captured_iso}\tseq={feat.sequence}")
        print(f"{len(features)} images ({latency_ms:.0f} ms)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
