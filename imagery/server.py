from __future__ import annotations

import logging
from typing import Dict, Optional

import requests
import uvicorn
from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from common.config import MapillaryConfig, WalkerConfig, load_params
from common.geo import haversine_m, initial_bearing_deg
from common.logging_setup import setup_logging
from common.types import PositionState
from imagery.mapillary import (
    DEFAULT_LIMIT,
    DEFAULT_RADIUS_DEG,
    MapillaryService,
    RemoteServiceError,
    nearest_feature,
)
from walker.position import WalkerPositionStore


P = load_params()
setup_logging(P.get("logging", {}).get("level"))
log = logging.getLogger(__name__)

# Instances
mly = MapillaryService(MapillaryConfig.from_params(P))
store = WalkerPositionStore.from_config(WalkerConfig.from_params(P))

app = FastAPI(title="Street Walker API", version="0.1.0")

# (Optional) CORS for a browser viewer
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # tighten as needed
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _upstream_error(e: Exception) -> JSONResponse:
    if isinstance(e, RemoteServiceError):
        return JSONResponse(
            {"error": "mapillary_error", "status": e.status_code, "detail": e.body},
            status_code=502,
        )
    if isinstance(e, requests.RequestException):
        return JSONResponse({"error": "mapillary_unreachable", "detail": str(e)}, status_code=502)
    return JSONResponse({"error": "mapillary_bad_response", "detail": str(e)}, status_code=502)


def _walker_body(s: PositionState) -> Dict:
    return s.to_dict()


@app.get("/health")
def health():
    return {
        "status": "ok",
        "mapillary": {
            "base_url": mly.config.base_url,
            "token_configured": bool(mly.get_access_token()),
        },
        "walker": _walker_body(store.snapshot()),
    }


@app.get("/token")
def token():
    """Raw access token for a client-side viewer."""
    return {"access_token": mly.get_access_token()}


@app.get("/images/nearby")
def images_nearby(
    lat: float = Query(...),
    lon: float = Query(...),
    radius: float = Query(DEFAULT_RADIUS_DEG, gt=0),
    limit: int = Query(DEFAULT_LIMIT, gt=0),
):
    try:
        data = mly.fetch_nearby_images(lat, lon, radius=radius, limit=limit)
    except (RemoteServiceError, requests.RequestException, ValueError) as e:
        return _upstream_error(e)
    return {"count": len(data), "data": data}


@app.get("/walker")
def walker_state():
    return _walker_body(store.snapshot())


@app.post("/walker/move")
def walker_move(direction: str = Query(...)):
    try:
        s = store.move(direction)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _walker_body(s)


@app.post("/walker/jump")
def walker_jump(image_id: str = Query(...), lat: float = Query(...), lon: float = Query(...)):
    return _walker_body(store.jump_to(image_id, lat=lat, lng=lon))


@app.post("/walker/reset")
def walker_reset():
    return _walker_body(store.reset())


@app.get("/walker/images")
def walker_images(
    radius: float = Query(DEFAULT_RADIUS_DEG, gt=0),
    limit: int = Query(DEFAULT_LIMIT, gt=0),
):
    """
    Images around the walker's current position, plus the closest one with
    its distance (m) and bearing (deg) from the walker.
    """
    s = store.snapshot()
    try:
        features = mly.fetch_nearby_features(s.lat, s.lng, radius=radius, limit=limit)
    except (RemoteServiceError, requests.RequestException, ValueError) as e:
        return _upstream_error(e)

    nearest: Optional[Dict] = None
    best = nearest_feature(features, s.lat, s.lng)
    if best is not None:
        nearest = {
            "image": best.to_dict(),
            "distance_m": haversine_m(s.lat, s.lng, best.lat, best.lon),
            "bearing_deg": initial_bearing_deg(s.lat, s.lng, best.lat, best.lon),
        }
    return {
        "walker": _walker_body(s),
        "count": len(features),
        "data": [f.to_dict() for f in features],
        "nearest": nearest,
    }


# -------- local dev entrypoint --------
if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
