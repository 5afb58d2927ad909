from __future__ import annotations

from typing import Tuple
import math

from common.utils import clamp


# mean Earth radius (m), sphere approximation
_EARTH_R_M = 6371008.8

LAT_LIMIT = 90.0
LON_LIMIT = 180.0


# -------------------------
# Great-circle & bearings
# -------------------------
def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine great-circle distance on a spherical Earth (meters)."""
    p1 = math.radians(lat1)
    p2 = math.radians(lat2)
    dphi = p2 - p1
    dl = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2.0) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2.0) ** 2
    return 2 * _EARTH_R_M * math.asin(math.sqrt(min(1.0, a)))


def initial_bearing_deg(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial great-circle bearing from point 1 to point 2 (degrees, 0..360)."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dl = math.radians(lon2 - lon1)
    y = math.sin(dl) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dl)
    b = math.degrees(math.atan2(y, x))
    return (b + 360.0) % 360.0


# -------------------------
# Planar dead reckoning
# -------------------------
def planar_step(bearing_deg: float, step_deg: float) -> Tuple[float, float]:
    """
    (dlat, dlng) for a step of `step_deg` degrees along `bearing_deg`.

    Flat-plane approximation: 0 deg is +lat, 90 deg is +lng, and no
    cos(lat) correction is applied to the longitude delta.
    """
    rad = math.radians(bearing_deg)
    return (math.cos(rad) * step_deg, math.sin(rad) * step_deg)


def wrap_bearing(bearing_deg: float) -> float:
    """Bearing folded into [0, 360)."""
    return bearing_deg % 360.0


def clamp_lat(lat: float) -> float:
    return clamp(lat, -LAT_LIMIT, LAT_LIMIT)


def wrap_lon(lon: float) -> float:
    """Longitude folded into [-180, 180)."""
    return ((lon + LON_LIMIT) % 360.0) - LON_LIMIT
