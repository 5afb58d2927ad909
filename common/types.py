from __future__ import annotations

from dataclasses import dataclass, field, asdict, replace
from typing import Optional, Tuple, Any, Dict, List
from datetime import datetime, timezone


IsoTime = str

IMAGE_FIELDS: Tuple[str, ...] = ("id", "geometry", "sequence", "captured_at", "creator_id")


def ms_to_iso(ms: Optional[int]) -> Optional[IsoTime]:
    """Epoch milliseconds -> ISO-8601 UTC with 'Z' suffix (None passes through)."""
    if ms is None:
        return None
    dt = datetime.fromtimestamp(int(ms) / 1000.0, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """
    Axis-aligned lon/lat box in degrees, in the order the Graph API expects
    (west, south, east, north).

    No clamping and no antimeridian wraparound: a box built near +/-180 or the
    poles keeps out-of-range edges.
    """
    west: float
    south: float
    east: float
    north: float

    @classmethod
    def around(cls, lat: float, lng: float, radius: float) -> "BoundingBox":
        """Square box of half-width `radius` (degrees, not meters) centered on (lat, lng)."""
        return cls(
            west=lng - radius,
            south=lat - radius,
            east=lng + radius,
            north=lat + radius,
        )

    def to_param(self) -> str:
        return f"{self.west},{self.south},{self.east},{self.north}"

    def contains(self, lat: float, lng: float) -> bool:
        return self.south <= lat <= self.north and self.west <= lng <= self.east


@dataclass(frozen=True, slots=True)
class ImageFeature:
    """
    One image record returned by the Mapillary Graph API `/images` endpoint.

    Attributes:
        id: image key assigned by Mapillary.
        geometry: GeoJSON point, {"type": "Point", "coordinates": [lon, lat]}.
        sequence: id of the capture sequence the image belongs to.
        captured_at: capture time, epoch milliseconds.
        creator_id: id of the uploading account.
    """
    id: str
    geometry: Dict[str, Any] = field(default_factory=dict)
    sequence: Optional[str] = None
    captured_at: Optional[int] = None
    creator_id: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ImageFeature":
        if "id" not in d:
            raise ValueError("image feature without 'id'")
        captured = d.get("captured_at")
        return cls(
            id=str(d["id"]),
            geometry=dict(d.get("geometry") or {}),
            sequence=d.get("sequence"),
            captured_at=int(captured) if captured is not None else None,
            creator_id=d.get("creator_id"),
        )

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        """(lon, lat) or None when the geometry carries no point."""
        coords = self.geometry.get("coordinates")
        if not coords or len(coords) < 2:
            return None
        return (float(coords[0]), float(coords[1]))

    @property
    def lat(self) -> Optional[float]:
        c = self.coordinates
        return None if c is None else c[1]

    @property
    def lon(self) -> Optional[float]:
        c = self.coordinates
        return None if c is None else c[0]

    @property
    def captured_iso(self) -> Optional[IsoTime]:
        return ms_to_iso(self.captured_at)

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape, as the API returned it."""
        return asdict(self)


def features_from_payload(items: List[Dict[str, Any]]) -> List[ImageFeature]:
    return [ImageFeature.from_dict(it) for it in items]


@dataclass(frozen=True, slots=True)
class PositionState:
    """
    Walker pose on the map.

    Attributes:
        lat, lng: degrees; not range-checked.
        bearing: degrees, 0 = north (+lat), 90 = east (+lng); not wrapped.
        target_image_id: image the walker was teleported onto, if any.
    """
    lat: float
    lng: float
    bearing: float = 90.0
    target_image_id: Optional[str] = None

    def evolve(self, **changes: Any) -> "PositionState":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
