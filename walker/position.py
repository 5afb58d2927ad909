from __future__ import annotations

import enum
import logging
import threading
from typing import Callable, List, Optional, Union

from common.config import WalkerConfig
from common.geo import clamp_lat, planar_step, wrap_bearing, wrap_lon
from common.types import ImageFeature, PositionState


log = logging.getLogger(__name__)

# ~11 m of latitude per step
STEP_SIZE = 0.0001
TURN_SIZE = 15.0  # degrees

Listener = Callable[[PositionState], None]


class Direction(enum.Enum):
    FORWARD = "forward"
    BACKWARD = "backward"
    TURN_LEFT = "turn_left"
    TURN_RIGHT = "turn_right"

    @classmethod
    def parse(cls, value: Union["Direction", str]) -> "Direction":
        """
        Accepts a Direction, its value or name, or the arrow-key aliases
        "up", "down", "left", "right". Anything else raises ValueError.
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key in _ALIASES:
            return _ALIASES[key]
        for d in cls:
            if key in (d.value, d.name.lower()):
                return d
        raise ValueError(f"unknown direction: {value!r}")


_ALIASES = {
    "up": Direction.FORWARD,
    "down": Direction.BACKWARD,
    "left": Direction.TURN_LEFT,
    "right": Direction.TURN_RIGHT,
}


class WalkerPositionStore:
    """
    Pose of a virtual walker, moved by discrete commands.

    Forward/backward steps are planar (see common.geo.planar_step) and clear
    the teleport target; turns change only the bearing. By default the bearing
    is never wrapped and lat/lng are never clamped, so repeated moves can
    drift out of range; `wrap_bearing` and `clamp_coordinates` opt in to both.

    All mutations hold one reentrant lock; readers get immutable snapshots.
    Listeners run under that lock, so they see states in the order they were
    applied. A listener that raises is logged and skipped; the change it was
    told about stays applied and the other listeners still run.
    """

    def __init__(
        self,
        initial: Optional[PositionState] = None,
        *,
        step_size: float = STEP_SIZE,
        turn_size: float = TURN_SIZE,
        wrap_bearing: bool = False,
        clamp_coordinates: bool = False,
    ):
        self._home = initial or PositionState(
            lat=WalkerConfig.home_lat,
            lng=WalkerConfig.home_lng,
            bearing=WalkerConfig.home_bearing,
        )
        self._state = self._home
        self.step_size = float(step_size)
        self.turn_size = float(turn_size)
        self.wrap_bearing = wrap_bearing
        self.clamp_coordinates = clamp_coordinates
        # reentrant: a listener may read or move the store
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []

    @classmethod
    def from_config(cls, cfg: WalkerConfig) -> "WalkerPositionStore":
        home = PositionState(lat=cfg.home_lat, lng=cfg.home_lng, bearing=cfg.home_bearing)
        return cls(home, wrap_bearing=cfg.wrap_bearing, clamp_coordinates=cfg.clamp_coordinates)

    # ----------------------------
    # Reads
    # ----------------------------
    @property
    def position(self) -> PositionState:
        return self._state

    def snapshot(self) -> PositionState:
        return self._state

    # ----------------------------
    # Mutations
    # ----------------------------
    def move(self, direction: Union[Direction, str]) -> PositionState:
        """Apply one movement command and return the new pose."""
        d = Direction.parse(direction)
        with self._lock:
            s = self._state
            if d is Direction.FORWARD or d is Direction.BACKWARD:
                dlat, dlng = planar_step(s.bearing, self.step_size)
                sign = 1.0 if d is Direction.FORWARD else -1.0
                new = s.evolve(
                    lat=s.lat + sign * dlat,
                    lng=s.lng + sign * dlng,
                    target_image_id=None,
                )
            elif d is Direction.TURN_LEFT:
                new = s.evolve(bearing=s.bearing - self.turn_size)
            else:
                new = s.evolve(bearing=s.bearing + self.turn_size)
            new = self._commit(new)
        log.debug("walker %s -> %.6f,%.6f @ %.1f", d.value, new.lat, new.lng, new.bearing)
        return new

    def jump_to(self, image_id: str, lat: float, lng: float) -> PositionState:
        """Teleport onto an image; keeps the bearing."""
        with self._lock:
            new = self._commit(self._state.evolve(lat=float(lat), lng=float(lng), target_image_id=str(image_id)))
        log.info("walker jumped to image %s", image_id, extra={"ctx": new.to_dict()})
        return new

    def jump_to_feature(self, feature: ImageFeature) -> PositionState:
        c = feature.coordinates
        if c is None:
            raise ValueError(f"image {feature.id} has no point geometry")
        return self.jump_to(feature.id, lat=c[1], lng=c[0])

    def reset(self) -> PositionState:
        with self._lock:
            return self._commit(self._home)

    # ----------------------------
    # Observers
    # ----------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register `listener(state)` for every change; returns an unsubscribe function."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    # ----------------------------
    # Internals
    # ----------------------------
    def _commit(self, new: PositionState) -> PositionState:
        """Store `new` and notify listeners. Caller holds the lock."""
        if self.wrap_bearing:
            new = new.evolve(bearing=wrap_bearing(new.bearing))
        if self.clamp_coordinates:
            new = new.evolve(lat=clamp_lat(new.lat), lng=wrap_lon(new.lng))
        self._state = new
        for fn in list(self._listeners):
            try:
                fn(new)
            except Exception:
                log.exception("walker listener %r failed", fn)
        return new
