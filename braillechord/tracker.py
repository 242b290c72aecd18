"""
Zone tracker.

Follows one continuous gesture and collects the Braille dots of every
zone it passes through. Activation only ever adds: a dot stays on until
the gesture ends, even after the touch leaves its zone.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, FrozenSet, List, Optional, Set, Tuple

from .zones import ZoneLayout, dot_for_zone, zones_for_dot

log = logging.getLogger(__name__)


class GestureState(Enum):
    IDLE = auto()
    TRACKING = auto()


@dataclass(frozen=True)
class DotActivated:
    """A dot that turned on during the current gesture."""
    dot: int
    zone: int


class ZoneTracker:
    """
    Accumulates activated dots for one gesture at a time.

    Samples must be fed in the order they were generated. The only
    state is the current gesture's dot set and its sample points.
    """

    def __init__(self, layout: Optional[ZoneLayout] = None):
        self._layout = layout or ZoneLayout()
        self._state = GestureState.IDLE
        self._dots: Set[int] = set()
        self._points: List[Tuple[float, float]] = []
        self._listeners: List[Callable[[DotActivated], None]] = []

    @property
    def layout(self) -> ZoneLayout:
        return self._layout

    @property
    def state(self) -> GestureState:
        return self._state

    @property
    def is_tracking(self) -> bool:
        return self._state == GestureState.TRACKING

    @property
    def dots(self) -> FrozenSet[int]:
        """Dots activated so far in the current gesture."""
        return frozenset(self._dots)

    @property
    def points(self) -> Tuple[Tuple[float, float], ...]:
        """Sample points of the current gesture, in order."""
        return tuple(self._points)

    @property
    def highlighted_zones(self) -> FrozenSet[int]:
        """Every zone whose dot is active, aliased zones included."""
        return frozenset(zone for dot in self._dots for zone in zones_for_dot(dot))

    def add_listener(self, callback: Callable[[DotActivated], None]):
        """Add a dot activation listener."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[DotActivated], None]):
        """Remove a dot activation listener."""
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify_listeners(self, event: DotActivated):
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                log.error(f"Error in dot listener: {e}")

    def _activate_at(self, x: float, y: float):
        zone = self._layout.zone_at(x, y)
        if zone is None:
            return

        dot = dot_for_zone(zone)
        if dot in self._dots:
            return

        self._dots.add(dot)
        log.debug(f"Zone {zone} -> dot {dot} activated")
        self._notify_listeners(DotActivated(dot=dot, zone=zone))

    def begin(self, x: float, y: float):
        """Start a new gesture at a point, dropping anything left over."""
        if self.is_tracking:
            log.debug("Gesture restarted before it ended")
        self._state = GestureState.TRACKING
        self._dots.clear()
        self._points = [(x, y)]
        self._activate_at(x, y)

    def extend(self, x: float, y: float):
        """Add a sample to the gesture in progress."""
        if not self.is_tracking:
            log.debug(f"Ignoring sample ({x}, {y}) with no gesture in progress")
            return
        self._points.append((x, y))
        self._activate_at(x, y)

    def end(self) -> FrozenSet[int]:
        """Finish the gesture and return its activated dots."""
        dots = frozenset(self._dots) if self.is_tracking else frozenset()
        self._reset()
        return dots

    def cancel(self):
        """Abandon the gesture in progress without producing a result."""
        if self.is_tracking:
            log.debug(f"Gesture cancelled with dots {sorted(self._dots)}")
        self._reset()

    def _reset(self):
        self._state = GestureState.IDLE
        self._dots.clear()
        self._points.clear()
