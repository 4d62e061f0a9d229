"""Routes, leg progression and breadcrumb tracking.

``RouteNavigator`` is the only owner of route progress. It moves through

    IDLE -> NAVIGATING(route, leg) -> COMPLETED -> IDLE

where COMPLETED is reported for the single update that finishes the route
and immediately collapses back to IDLE. The leg index only moves forward,
one waypoint per position update, when the fix is inside the arrival radius.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from coordinates import GeoCoordinate, is_valid_coordinate
from logger import LoggableMixin
from navigation import distance_meters, initial_bearing_degrees, path_length

WAYPOINT_ARRIVAL_RADIUS_METERS = 30.0
TRACKING_MIN_SPACING_METERS = 5.0


@dataclass(frozen=True)
class RoutePoint:
    """A named stop on a route."""

    name: str
    coordinate: GeoCoordinate


@dataclass(frozen=True)
class Route:
    """Ordered waypoints; sequence order is travel order."""

    name: str
    waypoints: Tuple[RoutePoint, ...] = ()

    def __post_init__(self):
        # Accept any sequence but store an immutable tuple.
        object.__setattr__(self, "waypoints", tuple(self.waypoints))

    def __len__(self) -> int:
        return len(self.waypoints)

    def coordinates(self) -> List[GeoCoordinate]:
        return [point.coordinate for point in self.waypoints]

    @property
    def total_distance(self) -> float:
        return path_length(self.coordinates())

    @classmethod
    def single_point(cls, name: str, point_name: str, coordinate: GeoCoordinate) -> "Route":
        return cls(name=name, waypoints=(RoutePoint(point_name, coordinate),))


def goto_target_route(target: GeoCoordinate) -> Route:
    """One-point route built from a typed grid reference."""
    return Route.single_point("GOTO Target", "TGT", target)


def waypoint_route(target: GeoCoordinate) -> Route:
    """One-point route built from a saved waypoint."""
    return Route.single_point("Waypoint Nav", "WPT", target)


class RouteState(Enum):
    IDLE = "idle"
    NAVIGATING = "navigating"
    COMPLETED = "completed"


@dataclass(frozen=True)
class RouteProgress:
    route: Route
    leg_index: int = 0

    @property
    def is_complete(self) -> bool:
        return self.leg_index >= len(self.route)

    @property
    def next_waypoint(self) -> Optional[RoutePoint]:
        if self.is_complete:
            return None
        return self.route.waypoints[self.leg_index]


@dataclass(frozen=True)
class RouteUpdate:
    """Outcome of feeding one position fix to the navigator."""

    state: RouteState
    progress: Optional[RouteProgress] = None
    advanced: bool = False
    distance_to_next: Optional[float] = None


class RouteNavigator(LoggableMixin):
    """Tracks the active route and advances legs on proximity."""

    def __init__(self, arrival_radius: float = WAYPOINT_ARRIVAL_RADIUS_METERS):
        super().__init__()
        self.arrival_radius = arrival_radius
        self._progress: Optional[RouteProgress] = None

    @property
    def state(self) -> RouteState:
        return RouteState.NAVIGATING if self._progress is not None else RouteState.IDLE

    @property
    def is_navigating(self) -> bool:
        return self._progress is not None

    @property
    def progress(self) -> Optional[RouteProgress]:
        return self._progress

    @property
    def current_target(self) -> Optional[RoutePoint]:
        return self._progress.next_waypoint if self._progress else None

    def start(self, route: Route) -> bool:
        """Activate ``route`` at its first leg. Empty routes are refused."""
        if not route.waypoints:
            self.log_warning("Refused to start an empty route", route=route.name)
            return False
        if any(not is_valid_coordinate(point.coordinate) for point in route.waypoints):
            self.log_warning("Refused to start a route with invalid waypoints", route=route.name)
            return False
        self._progress = RouteProgress(route=route, leg_index=0)
        self._logger.log_navigation_event(
            "route_started", route=route.name, leg_index=0, waypoints=len(route)
        )
        return True

    def cancel(self) -> None:
        if self._progress is None:
            return
        self._logger.log_navigation_event(
            "route_cancelled", route=self._progress.route.name, leg_index=self._progress.leg_index
        )
        self._progress = None

    def update(self, position: GeoCoordinate) -> RouteUpdate:
        """Apply one position fix. Invalid fixes leave the state untouched."""
        if self._progress is None:
            return RouteUpdate(state=RouteState.IDLE)
        if not is_valid_coordinate(position):
            return RouteUpdate(state=RouteState.NAVIGATING, progress=self._progress)

        target = self._progress.next_waypoint
        distance = distance_meters(position, target.coordinate)
        if distance >= self.arrival_radius:
            return RouteUpdate(
                state=RouteState.NAVIGATING, progress=self._progress, distance_to_next=distance
            )

        route = self._progress.route
        advanced = RouteProgress(route=route, leg_index=self._progress.leg_index + 1)
        self._logger.field_event(
            "Waypoint reached",
            route=route.name,
            waypoint=target.name,
            leg_index=self._progress.leg_index,
            distance=round(distance, 1),
        )
        if advanced.is_complete:
            self._progress = None
            self._logger.log_navigation_event("route_completed", route=route.name, leg_index=advanced.leg_index)
            return RouteUpdate(state=RouteState.COMPLETED, progress=advanced, advanced=True)

        self._progress = advanced
        next_distance = distance_meters(position, advanced.next_waypoint.coordinate)
        return RouteUpdate(
            state=RouteState.NAVIGATING,
            progress=advanced,
            advanced=True,
            distance_to_next=next_distance,
        )


@dataclass(frozen=True)
class RouteSegment:
    start: RoutePoint
    end: RoutePoint
    distance: float
    bearing: float


class RoutePlanner:
    """Builds a multi-point route one map click at a time.

    When planning starts from a GPS fix that fix becomes the fixed start
    point ``S``; undo and clear never remove it.
    """

    def __init__(self):
        self._points: List[RoutePoint] = []
        self._anchored = False
        self.active = False

    def begin(self, current_position: Optional[GeoCoordinate] = None) -> None:
        self.active = True
        if is_valid_coordinate(current_position):
            self._points = [RoutePoint("S", current_position)]
            self._anchored = True
        else:
            self._points = []
            self._anchored = False

    def finish(self) -> None:
        self.active = False
        self._points = []
        self._anchored = False

    @property
    def points(self) -> Sequence[RoutePoint]:
        return tuple(self._points)

    @property
    def anchored_to_gps(self) -> bool:
        return self._anchored

    @property
    def can_undo(self) -> bool:
        return len(self._points) > (1 if self._anchored else 0)

    def add_point(self, coordinate: GeoCoordinate) -> Optional[RoutePoint]:
        if not self.active or not is_valid_coordinate(coordinate):
            return None
        name = "S" if not self._points else f"P{len(self._points)}"
        point = RoutePoint(name, coordinate)
        self._points.append(point)
        return point

    def undo(self) -> None:
        if self.can_undo:
            self._points.pop()

    def clear(self) -> None:
        self._points = self._points[:1] if self._anchored else []

    def segments(self) -> List[RouteSegment]:
        return [
            RouteSegment(
                start=start,
                end=end,
                distance=distance_meters(start.coordinate, end.coordinate),
                bearing=initial_bearing_degrees(start.coordinate, end.coordinate),
            )
            for start, end in zip(self._points, self._points[1:])
        ]

    @property
    def total_distance(self) -> float:
        return path_length(point.coordinate for point in self._points)

    def build(self, name: str = "Planned Route") -> Route:
        return Route(name=name, waypoints=tuple(self._points))


@dataclass
class TrackedPath:
    """Breadcrumb trail recorded while tracking is active."""

    min_spacing: float = TRACKING_MIN_SPACING_METERS
    points: List[GeoCoordinate] = field(default_factory=list)
    active: bool = False

    def start(self, position: Optional[GeoCoordinate] = None) -> None:
        self.active = True
        self.points = [position] if is_valid_coordinate(position) else []

    def stop(self) -> None:
        self.active = False

    def offer(self, position: GeoCoordinate) -> bool:
        """Record ``position`` if tracking and far enough from the last point."""
        if not self.active or not is_valid_coordinate(position):
            return False
        if self.points and distance_meters(self.points[-1], position) <= self.min_spacing:
            return False
        self.points.append(position)
        return True

    @property
    def total_distance(self) -> float:
        return path_length(self.points)


__all__ = [
    "Route",
    "RouteNavigator",
    "RoutePlanner",
    "RoutePoint",
    "RouteProgress",
    "RouteSegment",
    "RouteState",
    "RouteUpdate",
    "TrackedPath",
    "goto_target_route",
    "waypoint_route",
]
