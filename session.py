"""Navigation session: wires position fixes, routes, waypoints and drawing.

A host (GUI, CLI or test) owns one :class:`NavigationSession`, feeds it
position fixes and user actions, and reads back a
:class:`NavigationReadout` plus whatever the session wrote into the
host-owned :class:`render_state.RenderState`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Union

from coordinates import GeoCoordinate, is_valid_coordinate
from grid_overlay import compute_grid_overlay
from grid_reference import GridReference, format_grid_reference, parse_grid_reference
from location_description import LocationDescriber
from logger import LogCategory, LoggableMixin
from navigation import (distance_meters, estimate_time_enroute, initial_bearing_degrees,
                        remaining_route_distance)
from render_state import (GRID_LAYER, PLAN_LAYER, POSITION_LAYER, ROUTE_LAYER, TRACK_LAYER,
                          WAYPOINT_LAYER, LineStyle, Marker, Polyline, RenderState, TextLabel,
                          grid_line_style, label_color)
from route import (Route, RouteNavigator, RoutePlanner, RoutePoint, RouteState, TrackedPath,
                   goto_target_route, waypoint_route)
from position_feed import coordinate_from_fix
from settings import NavigatorSettings
from waypoints import Waypoint
from zones import Zone, find_zone_for_position

ROUTE_STYLE = LineStyle(color="#22d3ee", weight=4, opacity=0.9, dash="10, 10")
TRACK_STYLE = LineStyle(color="#facc15", weight=3, opacity=0.8)
PLAN_STYLE = LineStyle(color="#a855f7", weight=3, opacity=0.9, dash="5, 5")


@dataclass(frozen=True)
class NavigationReadout:
    """Everything a display needs after one position fix."""

    position: GeoCoordinate
    grid_reference: Optional[GridReference]
    route_state: RouteState
    target_name: Optional[str] = None
    distance_to_target: Optional[float] = None
    bearing_to_target: Optional[float] = None
    remaining_distance: Optional[float] = None
    leg_index: Optional[int] = None
    leg_advanced: bool = False
    speed: Optional[float] = None
    time_enroute: str = "--:--:--"
    tracked_distance: float = 0.0
    zone: Optional[Zone] = None


@dataclass(frozen=True)
class InspectReport:
    """Grid and relative position of an arbitrary map point."""

    coordinate: GeoCoordinate
    grid_reference: Optional[GridReference]
    six_figure: Optional[str]
    eight_figure: Optional[str]
    distance_from_position: Optional[float] = None
    bearing_from_position: Optional[float] = None


class NavigationSession(LoggableMixin):
    """Single-threaded coordinator for one navigator."""

    def __init__(self, render_state: Optional[RenderState] = None,
                 describer: Optional[LocationDescriber] = None,
                 settings: Optional[NavigatorSettings] = None):
        super().__init__()
        self.settings = settings or NavigatorSettings()
        self.render_state = render_state if render_state is not None else RenderState()
        self.describer = describer or LocationDescriber()
        self.navigator = RouteNavigator(arrival_radius=self.settings.waypoint_radius_m)
        self.track = TrackedPath(min_spacing=self.settings.tracking_spacing_m)
        self.planner = RoutePlanner()
        self.waypoints: List[Waypoint] = []
        self.current_position: Optional[GeoCoordinate] = None

    # ------------------------------------------------------------------
    # Position feed
    # ------------------------------------------------------------------
    def on_position(self, payload: Union[GeoCoordinate, Mapping[str, Any], None]) -> Optional[NavigationReadout]:
        """Process one fix; invalid fixes are ignored and return ``None``."""
        coord = coordinate_from_fix(payload)
        if coord is None:
            self._logger.log_gps_event("fix_rejected", payload=repr(payload))
            return None
        self.current_position = coord
        self._logger.log_gps_event("fix", coord.lat, coord.lng, coord.horizontal_accuracy)

        update = self.navigator.update(coord)
        if self.track.offer(coord):
            self._render_track()
        self._render_position()
        self._render_route()

        speed = None
        if isinstance(payload, Mapping):
            raw_speed = payload.get("speed")
            if isinstance(raw_speed, (int, float)) and not isinstance(raw_speed, bool) and math.isfinite(raw_speed):
                speed = float(raw_speed)
        return self._readout(coord, update.state, update.advanced, speed)

    def _readout(self, coord: GeoCoordinate, state: RouteState, advanced: bool,
                 speed: Optional[float]) -> NavigationReadout:
        values = {}
        progress = self.navigator.progress
        if progress is not None:
            target = progress.next_waypoint
            remaining = remaining_route_distance(progress.route, progress.leg_index, coord)
            values = dict(
                target_name=target.name,
                distance_to_target=distance_meters(coord, target.coordinate),
                bearing_to_target=initial_bearing_degrees(coord, target.coordinate),
                remaining_distance=remaining,
                leg_index=progress.leg_index,
                time_enroute=estimate_time_enroute(remaining, speed or 0.0),
            )
        return NavigationReadout(
            position=coord,
            grid_reference=format_grid_reference(coord),
            route_state=state,
            leg_advanced=advanced,
            speed=speed,
            tracked_distance=self.track.total_distance,
            zone=find_zone_for_position(coord),
            **values,
        )

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def go_to_grid(self, zone: Any, easting: Any, northing: Any) -> bool:
        """Navigate to a typed grid reference; ``False`` if it does not parse."""
        target = parse_grid_reference(zone, easting, northing)
        if target is None:
            self.log_warning("Invalid grid reference entered", category=LogCategory.NAVIGATION,
                             zone=str(zone), easting=str(easting), northing=str(northing))
            return False
        self.log_user_action("goto_grid", {"zone": str(zone), "easting": str(easting), "northing": str(northing)})
        return self.start_route(goto_target_route(target))

    def go_to_waypoint(self, waypoint: Union[Waypoint, GeoCoordinate]) -> Optional[GridReference]:
        """Navigate to a saved point; returns its grid reference for the entry form."""
        coord = waypoint.coordinate if isinstance(waypoint, Waypoint) else waypoint
        if not is_valid_coordinate(coord) or not self.start_route(waypoint_route(coord)):
            return None
        return format_grid_reference(coord)

    def start_route(self, route: Route) -> bool:
        started = self.navigator.start(route)
        self._render_route()
        return started

    def cancel_navigation(self) -> None:
        self.navigator.cancel()
        self._render_route()

    # ------------------------------------------------------------------
    # Waypoint book
    # ------------------------------------------------------------------
    def _next_name(self, prefix: str) -> str:
        return f"{prefix}-{len(self.waypoints) + 1:03d}"

    def mark_current_position(self) -> Optional[Waypoint]:
        if self.current_position is None:
            return None
        return self._add_waypoint(self._next_name("WP"), self.current_position)

    def mark_position(self, coord: GeoCoordinate) -> Optional[Waypoint]:
        if not is_valid_coordinate(coord):
            return None
        return self._add_waypoint(self._next_name("MK"), coord)

    def _add_waypoint(self, name: str, coord: GeoCoordinate) -> Waypoint:
        waypoint = Waypoint(name=name, coordinate=GeoCoordinate(coord.lat, coord.lng))
        self.waypoints.append(waypoint)
        self._logger.field_event("Waypoint marked", name=name, lat=coord.lat, lng=coord.lng)
        self._render_waypoints()
        return waypoint

    def delete_waypoint(self, index: int) -> Optional[Waypoint]:
        if not 0 <= index < len(self.waypoints):
            return None
        removed = self.waypoints.pop(index)
        self.log_user_action("waypoint_deleted", {"name": removed.name})
        self._render_waypoints()
        return removed

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------
    def start_tracking(self) -> None:
        self.track.start(self.current_position)
        self._render_track()
        self.log_user_action("tracking_started")

    def stop_tracking(self) -> None:
        self.track.stop()
        self.log_user_action("tracking_stopped", {"points": len(self.track.points),
                                                  "distance": round(self.track.total_distance, 1)})

    # ------------------------------------------------------------------
    # Route planning
    # ------------------------------------------------------------------
    def begin_route_planning(self, from_current_position: bool = True) -> None:
        self.planner.begin(self.current_position if from_current_position else None)
        self._render_plan()

    def add_route_point(self, coord: GeoCoordinate) -> Optional[RoutePoint]:
        point = self.planner.add_point(coord)
        self._render_plan()
        return point

    def undo_route_point(self) -> None:
        self.planner.undo()
        self._render_plan()

    def clear_route_plan(self) -> None:
        self.planner.clear()
        self._render_plan()

    def finish_route_planning(self, start: bool = True) -> bool:
        """Leave planning mode, optionally starting the planned route."""
        route = self.planner.build()
        self.planner.finish()
        self._render_plan()
        if not start:
            return False
        return self.start_route(route)

    # ------------------------------------------------------------------
    # Map queries
    # ------------------------------------------------------------------
    def inspect(self, coord: GeoCoordinate) -> Optional[InspectReport]:
        if not is_valid_coordinate(coord):
            return None
        grid = format_grid_reference(coord)
        distance = bearing = None
        if self.current_position is not None:
            distance = distance_meters(self.current_position, coord)
            bearing = initial_bearing_degrees(self.current_position, coord)
        return InspectReport(
            coordinate=coord,
            grid_reference=grid,
            six_figure=grid.short_form(6) if grid else None,
            eight_figure=grid.short_form(8) if grid else None,
            distance_from_position=distance,
            bearing_from_position=bearing,
        )

    def describe_location(self, coord: GeoCoordinate) -> str:
        return self.describer.describe(coord)

    def update_grid(self, south: float, west: float, north: float, east: float, zoom: float) -> None:
        """Recompute the grid overlay for the visible bounds."""
        overlay = compute_grid_overlay(south, west, north, east, zoom,
                                       interval=self.settings.grid_interval,
                                       show_labels=self.settings.show_grid_labels)
        polylines = [
            Polyline(points=(line.start, line.end),
                     style=grid_line_style(self.settings.grid_color, self.settings.grid_weight,
                                           self.settings.grid_line_style, line.major))
            for line in overlay.lines
        ]
        text_color = label_color(self.settings.grid_color)
        labels = [TextLabel(label.position, label.text, label.edge, text_color) for label in overlay.labels]
        self.render_state.set_polylines(GRID_LAYER, polylines)
        self.render_state.set_labels(GRID_LAYER, labels)

    # ------------------------------------------------------------------
    # Render state
    # ------------------------------------------------------------------
    def _render_position(self) -> None:
        if self.current_position is None:
            self.render_state.clear(POSITION_LAYER)
            return
        heading = None
        target = self.navigator.current_target
        if target is not None:
            heading = initial_bearing_degrees(self.current_position, target.coordinate)
        self.render_state.set_markers(POSITION_LAYER, [
            Marker(self.current_position, label="You", kind="position", heading=heading)
        ])

    def _render_route(self) -> None:
        progress = self.navigator.progress
        if progress is None:
            self.render_state.clear(ROUTE_LAYER)
            return
        remaining = [point.coordinate for point in progress.route.waypoints[progress.leg_index:]]
        if self.current_position is not None:
            remaining.insert(0, self.current_position)
        self.render_state.set_polylines(ROUTE_LAYER, [Polyline(tuple(remaining), ROUTE_STYLE)])
        self.render_state.set_markers(ROUTE_LAYER, [
            Marker(point.coordinate, label=point.name, kind="target")
            for point in progress.route.waypoints
        ])

    def _render_track(self) -> None:
        if len(self.track.points) < 2:
            self.render_state.clear(TRACK_LAYER)
            return
        self.render_state.set_polylines(TRACK_LAYER, [Polyline(tuple(self.track.points), TRACK_STYLE)])

    def _render_waypoints(self) -> None:
        self.render_state.set_markers(WAYPOINT_LAYER, [
            Marker(waypoint.coordinate, label=waypoint.name, kind="waypoint")
            for waypoint in self.waypoints
        ])

    def _render_plan(self) -> None:
        points = self.planner.points
        if not self.planner.active or not points:
            self.render_state.clear(PLAN_LAYER)
            return
        self.render_state.set_markers(PLAN_LAYER, [
            Marker(point.coordinate, label=point.name, kind="plan") for point in points
        ])
        self.render_state.set_polylines(PLAN_LAYER, [
            Polyline(tuple(point.coordinate for point in points), PLAN_STYLE)
        ])
        self.render_state.set_labels(PLAN_LAYER, [
            TextLabel(segment.end.coordinate, f"{segment.distance:.0f} m / {segment.bearing:.0f}°")
            for segment in self.planner.segments()
        ])


__all__ = ["InspectReport", "NavigationReadout", "NavigationSession"]
