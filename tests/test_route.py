"""Tests for route progression, route planning and breadcrumb tracking."""

import math

import pytest

from coordinates import GeoCoordinate
from navigation import distance_meters
from route import (Route, RouteNavigator, RoutePlanner, RoutePoint, RouteState, TrackedPath,
                   goto_target_route, waypoint_route)

HERE = GeoCoordinate(28.6139, 77.2090)
NORTH_1KM = GeoCoordinate(28.6229, 77.2090)


def two_point_route():
    return Route("Patrol", [RoutePoint("P1", HERE), RoutePoint("P2", NORTH_1KM)])


def test_two_waypoint_route_advances_then_returns_to_idle():
    navigator = RouteNavigator()
    assert navigator.state is RouteState.IDLE
    assert navigator.start(two_point_route())
    assert navigator.state is RouteState.NAVIGATING
    assert navigator.progress.leg_index == 0

    update = navigator.update(HERE)
    assert update.advanced
    assert update.state is RouteState.NAVIGATING
    assert navigator.progress.leg_index == 1
    assert navigator.current_target.name == "P2"

    update = navigator.update(NORTH_1KM)
    assert update.state is RouteState.COMPLETED
    assert update.progress.leg_index == 2
    assert navigator.state is RouteState.IDLE
    assert navigator.progress is None


def test_leg_does_not_advance_outside_arrival_radius():
    navigator = RouteNavigator()
    navigator.start(goto_target_route(NORTH_1KM))
    update = navigator.update(HERE)
    assert not update.advanced
    assert update.distance_to_next == pytest.approx(distance_meters(HERE, NORTH_1KM))
    assert navigator.progress.leg_index == 0


def test_arrival_radius_is_strict():
    # About 30 m north of the target.
    just_outside = GeoCoordinate(HERE.lat + 30.0 / 111194.93, HERE.lng)
    navigator = RouteNavigator()
    navigator.start(waypoint_route(HERE))
    assert distance_meters(just_outside, HERE) >= 30.0 - 1e-6
    navigator.update(GeoCoordinate(HERE.lat + 31.0 / 111194.93, HERE.lng))
    assert navigator.is_navigating
    navigator.update(GeoCoordinate(HERE.lat + 29.0 / 111194.93, HERE.lng))
    assert not navigator.is_navigating


def test_only_one_leg_advances_per_update():
    navigator = RouteNavigator()
    navigator.start(Route("Stack", [RoutePoint("A", HERE), RoutePoint("B", HERE)]))
    navigator.update(HERE)
    assert navigator.progress.leg_index == 1
    update = navigator.update(HERE)
    assert update.state is RouteState.COMPLETED


def test_invalid_fix_leaves_state_untouched():
    navigator = RouteNavigator()
    navigator.start(two_point_route())
    update = navigator.update(GeoCoordinate(math.nan, 77.0))
    assert not update.advanced
    assert navigator.progress.leg_index == 0


def test_cancel_returns_to_idle_and_new_start_resets_leg():
    navigator = RouteNavigator()
    navigator.start(two_point_route())
    navigator.update(HERE)
    navigator.cancel()
    assert navigator.state is RouteState.IDLE
    assert navigator.update(HERE).state is RouteState.IDLE
    navigator.start(two_point_route())
    assert navigator.progress.leg_index == 0


def test_empty_route_is_refused():
    navigator = RouteNavigator()
    assert not navigator.start(Route("Empty"))
    assert navigator.state is RouteState.IDLE


def test_one_point_routes():
    goto = goto_target_route(HERE)
    assert goto.name == "GOTO Target"
    assert [p.name for p in goto.waypoints] == ["TGT"]
    wpt = waypoint_route(HERE)
    assert wpt.name == "Waypoint Nav"
    assert [p.name for p in wpt.waypoints] == ["WPT"]
    assert len(wpt) == 1
    assert wpt.total_distance == 0.0


def test_planner_anchored_to_gps_keeps_start_point():
    planner = RoutePlanner()
    planner.begin(HERE)
    assert planner.anchored_to_gps
    assert [p.name for p in planner.points] == ["S"]
    planner.add_point(NORTH_1KM)
    planner.add_point(GeoCoordinate(28.63, 77.22))
    assert [p.name for p in planner.points] == ["S", "P1", "P2"]
    planner.undo()
    planner.undo()
    planner.undo()
    assert [p.name for p in planner.points] == ["S"]
    planner.add_point(NORTH_1KM)
    planner.clear()
    assert [p.name for p in planner.points] == ["S"]


def test_planner_without_gps_and_segments():
    planner = RoutePlanner()
    planner.begin()
    assert planner.add_point(HERE).name == "S"
    planner.add_point(NORTH_1KM)
    segments = planner.segments()
    assert len(segments) == 1
    assert segments[0].distance == pytest.approx(1000.0, abs=5.0)
    assert segments[0].bearing == pytest.approx(0.0, abs=1e-6)
    assert planner.total_distance == pytest.approx(segments[0].distance)
    route = planner.build("Recce")
    assert route.name == "Recce"
    assert len(route) == 2
    planner.clear()
    assert planner.points == ()


def test_planner_ignores_points_when_inactive():
    planner = RoutePlanner()
    assert planner.add_point(HERE) is None


def test_tracked_path_spacing():
    track = TrackedPath()
    assert not track.offer(HERE)
    track.start(HERE)
    assert track.points == [HERE]
    assert not track.offer(GeoCoordinate(HERE.lat + 3.0 / 111194.93, HERE.lng))
    assert track.offer(GeoCoordinate(HERE.lat + 10.0 / 111194.93, HERE.lng))
    assert len(track.points) == 2
    assert track.total_distance == pytest.approx(10.0, abs=0.01)
    track.stop()
    assert not track.offer(NORTH_1KM)


def test_tracking_start_without_position_begins_empty():
    track = TrackedPath()
    track.start(None)
    assert track.points == []
    assert track.offer(HERE)
