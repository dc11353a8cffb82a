"""
Tests for ViewportReconciler: epsilon suppression, optimistic updates,
stale name-resolution guard, explicit navigation, zoom clamping and
failure handling.
"""

from __future__ import annotations

import asyncio
import unittest
from typing import Dict, List

from earthai.models.map_models import Coordinates, MapStyle, MapViewState
from earthai.utils.viewport_reconciler import (
    ViewportReconciler,
    clear_reconciler,
    default_view_state,
    get_reconciler,
)

START = Coordinates(lat=40.7128, lng=-74.0060)


class ControlledResolver:
    """Name resolver whose lookups complete only when the test says so."""

    def __init__(self):
        self.calls: List[Coordinates] = []
        self._futures: Dict[Coordinates, List[asyncio.Future]] = {}

    async def __call__(self, coordinates: Coordinates) -> str:
        future = asyncio.get_running_loop().create_future()
        self.calls.append(coordinates)
        self._futures.setdefault(coordinates, []).append(future)
        return await future

    def resolve(self, coordinates: Coordinates, name: str):
        self._futures[coordinates].pop(0).set_result(name)

    def fail(self, coordinates: Coordinates, exc: Exception):
        self._futures[coordinates].pop(0).set_exception(exc)


def make_reconciler(resolver, **kwargs) -> ViewportReconciler:
    state = MapViewState(center=START, zoom=13)
    return ViewportReconciler(resolver, state, min_zoom=3, max_zoom=18, **kwargs)


class TestViewportChanged(unittest.IsolatedAsyncioTestCase):

    async def test_tiny_shift_is_ignored(self):
        resolver = ControlledResolver()
        reconciler = make_reconciler(resolver)
        before = reconciler.state

        task = reconciler.viewport_changed(Coordinates(lat=START.lat + 0.0001, lng=START.lng), 13)
        await asyncio.sleep(0)

        self.assertIsNone(task)
        self.assertIs(reconciler.state, before)
        self.assertEqual(resolver.calls, [])

    async def test_significant_shift_updates_immediately_and_looks_up(self):
        resolver = ControlledResolver()
        reconciler = make_reconciler(resolver)
        target = Coordinates(lat=START.lat + 0.01, lng=START.lng)

        task = reconciler.viewport_changed(target, 13)

        # optimistic update before the lookup has even started
        self.assertIsNotNone(task)
        self.assertEqual(reconciler.state.center, target)
        self.assertIsNone(reconciler.state.resolved_name)

        await asyncio.sleep(0)
        self.assertEqual(resolver.calls, [target])

        resolver.resolve(target, "Lower Manhattan")
        await task
        self.assertEqual(reconciler.state.resolved_name, "Lower Manhattan")

    async def test_longitude_shift_counts(self):
        resolver = ControlledResolver()
        reconciler = make_reconciler(resolver)

        task = reconciler.viewport_changed(Coordinates(lat=START.lat, lng=START.lng - 0.01), 13)

        self.assertIsNotNone(task)
        task.cancel()

    async def test_zoom_threshold(self):
        resolver = ControlledResolver()
        reconciler = make_reconciler(resolver)

        self.assertIsNone(reconciler.viewport_changed(START, 13.05))
        self.assertEqual(reconciler.state.zoom, 13)

        task = reconciler.viewport_changed(START, 13.1)
        self.assertIsNotNone(task)
        self.assertEqual(reconciler.state.zoom, 13.1)
        task.cancel()

    async def test_zoom_is_clamped(self):
        resolver = ControlledResolver()
        reconciler = make_reconciler(resolver)

        reconciler.viewport_changed(START, 22)
        self.assertEqual(reconciler.state.zoom, 18)

        reconciler.viewport_changed(START, 0.5)
        self.assertEqual(reconciler.state.zoom, 3)

        # already at the bound: clamped value equals current zoom, nothing to do
        self.assertIsNone(reconciler.viewport_changed(START, 1))
        await asyncio.sleep(0)
        for coordinates in list(resolver._futures):
            for future in resolver._futures[coordinates]:
                future.cancel()
        await reconciler.wait_idle()

    async def test_is_significant_change(self):
        reconciler = make_reconciler(ControlledResolver())

        self.assertFalse(reconciler.is_significant_change(Coordinates(lat=START.lat, lng=START.lng + 0.0005), 13))
        self.assertTrue(reconciler.is_significant_change(Coordinates(lat=START.lat, lng=START.lng + 0.002), 13))
        self.assertTrue(reconciler.is_significant_change(START, 14))


class TestStaleResolution(unittest.IsolatedAsyncioTestCase):

    async def test_late_result_for_abandoned_view_is_discarded(self):
        resolver = ControlledResolver()
        reconciler = make_reconciler(resolver)
        a = Coordinates(lat=41.0, lng=-74.0)
        b = Coordinates(lat=42.0, lng=-75.0)

        task_a = reconciler.viewport_changed(a, 13)
        task_b = reconciler.viewport_changed(b, 13)
        await asyncio.sleep(0)

        resolver.resolve(a, "Place A")
        await task_a
        self.assertEqual(reconciler.state.center, b)
        self.assertIsNone(reconciler.state.resolved_name)

        resolver.resolve(b, "Place B")
        await task_b
        self.assertEqual(reconciler.state.resolved_name, "Place B")

    async def test_out_of_order_completion_keeps_newest(self):
        resolver = ControlledResolver()
        reconciler = make_reconciler(resolver)
        a = Coordinates(lat=41.0, lng=-74.0)
        b = Coordinates(lat=42.0, lng=-75.0)

        task_a = reconciler.viewport_changed(a, 13)
        task_b = reconciler.viewport_changed(b, 13)
        await asyncio.sleep(0)

        resolver.resolve(b, "Place B")
        await task_b
        resolver.resolve(a, "Place A")
        await task_a

        self.assertEqual(reconciler.state.resolved_name, "Place B")

    async def test_navigation_supersedes_pending_viewport_lookup(self):
        resolver = ControlledResolver()
        reconciler = make_reconciler(resolver)
        a = Coordinates(lat=41.0, lng=-74.0)
        target = Coordinates(lat=48.8584, lng=2.2945)

        task_a = reconciler.viewport_changed(a, 13)
        task_nav = reconciler.navigate_to(target, 17)
        await asyncio.sleep(0)

        resolver.resolve(a, "Place A")
        resolver.resolve(target, "Eiffel Tower")
        await asyncio.gather(task_a, task_nav)

        self.assertEqual(reconciler.state.resolved_name, "Eiffel Tower")
        self.assertEqual(reconciler.pending_lookups, 0)

    async def test_name_resolved_direct_call(self):
        reconciler = make_reconciler(ControlledResolver())

        self.assertFalse(reconciler.name_resolved(Coordinates(lat=0.0, lng=0.0), "Null Island"))
        self.assertIsNone(reconciler.state.resolved_name)
        self.assertTrue(reconciler.name_resolved(START, "New York"))
        self.assertEqual(reconciler.state.resolved_name, "New York")


class TestResolutionFailure(unittest.IsolatedAsyncioTestCase):

    async def test_failed_lookup_keeps_previous_name(self):
        resolver = ControlledResolver()
        reconciler = make_reconciler(resolver)
        reconciler.name_resolved(START, "New York")
        target = Coordinates(lat=41.0, lng=-74.0)

        task = reconciler.viewport_changed(target, 13)
        await asyncio.sleep(0)
        resolver.fail(target, ConnectionError("network down"))
        await task

        state = reconciler.state
        self.assertEqual(state.center, target)
        self.assertEqual(state.zoom, 13)
        self.assertEqual(state.resolved_name, "New York")
        self.assertEqual(state.map_style, MapStyle.STANDARD)

    async def test_empty_name_is_not_applied(self):
        async def resolver(coordinates):
            return ""

        reconciler = make_reconciler(resolver)
        reconciler.name_resolved(START, "New York")

        await reconciler.navigate_to(Coordinates(lat=1.5, lng=2.5))

        self.assertEqual(reconciler.state.resolved_name, "New York")


class TestNavigateTo(unittest.IsolatedAsyncioTestCase):

    async def test_navigation_within_epsilon_still_updates_zoom(self):
        resolver = ControlledResolver()
        reconciler = make_reconciler(resolver)
        near = Coordinates(lat=START.lat + 0.0001, lng=START.lng)

        task = reconciler.navigate_to(near, 16)

        self.assertIsNotNone(task)
        self.assertEqual(reconciler.state.center, near)
        self.assertEqual(reconciler.state.zoom, 16)
        await asyncio.sleep(0)
        self.assertEqual(resolver.calls, [near])
        resolver.resolve(near, "Near")
        await task

    async def test_zoom_defaults_to_current(self):
        resolver = ControlledResolver()
        reconciler = make_reconciler(resolver)
        target = Coordinates(lat=51.5074, lng=-0.1278)

        task = reconciler.navigate_to(target)

        self.assertEqual(reconciler.state.zoom, 13)
        await asyncio.sleep(0)
        resolver.resolve(target, "London")
        await task
        self.assertEqual(reconciler.state.resolved_name, "London")

    async def test_navigation_zoom_is_clamped_and_map_surface_is_told(self):
        resolver = ControlledResolver()
        views = []
        reconciler = make_reconciler(resolver, set_view=lambda center, zoom: views.append((center, zoom)))
        target = Coordinates(lat=35.6762, lng=139.6503)

        task = reconciler.navigate_to(target, 25)

        self.assertEqual(reconciler.state.zoom, 18)
        self.assertEqual(views, [(target, 18)])
        await asyncio.sleep(0)
        resolver.resolve(target, "Tokyo")
        await task


class TestMapStyleAndListeners(unittest.IsolatedAsyncioTestCase):

    async def test_style_change_does_not_look_up(self):
        resolver = ControlledResolver()
        reconciler = make_reconciler(resolver)

        state = reconciler.set_map_style(MapStyle.SATELLITE)
        await asyncio.sleep(0)

        self.assertEqual(state.map_style, MapStyle.SATELLITE)
        self.assertEqual(state.center, START)
        self.assertEqual(resolver.calls, [])
        self.assertEqual(reconciler.pending_lookups, 0)

    async def test_listeners_see_each_applied_transition(self):
        resolver = ControlledResolver()
        reconciler = make_reconciler(resolver)
        seen = []
        reconciler.add_listener(seen.append)
        target = Coordinates(lat=41.0, lng=-74.0)

        task = reconciler.viewport_changed(target, 13)
        reconciler.viewport_changed(target, 13)  # ignored, no notification
        reconciler.set_map_style("dark")
        await asyncio.sleep(0)
        resolver.resolve(target, "Somewhere")
        await task

        self.assertEqual(len(seen), 3)
        self.assertEqual(seen[0].center, target)
        self.assertEqual(seen[1].map_style, MapStyle.DARK)
        self.assertEqual(seen[2].resolved_name, "Somewhere")

    async def test_broken_listener_does_not_break_state(self):
        resolver = ControlledResolver()
        reconciler = make_reconciler(resolver)

        def explode(state):
            raise RuntimeError("boom")

        reconciler.add_listener(explode)
        reconciler.set_map_style(MapStyle.RELIEF)

        self.assertEqual(reconciler.state.map_style, MapStyle.RELIEF)

    async def test_resolve_initial(self):
        resolver = ControlledResolver()
        reconciler = make_reconciler(resolver)

        task = reconciler.resolve_initial()
        await asyncio.sleep(0)
        resolver.resolve(START, "New York, United States")
        await reconciler.wait_idle()

        self.assertTrue(task.done())
        self.assertEqual(reconciler.state.resolved_name, "New York, United States")


def test_without_event_loop_state_still_updates():
    reconciler = make_reconciler(ControlledResolver())
    target = Coordinates(lat=41.0, lng=-74.0)

    task = reconciler.viewport_changed(target, 13)

    assert task is None
    assert reconciler.state.center == target


def test_default_view_state_uses_settings():
    state = default_view_state()

    assert state.center == Coordinates(lat=40.7128, lng=-74.0060)
    assert state.zoom == 13
    assert state.map_style == MapStyle.STANDARD
    assert state.resolved_name is None


def test_registry_returns_same_reconciler_per_session():
    first = get_reconciler("session-1")

    assert get_reconciler("session-1") is first
    assert get_reconciler("session-2") is not first

    clear_reconciler("session-1")
    assert get_reconciler("session-1") is not first
