import asyncio

import pytest

from conftest import ScriptedDirections
from routesim.schemas.route import Stop
from routesim.services.session import SessionState


@pytest.mark.asyncio
async def test_load_route_makes_session_ready(simulator, stops):
    assert await simulator.load_route(stops)
    snap = simulator.snapshot()
    assert snap.state is SessionState.READY
    assert snap.point_count >= 2
    assert simulator.route.path[0] == stops[0].point
    assert simulator.route.path[-1] == stops[-1].point
    assert simulator.route.metrics.distance_m > 0


@pytest.mark.asyncio
async def test_full_run_delivers_whole_path(simulator, stops, recording_sink):
    simulator.set_speed(10_000.0)
    await simulator.load_route(stops)
    assert await simulator.start()
    await simulator.wait_until_idle()
    await simulator.dispatcher.drain()

    snap = simulator.snapshot()
    assert snap.state is SessionState.COMPLETED
    assert snap.progress == 1.0
    assert recording_sink.points() == simulator.route.path


@pytest.mark.asyncio
async def test_start_twice_does_not_spawn_second_run(simulator, stops):
    await simulator.load_route(stops)
    assert await simulator.start()
    assert not await simulator.start()
    await simulator.stop()


@pytest.mark.asyncio
async def test_start_without_route_is_noop(simulator):
    assert not await simulator.start()
    assert simulator.snapshot().state is SessionState.IDLE


@pytest.mark.asyncio
async def test_pause_resume_neither_repeats_nor_skips(simulator, stops, recording_sink):
    await simulator.load_route(stops)
    await simulator.start()
    await asyncio.sleep(0.3)
    assert await simulator.pause()

    frozen = simulator.snapshot()
    assert frozen.state is SessionState.PAUSED
    assert frozen.can_resume
    await asyncio.sleep(0.2)
    assert simulator.snapshot() == frozen

    assert await simulator.resume()
    simulator.set_speed(10_000.0)
    await simulator.wait_until_idle()
    await simulator.dispatcher.drain()

    assert simulator.snapshot().state is SessionState.COMPLETED
    assert recording_sink.points() == simulator.route.path


@pytest.mark.asyncio
async def test_resume_only_when_paused(simulator, stops):
    await simulator.load_route(stops)
    assert not await simulator.resume()
    await simulator.start()
    assert not await simulator.resume()
    await simulator.stop()


@pytest.mark.asyncio
async def test_stop_keeps_last_position(simulator, stops):
    await simulator.load_route(stops)
    await simulator.start()
    await asyncio.sleep(0.2)
    before = simulator.snapshot().position
    await simulator.stop()

    snap = simulator.snapshot()
    assert snap.state is SessionState.IDLE
    assert snap.point_count == 0
    assert snap.metrics is None
    assert simulator.route is None
    assert snap.position == before
    await asyncio.sleep(0.2)
    assert simulator.snapshot().position == before


@pytest.mark.asyncio
async def test_reset_clears_last_position(simulator, stops):
    await simulator.load_route(stops)
    await simulator.start()
    await asyncio.sleep(0.1)
    await simulator.reset()
    snap = simulator.snapshot()
    assert snap.state is SessionState.IDLE
    assert snap.position is None


@pytest.mark.asyncio
async def test_failed_composition_leaves_loaded_route(simulator, stops):
    await simulator.load_route(stops)
    before_route, before_snap = simulator.route, simulator.snapshot()

    simulator.directions = ScriptedDirections({})
    assert not await simulator.load_route(stops)

    assert simulator.route is before_route
    assert simulator.snapshot() == before_snap


@pytest.mark.asyncio
async def test_loading_new_route_replaces_running_one(simulator, stops):
    await simulator.load_route(stops)
    await simulator.start()
    await asyncio.sleep(0.1)
    other = [Stop(name="C", lat=35.0, lon=139.0), Stop(name="D", lat=35.001, lon=139.0)]
    assert await simulator.load_route(other)
    snap = simulator.snapshot()
    assert snap.state is SessionState.READY
    assert snap.index == 0
    assert simulator.route.stops == other


@pytest.mark.asyncio
async def test_restart_after_completion(simulator, stops):
    simulator.set_speed(10_000.0)
    await simulator.load_route(stops)
    await simulator.start()
    await simulator.wait_until_idle()
    assert await simulator.start()
    assert simulator.snapshot().state is SessionState.RUNNING
    await simulator.aclose()
    assert simulator.snapshot().state is SessionState.IDLE


def test_set_speed_rejects_non_positive(simulator):
    with pytest.raises(ValueError):
        simulator.set_speed(0)


@pytest.mark.asyncio
async def test_pause_before_first_step_still_emits_start_point(simulator, stops, recording_sink):
    await simulator.load_route(stops)
    await simulator.start()
    await simulator.pause()  # the run is cancelled before its first commit

    snap = simulator.snapshot()
    assert snap.state is SessionState.PAUSED
    assert snap.index == 0
    assert simulator.session.committed == -1
    assert recording_sink.points() == []

    simulator.set_speed(10_000.0)
    assert await simulator.resume()
    await simulator.wait_until_idle()
    await simulator.dispatcher.drain()

    assert recording_sink.points() == simulator.route.path


@pytest.mark.asyncio
async def test_failed_composition_does_not_disturb_running_playback(simulator, stops, recording_sink):
    await simulator.load_route(stops)
    route = simulator.route
    await simulator.start()
    await asyncio.sleep(0.1)

    simulator.directions = ScriptedDirections({})
    assert not await simulator.load_route(stops)

    snap = simulator.snapshot()
    assert snap.state is SessionState.RUNNING
    assert simulator.route is route
    simulator.set_speed(10_000.0)
    await simulator.wait_until_idle()
    await simulator.dispatcher.drain()
    assert simulator.snapshot().state is SessionState.COMPLETED
    assert recording_sink.points() == route.path


@pytest.mark.asyncio
async def test_failed_composition_leaves_paused_session_frozen(simulator, stops):
    await simulator.load_route(stops)
    await simulator.start()
    await asyncio.sleep(0.15)
    await simulator.pause()
    frozen = simulator.snapshot()

    simulator.directions = ScriptedDirections({})
    assert not await simulator.load_route(stops)

    assert simulator.snapshot() == frozen
    assert await simulator.resume()
    await simulator.stop()


@pytest.mark.asyncio
async def test_scheduler_crash_leaves_session_paused(simulator, stops, monkeypatch, caplog):
    def boom(point):
        raise RuntimeError("sink exploded")

    await simulator.load_route(stops)
    monkeypatch.setattr(simulator._scheduler, "_deliver", boom)
    await simulator.start()
    await asyncio.sleep(0.05)

    assert simulator.snapshot().state is SessionState.PAUSED
    assert "Playback stopped unexpectedly" in caplog.text

    monkeypatch.setattr(simulator._scheduler, "_deliver", simulator.dispatcher.dispatch)
    assert await simulator.start()
    assert simulator.snapshot().state is SessionState.RUNNING
    await simulator.stop()
