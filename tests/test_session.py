import numpy as np

from conftest import FakeModel
from session import OVERLAY_IDLE, OVERLAY_TRIGGERED, SessionState


def make_session(pool, prob=0.9995):
    model = FakeModel(prob)
    return SessionState(model, 640, 480, pool=pool), model


def test_trigger_then_first_clones_spawn_six_puffs(pool, hands):
    session, _ = make_session(pool)
    res = session.tick(0.0, *hands)
    assert res.triggered
    assert session.timeline.trigger_time == 0.0
    assert ("triggered", 0.0) in res.events

    res = session.tick(1300.0)
    assert [a.delay for a in res.activated] == [1000, 1150, 1300]
    assert len(pool) == 6

    res = session.tick(1300.0)
    assert res.activated == []
    assert len(pool) == 6


def test_latched_session_stops_scoring(pool, hands):
    session, model = make_session(pool)
    session.tick(0.0, *hands)
    assert model.calls == 1
    for t in (16.0, 33.0, 50.0):
        session.tick(t, *hands)
    assert model.calls == 1
    assert session.timeline.trigger_time == 0.0


def test_low_score_keeps_waiting(pool, hands):
    session, model = make_session(pool, prob=0.5)
    res = session.tick(0.0, *hands)
    assert not res.triggered
    assert res.events == [("confidence", 50.0)]
    assert len(res.commands) == 3  # person + two hands
    session.tick(5000.0, *hands)
    assert model.calls == 2
    assert len(pool) == 0


def test_smoke_anchor_and_pair(pool, hands):
    session, _ = make_session(pool)
    session.tick(0.0, *hands)
    session.tick(1000.0)
    xs = sorted(p.x for p in pool.particles)
    ys = {p.y for p in pool.particles}
    assert xs == [-100 + 320 - 15, -100 + 320 + 15]
    assert ys == {100 + 240 - 40}


def test_overlay_toggles_once_per_session(pool, hands):
    session, _ = make_session(pool)
    first = session.tick(0.0, *hands)
    assert ("overlay_state", OVERLAY_TRIGGERED) in first.events
    later = session.tick(100.0)
    assert not any(name == "overlay_state" for name, _ in later.events)
    assert session.overlay_state == OVERLAY_TRIGGERED


def test_reset_completeness(pool, hands):
    session, model = make_session(pool)
    session.tick(0.0, *hands)
    session.tick(2000.0)
    assert len(pool) > 0
    session.reset()
    assert not session.triggered
    assert all(not a.smoke_spawned for a in session.timeline.actors)
    assert len(pool) == 0
    assert session.overlay_state == OVERLAY_IDLE
    res = session.tick(2100.0, *hands)
    assert ("overlay_state", OVERLAY_IDLE) in res.events
    assert session.timeline.trigger_time == 2100.0
    assert model.calls == 2


def test_requested_reset_applies_on_next_tick(pool, hands):
    session, _ = make_session(pool, prob=0.0)
    session.timeline.trigger(0.0)
    session.tick(1500.0)
    session.request_reset()
    assert session.triggered
    assert len(pool) > 0
    res = session.tick(1516.0)
    assert not res.triggered
    assert len(pool) == 0


def test_reset_is_safe_when_idle(pool):
    session, _ = make_session(pool)
    session.reset()
    session.reset()
    assert not session.triggered


def test_render_paints_frame(pool, hands):
    session, _ = make_session(pool)
    session.tick(0.0, *hands)
    res = session.tick(1200.0)
    canvas = np.zeros((480, 640, 3), dtype=np.uint8)
    person = np.full((480, 640, 3), 80, dtype=np.uint8)
    alpha = np.zeros((480, 640), dtype=np.float32)
    alpha[200:300, 300:340] = 1.0
    session.render(canvas, person, alpha, res, 1200.0)
    assert canvas[250, 320].tolist() == [80, 80, 80]


def test_activation_polling_stops_once_all_clones_are_out(pool, hands):
    session, _ = make_session(pool)
    session.tick(0.0, *hands)
    session.tick(3400.0)
    assert len(pool) == 32

    calls = []
    original = session.timeline.newly_activated
    session.timeline.newly_activated = lambda now: calls.append(now) or original(now)
    res = session.tick(3500.0)
    assert calls == []
    assert res.activated == []
    assert len(res.commands) == 16 + 2

    session.reset()
    session.tick(4000.0, *hands)
    session.tick(5000.0)
    assert calls == [4000.0, 5000.0]
