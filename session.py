"""Session orchestration: one tick per camera frame, all state in one place."""

import logging
from collections import namedtuple

from compositor import FrameCompositor
from gesture import GESTURE_THRESHOLD, GestureDetector
from smoke import SMOKE_LIFT_PX, SmokePool
from timeline import CloneTimeline

logger = logging.getLogger(__name__)

FrameResult = namedtuple("FrameResult", "triggered commands activated events")

OVERLAY_IDLE = 1
OVERLAY_TRIGGERED = 2


class SessionState:
    """Trigger latch, clone actors and smoke pool, mutated only through tick()/reset().

    Everything runs on the caller's frame loop. request_reset() queues a reset
    that is applied at the start of the next tick, so a frame never sees a
    half-cleared session.
    """

    def __init__(self, model, width, height, threshold=GESTURE_THRESHOLD, timeline=None, pool=None, compositor=None):
        self.width = width
        self.height = height
        self.timeline = timeline if timeline is not None else CloneTimeline()
        self.pool = pool if pool is not None else SmokePool()
        self.compositor = compositor if compositor is not None else FrameCompositor(width, height)
        self._events = []
        self.detector = GestureDetector(model, threshold=threshold, on_confidence=self._publish_confidence)
        self.overlay_state = OVERLAY_IDLE
        self._reset_pending = False
        self._all_spawned = False

    @property
    def triggered(self):
        return self.timeline.triggered

    def _publish_confidence(self, percent):
        self._events.append(("confidence", percent))

    def smoke_anchor(self, actor):
        cx = actor.x + self.width / 2.0
        cy = actor.y + self.height / 2.0 - SMOKE_LIFT_PX
        return cx, cy

    def reset(self):
        self.timeline.reset()
        self.pool.reset()
        self._all_spawned = False
        self._reset_pending = False
        self.overlay_state = OVERLAY_IDLE
        self._events.append(("overlay_state", OVERLAY_IDLE))
        logger.info("Jutsu reset, ready to clone again")

    def request_reset(self):
        self._reset_pending = True

    def tick(self, now, right=None, left=None):
        if self._reset_pending:
            self.reset()

        if not self.timeline.triggered:
            if self.detector.evaluate(right, left):
                self.timeline.trigger(now)
                self._events.append(("triggered", now))
                logger.info("Clone sign detected (p=%.4f)", self.detector.last_probability)

        activated = []
        if self.timeline.triggered:
            if not self._all_spawned:
                activated = self.timeline.newly_activated(now)
                self._all_spawned = self.timeline.finished(now)
            for actor in activated:
                cx, cy = self.smoke_anchor(actor)
                self.pool.spawn_pair(cx, cy, actor.scale, now)
            if self.overlay_state != OVERLAY_TRIGGERED:
                self.overlay_state = OVERLAY_TRIGGERED
                self._events.append(("overlay_state", OVERLAY_TRIGGERED))

        commands = self.compositor.plan(self.timeline.triggered,
                                        self.timeline.active_actors(now),
                                        hands=(right, left))
        events, self._events = self._events, []
        return FrameResult(self.timeline.triggered, commands, activated, events)

    def render(self, canvas, person, alpha, result, now):
        return self.compositor.paint(canvas, person, alpha, result.commands, pool=self.pool, now=now)
