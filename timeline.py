"""Clone timeline: the trigger latch and delay-keyed clone actors."""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# (x offset, y offset, scale, delay ms after trigger)
CLONE_LAYOUT = (
    (-100, 100, 0.9,  1000),
    ( 120, 100, 0.85, 1150),
    (-180, 140, 0.8,  1300),
    (-140, 140, 0.45, 1320),
    ( 180, 160, 0.7,  1450),
    ( 140, 160, 0.4,  1470),
    (-250, 140, 0.7,  1600),
    (-220, 140, 0.35, 1620),
    ( 260, 160, 0.65, 1750),
    (-100, 150, 0.6,  2500),
    ( 100, 150, 0.6,  2650),
    (-120,  70, 0.55, 2800),
    ( 100,  70, 0.5,  2950),
    (-200,  85, 0.55, 3100),
    ( 230,  85, 0.5,  3250),
    (-280, 100, 0.4,  3400),
)


@dataclass
class CloneActor:
    x: float
    y: float
    scale: float
    delay: float
    smoke_spawned: bool = False

    def is_active(self, elapsed):
        return elapsed >= self.delay


def make_actors(layout=CLONE_LAYOUT):
    return [CloneActor(x, y, scale, delay) for x, y, scale, delay in layout]


class CloneTimeline:
    def __init__(self, actors=None):
        self.actors = list(actors) if actors is not None else make_actors()
        self.triggered = False
        self.trigger_time = None

    def trigger(self, now):
        # latch: a second trigger never moves the timestamp
        if self.triggered:
            return False
        self.triggered = True
        self.trigger_time = now
        return True

    def elapsed(self, now):
        if not self.triggered:
            return None
        return now - self.trigger_time

    def newly_activated(self, now):
        """Actors crossing their delay since the last query, in list order.

        Each actor is reported once per session; the smoke flag is set here.
        """
        elapsed = self.elapsed(now)
        if elapsed is None:
            return []
        fresh = []
        for actor in self.actors:
            if not actor.smoke_spawned and actor.is_active(elapsed):
                actor.smoke_spawned = True
                fresh.append(actor)
                logger.debug("Clone at (%s, %s) appeared after %.0f ms", actor.x, actor.y, elapsed)
        return fresh

    def active_actors(self, now):
        """Actors to draw this frame, latest-appearing first."""
        elapsed = self.elapsed(now)
        if elapsed is None:
            return []
        active = [a for a in self.actors if a.is_active(elapsed)]
        return sorted(active, key=lambda a: a.delay, reverse=True)

    def finished(self, now):
        elapsed = self.elapsed(now)
        return elapsed is not None and all(a.is_active(elapsed) for a in self.actors)

    def reset(self):
        self.triggered = False
        self.trigger_time = None
        for actor in self.actors:
            actor.smoke_spawned = False
