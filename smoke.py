"""Smoke puffs: short sprite sequences spawned when a clone appears.

Parts: frame loader, alpha overlay helper, particle record, SmokePool.
"""

import logging
import math
import os
import random
from dataclasses import dataclass, field

import cv2
import numpy as np

logger = logging.getLogger(__name__)

# parameters
ASSET_DIR = "assets"
SMOKE_FOLDERS = ("smoke_1", "smoke_2", "smoke_3")
SMOKE_FRAME_COUNT = 5
SMOKE_FRAME_EXT = "png"
SMOKE_DURATION_MS = 600.0
SMOKE_SCALE_MULT = 1.2   # puffs render a little larger than their clone
SMOKE_SPREAD_PX = 15
SMOKE_LIFT_PX = 40


def load_smoke_frames(folder, ext=SMOKE_FRAME_EXT, count=SMOKE_FRAME_COUNT):
    # frames are 1.png .. N.png; a missing or unreadable file stays None
    frames = [None] * count
    for i in range(1, count + 1):
        fname = os.path.join(folder, f"{i}.{ext}")
        if not os.path.isfile(fname):
            logger.debug("Smoke frame missing: %s", fname)
            continue
        im = cv2.imread(fname, cv2.IMREAD_UNCHANGED)
        if im is None:
            logger.debug("Smoke frame unreadable: %s", fname)
            continue
        if im.ndim == 2:
            im = cv2.cvtColor(im, cv2.COLOR_GRAY2BGRA)
        elif im.shape[2] == 3:
            im = cv2.cvtColor(im, cv2.COLOR_BGR2BGRA)
        frames[i - 1] = im
    return frames


def overlay_sprite(bg, fg, x, y, scale=1.0):
    """Alpha-blend a BGRA sprite onto a BGR image, centered at (x, y), in place."""
    h_bg, w_bg = bg.shape[:2]
    fh = int(fg.shape[0] * scale)
    fw = int(fg.shape[1] * scale)
    if fh <= 0 or fw <= 0:
        return bg
    fg_resized = cv2.resize(fg, (fw, fh), interpolation=cv2.INTER_AREA if scale < 1.0 else cv2.INTER_LINEAR)
    if fg_resized.ndim == 3 and fg_resized.shape[2] == 4:
        fg_rgb = fg_resized[:, :, :3]
        fg_a = fg_resized[:, :, 3]
    else:
        fg_rgb = fg_resized[:, :, :3]
        fg_a = np.full((fh, fw), 255, dtype=np.uint8)
    x1 = int(x - fw // 2); y1 = int(y - fh // 2)
    x2 = x1 + fw; y2 = y1 + fh
    bx1, by1 = max(0, x1), max(0, y1)
    bx2, by2 = min(w_bg, x2), min(h_bg, y2)
    if bx1 >= bx2 or by1 >= by2:
        return bg
    sx1 = bx1 - x1; sy1 = by1 - y1
    sx2 = sx1 + (bx2 - bx1); sy2 = sy1 + (by2 - by1)
    fg_crop = fg_rgb[sy1:sy2, sx1:sx2].astype(np.float32)
    a = fg_a[sy1:sy2, sx1:sx2].astype(np.float32)[..., None] / 255.0
    bg_roi = bg[by1:by2, bx1:bx2].astype(np.float32)
    comp = a * fg_crop + (1.0 - a) * bg_roi
    bg[by1:by2, bx1:bx2] = np.clip(comp, 0, 255).astype(np.uint8)
    return bg


@dataclass
class SmokeParticle:
    x: float
    y: float
    scale: float
    start: float
    folder: str
    frames: list = field(default_factory=list)

    def frame_index(self, now, duration=SMOKE_DURATION_MS):
        count = len(self.frames)
        if count == 0:
            return 0
        elapsed = max(0.0, now - self.start)
        return int(math.floor(elapsed * count / duration))


class SmokePool:
    """Owns every live puff. Expiry is polled from advance(), never scheduled."""

    def __init__(self, asset_dir=ASSET_DIR, folders=SMOKE_FOLDERS, frame_count=SMOKE_FRAME_COUNT,
                 duration=SMOKE_DURATION_MS, scale_mult=SMOKE_SCALE_MULT, rng=None, loader=load_smoke_frames):
        self.asset_dir = asset_dir
        self.folders = tuple(folders)
        self.frame_count = frame_count
        self.duration = float(duration)
        self.scale_mult = scale_mult
        self.rng = rng if rng is not None else random.Random()
        self._loader = loader
        self._cache = {}
        self.particles = []

    def __len__(self):
        return len(self.particles)

    def _frames_for(self, folder):
        frames = self._cache.get(folder)
        if frames is None:
            frames = self._loader(os.path.join(self.asset_dir, folder), count=self.frame_count)
            if len(frames) != self.frame_count:
                frames = (list(frames) + [None] * self.frame_count)[:self.frame_count]
            missing = sum(1 for f in frames if f is None)
            if missing:
                logger.warning("Smoke set %s: %d of %d frames missing", folder, missing, self.frame_count)
            self._cache[folder] = frames
        return frames

    def spawn(self, x, y, scale, now):
        folder = self.folders[self.rng.randrange(len(self.folders))]
        particle = SmokeParticle(x=x, y=y, scale=scale * self.scale_mult, start=now,
                                 folder=folder, frames=self._frames_for(folder))
        self.particles.append(particle)
        return particle

    def spawn_pair(self, cx, cy, scale, now, spread=SMOKE_SPREAD_PX):
        return [self.spawn(cx - spread, cy, scale, now), self.spawn(cx + spread, cy, scale, now)]

    def advance(self, now):
        """Drop expired puffs and return (image, x, y, scale) for the rest.

        A puff whose current frame failed to load stays alive but yields nothing.
        """
        draws = []
        keep = []
        for p in self.particles:
            idx = p.frame_index(now, self.duration)
            if idx >= len(p.frames):
                continue
            keep.append(p)
            img = p.frames[idx]
            if img is not None:
                draws.append((img, p.x, p.y, p.scale))
        self.particles[:] = keep
        return draws

    def draw(self, canvas, now):
        for img, x, y, scale in self.advance(now):
            overlay_sprite(canvas, img, x, y, scale)
        return canvas

    def reset(self):
        self.particles.clear()
