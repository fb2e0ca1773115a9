"""Per-frame draw planning and painting for the clone effect."""

from collections import namedtuple

import cv2
import numpy as np

from pose import FINGER_INDICES

SKELETON_COLOR = (0, 140, 255)   # BGR orange
JOINT_COLOR = (0, 204, 255)      # BGR yellow
SKELETON_THICKNESS = 2
JOINT_RADIUS = 3

PersonDraw = namedtuple("PersonDraw", "tx ty scale")
SmokeDraw = namedtuple("SmokeDraw", "")
HandDraw = namedtuple("HandDraw", "pose")

IDENTITY = PersonDraw(0.0, 0.0, 1.0)


def cut_person(frame, mask):
    # person cutout = raw frame + per-pixel alpha from the segmentation mask
    alpha = np.clip(np.asarray(mask, dtype=np.float32), 0.0, 1.0)
    if alpha.ndim == 3:
        alpha = alpha[..., 0]
    if alpha.shape[:2] != frame.shape[:2]:
        alpha = cv2.resize(alpha, (frame.shape[1], frame.shape[0]), interpolation=cv2.INTER_LINEAR)
    return frame, alpha


def draw_person(canvas, person, alpha, tx=0.0, ty=0.0, scale=1.0):
    h, w = canvas.shape[:2]
    if scale == 1.0 and tx == 0.0 and ty == 0.0:
        img, a = person, alpha
    else:
        M = np.float32([[scale, 0, tx], [0, scale, ty]])
        img = cv2.warpAffine(person, M, (w, h), flags=cv2.INTER_LINEAR, borderValue=0)
        a = cv2.warpAffine(alpha, M, (w, h), flags=cv2.INTER_LINEAR, borderValue=0)
    a3 = a[..., None]
    comp = a3 * img.astype(np.float32) + (1.0 - a3) * canvas.astype(np.float32)
    canvas[:] = np.clip(comp, 0, 255).astype(np.uint8)
    return canvas


def draw_finger_skeleton(canvas, pose, color=SKELETON_COLOR, joint_color=JOINT_COLOR):
    h, w = canvas.shape[:2]
    pts = [(int(p[0] * w), int(p[1] * h)) for p in pose]
    for chain in FINGER_INDICES.values():
        poly = np.array([pts[i] for i in chain], dtype=np.int32)
        cv2.polylines(canvas, [poly], False, color, SKELETON_THICKNESS, cv2.LINE_AA)
    for pt in pts:
        cv2.circle(canvas, pt, JOINT_RADIUS, joint_color, -1, cv2.LINE_AA)
    return canvas


def draw_text(img, text, x, y, color=(0, 0, 0)):
    cv2.putText(img, text, (x, y), cv2.FONT_HERSHEY_SIMPLEX, 0.55, color, 2)


class FrameCompositor:
    """Turns session state into an ordered draw list, then paints it.

    plan() only reads state; the smoke pool advances itself when its SmokeDraw
    entry is painted.
    """

    def __init__(self, width, height):
        self.width = width
        self.height = height

    def clone_transform(self, actor):
        tx = actor.x + self.width * (1.0 - actor.scale) / 2.0
        return PersonDraw(float(tx), float(actor.y), float(actor.scale))

    def plan(self, triggered, active_actors, hands=()):
        commands = []
        if triggered:
            for actor in active_actors:
                commands.append(self.clone_transform(actor))
            # the original stays on top of its clones
            commands.append(IDENTITY)
            commands.append(SmokeDraw())
        else:
            commands.append(IDENTITY)
        for pose in hands:
            if pose is not None:
                commands.append(HandDraw(pose))
        return commands

    def paint(self, canvas, person, alpha, commands, pool=None, now=None):
        for cmd in commands:
            if isinstance(cmd, PersonDraw):
                if person is not None:
                    draw_person(canvas, person, alpha, cmd.tx, cmd.ty, cmd.scale)
            elif isinstance(cmd, SmokeDraw):
                if pool is not None:
                    pool.draw(canvas, now)
            elif isinstance(cmd, HandDraw):
                draw_finger_skeleton(canvas, cmd.pose)
        return canvas
