from dataclasses import dataclass
from typing import Optional, Tuple, Dict, Any
import math
import time
from ..shared.pose import PoseResult, DEFAULT_FRAME_SIZE, dist, midpoint, lerp, clamp

@dataclass
class FollowConfig:
    enabled: bool = False
    axis: str = "both"             # both | x | y
    fresh_s: float = 0.3           # transform ignored once older than this
    min_kp_confidence: float = 0.5
    baseline_shoulder_px: float = 220.0
    scale_min: float = 0.6
    scale_max: float = 1.8
    lerp_tx: float = 0.20
    lerp_ty: float = 0.20
    lerp_rot: float = 0.18
    lerp_sc: float = 0.12

@dataclass
class PoseTransform:
    translate_x: float = DEFAULT_FRAME_SIZE[0] / 2.0
    translate_y: float = DEFAULT_FRAME_SIZE[1] / 2.0
    rotation: float = 0.0
    scale: float = 1.0
    last_seen: float = 0.0

class PoseFollowTracker:
    """Smoothed torso centroid / rotation / scale, with staleness tracking."""
    def __init__(self, cfg: FollowConfig = None):
        self.cfg = cfg or FollowConfig()
        self.enabled = self.cfg.enabled
        self.axis = self.cfg.axis
        self.transform = PoseTransform()
        self.frame_size = DEFAULT_FRAME_SIZE

    def update(self, pose: PoseResult) -> bool:
        thr = self.cfg.min_kp_confidence
        ls, rs = pose.get("left_shoulder", thr), pose.get("right_shoulder", thr)
        lh, rh = pose.get("left_hip", thr), pose.get("right_hip", thr)
        if not (ls and rs and lh and rh):
            return False
        self.frame_size = pose.frame_size
        cx = (ls[0] + rs[0] + lh[0] + rh[0]) / 4.0
        cy = (ls[1] + rs[1] + lh[1] + rh[1]) / 4.0
        sx, sy = midpoint(ls, rs)
        hx, hy = midpoint(lh, rh)
        ang = math.atan2(hy - sy, hx - sx) - math.pi / 2
        sc = clamp(dist(ls, rs) / self.cfg.baseline_shoulder_px, self.cfg.scale_min, self.cfg.scale_max)

        t, c = self.transform, self.cfg
        t.translate_x = lerp(t.translate_x, cx, c.lerp_tx)
        t.translate_y = lerp(t.translate_y, cy, c.lerp_ty)
        t.rotation = lerp(t.rotation, ang, c.lerp_rot)
        t.scale = lerp(t.scale, sc, c.lerp_sc)
        t.last_seen = pose.ts
        return True

    def is_active(self, now: Optional[float] = None) -> bool:
        now = time.time() if now is None else now
        return self.enabled and (now - self.transform.last_seen) < self.cfg.fresh_s

    def display_offset(self, view_size: Tuple[float, float], now: Optional[float] = None) -> Tuple[float, float]:
        """Translation a renderer applies to follow the body; (0, 0) when the transform is stale."""
        if not self.is_active(now):
            return (0.0, 0.0)
        vw, vh = self.frame_size
        s = min(view_size[0] / vw, view_size[1] / vh)
        dx = (self.transform.translate_x - vw / 2.0) * s
        dy = (self.transform.translate_y - vh / 2.0) * s
        return (dx if self.axis in ("both", "x") else 0.0,
                dy if self.axis in ("both", "y") else 0.0)

    def deactivate(self, now: Optional[float] = None):
        now = time.time() if now is None else now
        self.enabled = False
        self.axis = "both"
        vw, vh = self.frame_size
        self.transform = PoseTransform(vw / 2.0, vh / 2.0, 0.0, 1.0, now)

    def as_dict(self) -> Dict[str, Any]:
        t = self.transform
        return {"tx": t.translate_x, "ty": t.translate_y, "rot": t.rotation, "scale": t.scale}
