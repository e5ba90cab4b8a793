from dataclasses import dataclass, field
from typing import Optional, Dict, Any
import math
from ..shared.pose import PoseResult, dist, midpoint, lerp, remap, clamp
from ..motion.velocity import VelocityEstimator
from ..state.sliders import SliderStore

@dataclass
class Range:
    in_min: float
    in_max: Optional[float]  # None -> lazily taken from the frame height
    out_min: float = 0.0
    out_max: float = 5.0

    def apply(self, v: float) -> float:
        return clamp(remap(v, self.in_min, self.in_max, self.out_min, self.out_max), 0.0, 5.0)

@dataclass
class AffectConfig:
    min_kp_confidence: float = 0.5
    # velocity normalization + three EMAs
    v_norm_in_min: float = 0.015
    v_norm_in_max: float = 0.2
    v_blend: float = 0.125
    fast_ema: float = 0.8
    slow_ema: float = 0.01
    anger_burst_min: float = 0.02
    anger_burst_max: float = 1.0
    # geometry smoothing
    structure_alpha: float = 0.15
    balance_alpha: float = 0.15
    lean_alpha: float = 0.15
    avg_y_alpha: float = 0.1
    structure_ratio_min: float = 0.7
    structure_ratio_max: float = 2.0
    lean_max_rad: float = math.pi / 6
    # pose estimate -> stored emotion
    blend_pose_vs_slider: float = 0.30
    anxiety_from_velocity: Range = field(default_factory=lambda: Range(0.3, 1.5, 0, 5))
    calm_from_balance: Range = field(default_factory=lambda: Range(0.2, 50, 5, 0))
    sadness_from_avg_y: Range = field(default_factory=lambda: Range(0, None, 0, 5))
    fear_from_lean: Range = field(default_factory=lambda: Range(0, 1.0, 0, 5))
    joy_from_structure: Range = field(default_factory=lambda: Range(0.25, 1.0, 0, 5))

@dataclass
class AffectState:
    structure: float = 0.0
    balance: float = 0.0
    posture_lean: float = 0.0
    avg_y: float = 0.0
    velocity: float = 0.0
    fast_velocity: float = 0.0
    slow_velocity: float = 0.0

    def reset(self):
        self.structure = self.balance = self.posture_lean = self.avg_y = 0.0
        self.velocity = self.fast_velocity = self.slow_velocity = 0.0

class AffectMapper:
    """Pose geometry + motion -> six emotion estimates blended into the slider store."""
    def __init__(self, cfg: AffectConfig = None):
        self.cfg = cfg or AffectConfig()
        self.state = AffectState()

    def _structure(self, ls, rs, lw, rw) -> float:
        if not (ls and rs and lw and rw):
            return 0.0
        span = dist(ls, rs)
        if span < 1e-6:
            return 0.0
        # each shoulder against the opposite wrist: crossing arms read closed
        reach = (dist(ls, rw) / span + dist(rs, lw) / span) * 0.5
        return clamp(remap(reach, self.cfg.structure_ratio_min, self.cfg.structure_ratio_max, 0.0, 1.0), 0.0, 1.0)

    def _lean(self, ls, rs, lh, rh) -> float:
        if not (ls and rs and lh and rh):
            return 0.0
        sx, sy = midpoint(ls, rs)
        hx, hy = midpoint(lh, rh)
        if abs(hx - sx) < 1e-6 and abs(hy - sy) < 1e-6:
            return 0.0
        # angle from vertical; 0 when hips sit straight below shoulders
        ang = math.atan2(abs(hx - sx), abs(hy - sy))
        return clamp(remap(ang, 0.0, self.cfg.lean_max_rad, 0.0, 1.0), 0.0, 1.0)

    def update(self, pose: PoseResult, velocity: VelocityEstimator, store: SliderStore) -> Dict[str, Any]:
        """One detection tick. Returns the pose estimates, or {} when the frame was skipped."""
        c, s = self.cfg, self.state
        thr = c.min_kp_confidence
        if not pose.confident(thr):
            return {}

        v_avg = velocity.global_velocity(pose)
        v_norm = clamp(remap(v_avg, c.v_norm_in_min, c.v_norm_in_max, 0.0, 1.0), 0.0, 1.0)
        s.velocity = lerp(s.velocity, v_norm, c.v_blend)
        s.fast_velocity = lerp(s.fast_velocity, v_norm, c.fast_ema)
        s.slow_velocity = lerp(s.slow_velocity, v_norm, c.slow_ema)
        burst = max(0.0, s.fast_velocity - s.slow_velocity)
        pose_anger = clamp(remap(burst, c.anger_burst_min, c.anger_burst_max, 0.0, 1.0), 0.0, 1.0) * 5.0

        ls, rs = pose.get("left_shoulder", thr), pose.get("right_shoulder", thr)
        lw, rw = pose.get("left_wrist", thr), pose.get("right_wrist", thr)
        lh, rh = pose.get("left_hip", thr), pose.get("right_hip", thr)

        s.structure = lerp(s.structure, self._structure(ls, rs, lw, rw), c.structure_alpha)
        if ls and rs and lh and rh:
            s.balance = lerp(s.balance, abs(ls[1] - rs[1]) + abs(lh[1] - rh[1]), c.balance_alpha)
        s.posture_lean = lerp(s.posture_lean, self._lean(ls, rs, lh, rh), c.lean_alpha)
        if ls and rs:
            s.avg_y = lerp(s.avg_y, (ls[1] + rs[1]) / 2.0, c.avg_y_alpha)

        if c.sadness_from_avg_y.in_max is None:
            c.sadness_from_avg_y.in_max = float(pose.frame_size[1])

        estimates = {
            "anxiety": c.anxiety_from_velocity.apply(s.velocity),
            "calm": c.calm_from_balance.apply(s.balance),
            "sadness": c.sadness_from_avg_y.apply(s.avg_y),
            "fear": c.fear_from_lean.apply(s.posture_lean),
            "joy": c.joy_from_structure.apply(s.structure),
            "anger": pose_anger,
        }
        for name, est in estimates.items():
            store.blend(name, est, c.blend_pose_vs_slider)
        estimates["burst"] = burst
        return estimates

    def reset(self):
        self.state.reset()
