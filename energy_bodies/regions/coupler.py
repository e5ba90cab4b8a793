from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple, List
from ..shared.pose import PoseResult, REGION_KEYPOINTS, SPINE, dist, midpoint, remap, clamp
from ..motion.velocity import VelocityEstimator
from ..state.sliders import SliderStore

Point = Tuple[float, float]
Geometry = Callable[[Dict[str, Point]], Optional[float]]

EPS = 1e-6

def _wrist_spread(p: Dict[str, Point]) -> Optional[float]:
    span = max(dist(p["left_shoulder"], p["right_shoulder"]), EPS)
    return dist(p["left_wrist"], p["right_wrist"]) / span

def _arm_reach(p: Dict[str, Point]) -> Optional[float]:
    lw, rw = p.get("left_wrist"), p.get("right_wrist")
    if not (lw and rw):
        return 0.0
    span = max(dist(p["left_shoulder"], p["right_shoulder"]), EPS)
    return (dist(p["left_shoulder"], lw) / span + dist(p["right_shoulder"], rw) / span) * 0.5

def _torso_length(p: Dict[str, Point]) -> Optional[float]:
    span = max(dist(p["left_shoulder"], p["right_shoulder"]), EPS)
    sm = midpoint(p["left_shoulder"], p["right_shoulder"])
    hm = midpoint(p["left_hip"], p["right_hip"])
    return dist(sm, hm) / span

def _ankle_spread(p: Dict[str, Point]) -> Optional[float]:
    hip_span = max(dist(p["left_hip"], p["right_hip"]), EPS)
    return dist(p["left_ankle"], p["right_ankle"]) / hip_span

SHOULDERS = ("left_shoulder", "right_shoulder")
HIPS = ("left_hip", "right_hip")
WRISTS = ("left_wrist", "right_wrist")
ANKLES = ("left_ankle", "right_ankle")

@dataclass
class RegionRule:
    name: str
    required: Tuple[str, ...]
    vel_min: float
    vel_max: float
    lerp: float
    motion_weight: float = 1.0
    geometry: Optional[Geometry] = None
    geo_min: float = 0.0
    geo_max: float = 1.0
    geo_invert: bool = False
    geometry_weight: float = 0.0

def default_rules() -> List[RegionRule]:
    return [
        RegionRule("head", ("nose",), 0.035, 0.05, lerp=0.10),
        RegionRule("neck", SHOULDERS, 0.0005, 0.015, lerp=0.18),
        RegionRule("arms_hands", SHOULDERS + WRISTS, 0.002, 0.02, lerp=0.12, motion_weight=0.5,
                   geometry=_wrist_spread, geo_min=2.0, geo_max=5.0, geometry_weight=1.0),
        RegionRule("chest", SHOULDERS, 0.00005, 0.010, lerp=0.20, motion_weight=0.4,
                   geometry=_arm_reach, geo_min=0.7, geo_max=2.0, geometry_weight=0.6),
        RegionRule("abdomen", SHOULDERS + HIPS, 0.025, 0.0325, lerp=0.10, motion_weight=0.4,
                   geometry=_torso_length, geo_min=1.20, geo_max=1.40, geo_invert=True, geometry_weight=0.6),
        RegionRule("legs_feet", HIPS + ANKLES, 0.0001, 0.012, lerp=0.20, motion_weight=0.5,
                   geometry=_ankle_spread, geo_min=0.9, geo_max=3.0, geometry_weight=0.5),
    ]

@dataclass
class CouplingConfig:
    min_kp_confidence: float = 0.5
    spine_sway_range: float = 1.0
    spine_lerp: float = 0.20
    rules: List[RegionRule] = field(default_factory=default_rules)

def _to_unit5(v: float, lo: float, hi: float) -> float:
    return clamp(remap(v, lo, hi, 0.0, 5.0), 0.0, 5.0)

def combine(rule: RegionRule, velocity: float, points: Dict[str, Point]) -> Optional[float]:
    """Weighted motion + geometry value in [0,5]; None when the region must be skipped."""
    if any(n not in points for n in rule.required):
        return None
    value = rule.motion_weight * _to_unit5(velocity, rule.vel_min, rule.vel_max)
    if rule.geometry is not None:
        raw = rule.geometry(points)
        if raw is None:
            return None
        g = _to_unit5(raw, rule.geo_min, rule.geo_max)
        if rule.geo_invert:
            g = 5.0 - g
        value += rule.geometry_weight * g
    return clamp(value, 0.0, 5.0)

class RegionCoupler:
    def __init__(self, cfg: CouplingConfig = None):
        self.cfg = cfg or CouplingConfig()

    def update(self, pose: PoseResult, velocity: VelocityEstimator, store: SliderStore) -> Dict[str, float]:
        """Blend every region whose keypoints are present; returns the raw combined targets."""
        points = pose.confident(self.cfg.min_kp_confidence)
        velocity.update_regions(pose)
        targets: Dict[str, float] = {}
        for rule in self.cfg.rules:
            v = velocity.parts_velocity(REGION_KEYPOINTS.get(rule.name, rule.required))
            value = combine(rule, v, points)
            if value is None:
                continue
            store.blend(rule.name, value, rule.lerp)
            targets[rule.name] = value

        ls, rs = points.get("left_shoulder"), points.get("right_shoulder")
        if ls and rs:
            span = max(dist(ls, rs), EPS)
            sway = ((ls[0] + rs[0]) * 0.5 - pose.frame_size[0] / 2.0) / span
            r = self.cfg.spine_sway_range
            spine_max = store.cfg.spine_max
            target = clamp(remap(sway, -r, r, 0.0, spine_max), 0.0, spine_max)
            store.blend(SPINE, target, self.cfg.spine_lerp)
            targets[SPINE] = target
        return targets
