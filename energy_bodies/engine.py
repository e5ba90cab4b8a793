from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Tuple
import logging
import time
from .shared.pose import PoseResult, EMOTION_NAMES, DEFAULT_FRAME_SIZE
from .motion.velocity import VelocityEstimator
from .affect.mapper import AffectMapper, AffectConfig
from .regions.coupler import RegionCoupler, CouplingConfig
from .follow.tracker import PoseFollowTracker, FollowConfig
from .state.sliders import SliderStore, SliderConfig
from .session.accumulator import SessionAccumulator, SessionSummary
from .telemetry.relay import RateLimiter, DummyEmitter

@dataclass
class EngineConfig:
    min_kp_confidence: float = 0.5
    session_min_pose_score: float = 0.25
    metrics_interval_s: float = 0.08
    echo_interval_s: float = 0.25
    pose_interval_s: float = 0.08
    segment_profile: List[float] = field(default_factory=lambda: [0.0, 1.0, 0.0])

class EnergyBodiesEngine:
    """
    Owns every piece of pipeline state and runs one detection tick at a time.

    Tick order: velocity/cache -> affect -> regions -> follow transform ->
    session sample -> throttled telemetry. Later stages read what earlier
    stages wrote in the same tick.
    """
    def __init__(self, cfg: EngineConfig = None, affect_cfg: AffectConfig = None,
                 coupling_cfg: CouplingConfig = None, follow_cfg: FollowConfig = None,
                 slider_cfg: SliderConfig = None, emitter=None):
        self.cfg = cfg or EngineConfig()
        self.velocity = VelocityEstimator(self.cfg.min_kp_confidence)
        self.affect = AffectMapper(affect_cfg)
        self.regions = RegionCoupler(coupling_cfg)
        self.follow = PoseFollowTracker(follow_cfg)
        self.sliders = SliderStore(slider_cfg)
        self.session = SessionAccumulator()
        self.emitter = emitter if emitter is not None else DummyEmitter()
        self.rl_metrics = RateLimiter(self.cfg.metrics_interval_s)
        self.rl_echo = RateLimiter(self.cfg.echo_interval_s)
        self.rl_pose = RateLimiter(self.cfg.pose_interval_s)
        self.tracking = False
        self.frames = 0
        self.frame_size = DEFAULT_FRAME_SIZE
        self.now: Optional[float] = None  # detection clock, last pose.ts
        self.logger = logging.getLogger('EnergyBodies.Engine')

    # --- detection tick ---
    def update(self, pose: Optional[PoseResult], now: Optional[float] = None) -> Dict[str, Any]:
        if not self.tracking or pose is None:
            return {"tracking": self.tracking, "present": False}
        now = pose.ts if now is None else now
        self.now = now
        self.frames += 1
        self.frame_size = pose.frame_size

        estimates = self.affect.update(pose, self.velocity, self.sliders)
        targets = self.regions.update(pose, self.velocity, self.sliders)
        followed = self.follow.update(pose)
        sampled = self._maybe_sample(pose, now)

        self._maybe_echo(now)
        self._emit_metrics(now)
        self._emit_pose(pose, now)

        s = self.affect.state
        return {
            "tracking": True,
            "present": bool(estimates),
            "velocity": s.velocity,
            "fast_velocity": s.fast_velocity,
            "structure": s.structure,
            "balance": s.balance,
            "posture_lean": s.posture_lean,
            "avg_y": s.avg_y,
            "burst": estimates.get("burst", 0.0),
            "region_targets": targets,
            "followed": followed,
            "sampled": sampled,
        }

    def _maybe_sample(self, pose: PoseResult, now: float) -> bool:
        if not (self.tracking and self.session.active):
            return False
        if pose.score <= self.cfg.session_min_pose_score:
            return False
        self.session.add(self.build_sample(), now)
        return True

    def build_sample(self) -> Dict[str, Any]:
        s = self.affect.state
        return {
            "structure": s.structure,
            "balance": s.balance,
            "posture": s.posture_lean,
            "velocity": s.velocity,
            "emotions": {n: self.sliders.get(n) for n in EMOTION_NAMES},
            "region_widths": self.sliders.region_widths(),
            "segment_profile": list(self.cfg.segment_profile),
        }

    # --- telemetry (best effort) ---
    def _send(self, channel: str, payload: Dict[str, Any]):
        try:
            self.emitter.send(channel, payload)
        except Exception as e:
            self.logger.warning(f"⚠️ Telemetry '{channel}' failed: {e}")

    def _maybe_echo(self, now: float):
        if self.rl_echo.ready(now):
            self._send("echo", self.sliders.snapshot())

    def _emit_metrics(self, now: float):
        if not self.rl_metrics.ready(now):
            return
        s = self.affect.state
        h = float(self.frame_size[1]) or 1.0
        self._send("metrics", {
            "movement_velocity": s.velocity,
            "fast_velocity": s.fast_velocity,
            "structure": s.structure,
            "balance": s.balance / h,
            "posture_lean": s.posture_lean,
            "avg_y": s.avg_y / h,
        })

    def _emit_pose(self, pose: PoseResult, now: float):
        if not pose.keypoints or not self.rl_pose.ready(now):
            return
        vw, vh = pose.frame_size
        pts = [[n, kp[0] / vw, kp[1] / vh, kp[2]] for n, kp in pose.keypoints.items()]
        self._send("pose", {"keypoints": pts, "vw": vw, "vh": vh, "t": pose.ts})

    # --- external control ---
    def _clock(self, now: Optional[float]) -> float:
        # control calls follow pose.ts once a tick has run
        if now is not None:
            return now
        return self.now if self.now is not None else time.time()

    def start_tracking(self, now: Optional[float] = None):
        if self.tracking:
            return
        self.tracking = True
        if not self.session.active:
            self.session.begin(self._clock(now))
        self._send("tracking", {"active": True})
        self.logger.info("▶️ Tracking started")

    def stop_tracking(self):
        if not self.tracking:
            return
        self.tracking = False
        self._send("tracking", {"active": False})
        self.logger.info("⏹️ Tracking stopped")

    def begin_session(self, now: Optional[float] = None):
        self.session.begin(self._clock(now))

    def end_session(self, now: Optional[float] = None) -> Optional[SessionSummary]:
        """Closes the running session; None when nothing was recording."""
        if not self.session.active:
            return None
        return self.session.end(self._clock(now))

    def apply_sliders(self, emotion: Optional[Dict[str, Any]] = None, region: Optional[Dict[str, Any]] = None,
                      force: bool = False, now: Optional[float] = None) -> bool:
        now = self._clock(now)
        applied = self.sliders.apply(emotion, region, force=force, now=now)
        self._maybe_echo(now)
        return applied

    def reset_all(self, echo: bool = True, reset_pose_caches: bool = True, stop_tracking: bool = True,
                  now: Optional[float] = None):
        now = self._clock(now)
        if stop_tracking:
            self.stop_tracking()
        self.sliders.reset(now)
        self.affect.reset()
        self.follow.deactivate(now)
        if reset_pose_caches:
            self.velocity.clear()
        self.logger.info("🔄 Reset: sliders and smoothing zeroed, external input blocked for "
                         f"{self.sliders.cfg.reset_cooldown_s:.1f}s")
        if echo:
            self.rl_echo.reset()
            self._maybe_echo(now)

    # --- render loop (read only) ---
    def render_state(self, view_size: Tuple[float, float], now: Optional[float] = None) -> Dict[str, Any]:
        now = self._clock(now)
        return {
            "sliders": self.sliders.snapshot(),
            "follow_active": self.follow.is_active(now),
            "offset": self.follow.display_offset(view_size, now),
            "transform": self.follow.as_dict(),
            "recording": self.session.active,
            "samples": self.session.samples,
        }
