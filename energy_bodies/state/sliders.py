"""
Slider state shared between the pose pipeline, external control and the renderer.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Any
import logging
import math
import time
from ..shared.pose import EMOTION_NAMES, REGION_NAMES, SPINE, lerp, clamp

@dataclass
class SliderConfig:
    value_max: float = 5.0
    spine_max: float = 100.0
    external_blend: float = 0.35
    reset_cooldown_s: float = 0.6

def _as_number(v: Any) -> float:
    try:
        x = float(v)
    except (TypeError, ValueError):
        return 0.0
    return x if math.isfinite(x) else 0.0

class SliderStore:
    """
    Named values: six emotions, six regions and the spine sway.

    Two write paths land on the same cells: `blend` for the pose pipeline
    (every detection tick) and `apply` for external control. Both
    interpolate against whatever is currently stored, so the last writer
    never simply wins.
    """
    def __init__(self, cfg: SliderConfig = None):
        self.cfg = cfg or SliderConfig()
        self.emotion: Dict[str, float] = {n: 0.0 for n in EMOTION_NAMES}
        self.region: Dict[str, float] = {n: 0.0 for n in REGION_NAMES + [SPINE]}
        self.blocked_until = 0.0
        self.logger = logging.getLogger('EnergyBodies.Sliders')

    def _cell(self, name: str) -> Dict[str, float]:
        if name in self.emotion:
            return self.emotion
        if name in self.region:
            return self.region
        raise KeyError(f"Unknown slider: {name}")

    def _bounds(self, name: str):
        return (0.0, self.cfg.spine_max) if name == SPINE else (0.0, self.cfg.value_max)

    def get(self, name: str) -> float:
        return self._cell(name)[name]

    def set(self, name: str, value: float) -> float:
        lo, hi = self._bounds(name)
        v = clamp(_as_number(value), lo, hi)
        self._cell(name)[name] = v
        return v

    def blend(self, name: str, target: float, alpha: float) -> float:
        """Pose-driven write: move the stored value toward `target`."""
        return self.set(name, lerp(self.get(name), target, alpha))

    def cooldown_active(self, now: Optional[float] = None) -> bool:
        now = time.time() if now is None else now
        return now < self.blocked_until

    def apply(self, emotion: Optional[Dict[str, Any]] = None, region: Optional[Dict[str, Any]] = None,
              force: bool = False, now: Optional[float] = None) -> bool:
        """External write. Returns False when dropped because of the reset cooldown."""
        if not force and self.cooldown_active(now):
            self.logger.debug("⏸️ External slider update dropped (reset cooldown)")
            return False
        a = self.cfg.external_blend
        for k, v in (emotion or {}).items():
            if k in self.emotion:
                self.set(k, lerp(self.emotion[k], _as_number(v), a))
        for k, v in (region or {}).items():
            if k in self.region:
                self.set(k, lerp(self.region[k], _as_number(v), a))
        return True

    def reset(self, now: Optional[float] = None):
        now = time.time() if now is None else now
        for n in self.emotion:
            self.emotion[n] = 0.0
        for n in self.region:
            self.region[n] = 0.0
        self.blocked_until = now + self.cfg.reset_cooldown_s

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        return {"emotion": dict(self.emotion), "region": dict(self.region)}

    def region_widths(self):
        return [self.region[n] for n in REGION_NAMES]
