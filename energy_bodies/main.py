import os, time, signal, sys, argparse, json, logging, yaml
os.environ.setdefault("PYTHONUNBUFFERED","1")

from .engine import EnergyBodiesEngine, EngineConfig
from .affect.mapper import AffectConfig, Range
from .regions.coupler import CouplingConfig
from .follow.tracker import FollowConfig
from .state.sliders import SliderConfig
from .telemetry.relay import RelayEmitter, DummyEmitter
from .pose_backends.mock_pose import MockBackend, sequence_demo
from .pose_backends.jsonl_replay import JsonlReplayBackend

def load_config(path: str) -> dict:
    if not path or not os.path.exists(path):
        print(f"⚠️ Config file not found ({path}); using defaults")
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}

def _section(cfg: dict, name: str) -> dict:
    v = cfg.get(name, {})
    return v if isinstance(v, dict) else {}

def _range(d: dict, default: Range) -> Range:
    if not isinstance(d, dict):
        return default
    in_max = d.get("in_max", default.in_max)
    return Range(float(d.get("in_min", default.in_min)),
                 None if in_max is None else float(in_max),
                 float(d.get("out_min", default.out_min)),
                 float(d.get("out_max", default.out_max)))

def make_affect_config(cfg: dict) -> AffectConfig:
    v, e = _section(cfg, "velocity"), _section(cfg, "emotions")
    base = AffectConfig()
    return AffectConfig(
        min_kp_confidence=float(v.get("kp_min_score", base.min_kp_confidence)),
        v_norm_in_min=float(v.get("v_norm_in_min", base.v_norm_in_min)),
        v_norm_in_max=float(v.get("v_norm_in_max", base.v_norm_in_max)),
        v_blend=float(v.get("v_blend", base.v_blend)),
        fast_ema=float(v.get("fast_ema", base.fast_ema)),
        slow_ema=float(v.get("slow_ema", base.slow_ema)),
        anger_burst_min=float(v.get("anger_burst_min", base.anger_burst_min)),
        anger_burst_max=float(v.get("anger_burst_max", base.anger_burst_max)),
        blend_pose_vs_slider=float(e.get("blend_pose_vs_slider", base.blend_pose_vs_slider)),
        anxiety_from_velocity=_range(e.get("anxiety_from_velocity"), base.anxiety_from_velocity),
        calm_from_balance=_range(e.get("calm_from_balance"), base.calm_from_balance),
        sadness_from_avg_y=_range(e.get("sadness_from_avg_y"), base.sadness_from_avg_y),
        fear_from_lean=_range(e.get("fear_from_lean"), base.fear_from_lean),
        joy_from_structure=_range(e.get("joy_from_structure"), base.joy_from_structure),
    )

def make_coupling_config(cfg: dict) -> CouplingConfig:
    c = _section(cfg, "coupling")
    out = CouplingConfig(min_kp_confidence=float(_section(cfg, "velocity").get("kp_min_score", 0.5)))
    spine = c.get("spine", {}) if isinstance(c.get("spine"), dict) else {}
    out.spine_sway_range = float(spine.get("sway_range", out.spine_sway_range))
    out.spine_lerp = float(spine.get("lerp", out.spine_lerp))
    # per-region overrides: vel_min / vel_max / geo_min / geo_max / lerp
    for rule in out.rules:
        r = c.get(rule.name)
        if not isinstance(r, dict):
            continue
        for key in ("vel_min", "vel_max", "geo_min", "geo_max", "lerp", "motion_weight", "geometry_weight"):
            if key in r:
                setattr(rule, key, float(r[key]))
    return out

def make_follow_config(cfg: dict) -> FollowConfig:
    f = _section(cfg, "follow")
    base = FollowConfig()
    lerp_cfg = f.get("lerp", {}) if isinstance(f.get("lerp"), dict) else {}
    return FollowConfig(
        enabled=bool(f.get("enabled", base.enabled)),
        axis=str(f.get("axis", base.axis)),
        fresh_s=float(f.get("fresh_s", base.fresh_s)),
        baseline_shoulder_px=float(f.get("baseline_shoulder_px", base.baseline_shoulder_px)),
        lerp_tx=float(lerp_cfg.get("tx", base.lerp_tx)),
        lerp_ty=float(lerp_cfg.get("ty", base.lerp_ty)),
        lerp_rot=float(lerp_cfg.get("rot", base.lerp_rot)),
        lerp_sc=float(lerp_cfg.get("sc", base.lerp_sc)),
    )

def make_slider_config(cfg: dict) -> SliderConfig:
    s = _section(cfg, "sliders")
    base = SliderConfig()
    return SliderConfig(
        spine_max=float(s.get("spine_max", base.spine_max)),
        external_blend=float(s.get("external_blend", base.external_blend)),
        reset_cooldown_s=float(s.get("reset_cooldown_s", base.reset_cooldown_s)),
    )

def make_engine_config(cfg: dict) -> EngineConfig:
    t, s = _section(cfg, "telemetry"), _section(cfg, "session")
    base = EngineConfig()
    return EngineConfig(
        min_kp_confidence=float(_section(cfg, "velocity").get("kp_min_score", base.min_kp_confidence)),
        session_min_pose_score=float(s.get("min_pose_score", base.session_min_pose_score)),
        metrics_interval_s=float(t.get("metrics_interval_s", base.metrics_interval_s)),
        echo_interval_s=float(t.get("echo_interval_s", base.echo_interval_s)),
        pose_interval_s=float(t.get("pose_interval_s", base.pose_interval_s)),
    )

def make_backend(backend_cfg: dict):
    kind = backend_cfg.get("type", "mock")
    if kind == "mock":
        print("🧪 Using mock backend (synthetic demo sequence)")
        return MockBackend(sequence_demo(int(backend_cfg.get("fps", 15))))
    elif kind == "jsonl":
        path = backend_cfg.get("path", "detections.jsonl")
        print(f"📼 Replaying detections from {path}")
        return JsonlReplayBackend(path, loop=bool(backend_cfg.get("loop", False)))
    else:
        raise ValueError(f"Unknown backend type: {kind}")

def make_emitter(cfg: dict):
    if cfg.get("type", "dummy") == "dummy":
        return DummyEmitter()
    url = cfg.get("url") or os.getenv("EB_RELAY_URL")
    if not url:
        print("⚠️ Relay URL not found (config/env) – using DummyEmitter")
        return DummyEmitter()
    try:
        return RelayEmitter(url, timeout_s=float(cfg.get("timeout_s", 0.5)))
    except Exception as e:
        print(f"⚠️ Failed to initialize RelayEmitter ({e}); falling back to DummyEmitter")
        return DummyEmitter()

def build_engine(cfg: dict, emitter=None) -> EnergyBodiesEngine:
    return EnergyBodiesEngine(
        cfg=make_engine_config(cfg),
        affect_cfg=make_affect_config(cfg),
        coupling_cfg=make_coupling_config(cfg),
        follow_cfg=make_follow_config(cfg),
        slider_cfg=make_slider_config(cfg),
        emitter=emitter,
    )

def run(config_path: str, max_frames: int = 0, summary_out: str = None):
    cfg = load_config(config_path)
    log_cfg = _section(cfg, "logging")
    logging.basicConfig(level=getattr(logging, str(log_cfg.get("level", "INFO")).upper(), logging.INFO),
                        format="%(asctime)s %(name)s %(levelname)s %(message)s")
    print(f"🛠  Loaded config file: {config_path}")

    backend = make_backend(_section(cfg, "backend"))
    emitter = make_emitter(_section(cfg, "telemetry"))
    engine = build_engine(cfg, emitter)
    fps = float(_section(cfg, "backend").get("fps", 15))
    active_debug_interval = float(log_cfg.get("active_debug_interval_s", 5.0))

    running = True
    def handle_sig(*_):
        nonlocal running
        running = False
    for s in (signal.SIGINT, signal.SIGTERM):
        signal.signal(s, handle_sig)

    print(f"🚀 Energy Bodies starting | Backend={_section(cfg, 'backend').get('type', 'mock')} | Emitter={type(emitter).__name__}")
    sys.stdout.flush()
    engine.start_tracking()
    start_time = time.time()
    last_debug = 0.0
    summary = None
    try:
        while running:
            try:
                pose = backend.infer(None)
            except Exception as e:
                print(f"⚠️ backend.infer error: {e}; skipping frame")
                time.sleep(0.05)
                continue
            if pose is None or not pose.keypoints:
                print("🏁 Detector stream ended")
                break
            m = engine.update(pose)
            now = time.time()
            if now - last_debug >= active_debug_interval:
                emo = engine.sliders.snapshot()["emotion"]
                print(f"🔍 ACTIVE: frames={engine.frames}, vel={m.get('velocity', 0):.3f}, "
                      f"structure={m.get('structure', 0):.2f}, lean={m.get('posture_lean', 0):.2f}, "
                      + ", ".join(f"{k}={v:.2f}" for k, v in emo.items()))
                last_debug = now
            if max_frames and engine.frames >= max_frames:
                break
            if isinstance(backend, MockBackend):
                time.sleep(1.0/fps)
    except KeyboardInterrupt:
        print("🛑 Keyboard interrupt received")
    finally:
        engine.stop_tracking()
        if engine.session.active:
            summary = engine.end_session()
            text = json.dumps(summary.to_dict(), indent=2)
            print(f"📊 Session summary:\n{text}")
            if summary_out:
                try:
                    with open(summary_out, "w") as f:
                        f.write(text)
                    print(f"💾 Summary written to {summary_out}")
                except OSError as e:
                    print(f"⚠️ Could not write summary: {e}")
        uptime = time.time() - start_time
        print(f"✅ Energy Bodies shutdown complete (uptime={uptime:.1f}s frames={engine.frames})")
    return summary

def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--config", default="config.yaml")
    ap.add_argument("--max-frames", type=int, default=0)
    ap.add_argument("--summary-out", default=None)
    ns = ap.parse_args()
    run(ns.config, max_frames=ns.max_frames, summary_out=ns.summary_out)

if __name__ == "__main__":
    main()
