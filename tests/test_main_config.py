import json
import os
import tempfile
import unittest
import yaml
from energy_bodies import main as runner

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

class TestConfig(unittest.TestCase):
    def test_repo_config_builds_engine(self):
        cfg = runner.load_config(os.path.join(ROOT, "config.yaml"))
        eng = runner.build_engine(cfg)
        self.assertEqual(eng.sliders.cfg.spine_max, 100.0)
        self.assertEqual(eng.sliders.cfg.reset_cooldown_s, 0.6)
        self.assertIsNone(eng.affect.cfg.sadness_from_avg_y.in_max)
        arms = next(r for r in eng.regions.cfg.rules if r.name == "arms_hands")
        self.assertEqual((arms.vel_min, arms.vel_max), (0.002, 0.02))
        self.assertFalse(eng.follow.enabled)
        self.assertEqual(eng.cfg.echo_interval_s, 0.25)

    def test_missing_file_uses_defaults(self):
        self.assertEqual(runner.load_config(os.path.join(ROOT, "no-such-config.yaml")), {})
        eng = runner.build_engine({})
        self.assertEqual(eng.affect.cfg.blend_pose_vs_slider, 0.30)

    def test_overrides(self):
        cfg = {"coupling": {"head": {"vel_max": 0.08}, "spine": {"lerp": 0.5}},
               "follow": {"enabled": True, "axis": "x", "lerp": {"tx": 0.5}},
               "emotions": {"fear_from_lean": {"in_min": 0, "in_max": 2.0}}}
        eng = runner.build_engine(cfg)
        head = next(r for r in eng.regions.cfg.rules if r.name == "head")
        self.assertEqual(head.vel_max, 0.08)
        self.assertEqual(eng.regions.cfg.spine_lerp, 0.5)
        self.assertEqual(eng.follow.axis, "x")
        self.assertEqual(eng.follow.cfg.lerp_tx, 0.5)
        self.assertEqual(eng.affect.cfg.fear_from_lean.in_max, 2.0)
        self.assertEqual(eng.affect.cfg.fear_from_lean.out_max, 5.0)

    def test_unknown_backend(self):
        with self.assertRaises(ValueError):
            runner.make_backend({"type": "camera"})

    def test_emitter_selection(self):
        self.assertEqual(type(runner.make_emitter({"type": "dummy"})).__name__, "DummyEmitter")
        os.environ.pop("EB_RELAY_URL", None)
        self.assertEqual(type(runner.make_emitter({"type": "relay"})).__name__, "DummyEmitter")
        em = runner.make_emitter({"type": "relay", "url": "http://relay.local/in", "timeout_s": 0.2})
        self.assertEqual(type(em).__name__, "RelayEmitter")
        self.assertEqual(em.timeout_s, 0.2)

class TestRun(unittest.TestCase):
    def test_mock_run_writes_summary(self):
        tmp = tempfile.mkdtemp()
        cfg_path = os.path.join(tmp, "config.yaml")
        out_path = os.path.join(tmp, "summary.json")
        with open(cfg_path, "w") as f:
            yaml.safe_dump({"backend": {"type": "mock", "fps": 30},
                            "telemetry": {"type": "dummy"},
                            "logging": {"level": "WARNING"}}, f)
        summary = runner.run(cfg_path, max_frames=10, summary_out=out_path)
        self.assertEqual(summary.samples, 10)
        with open(out_path) as f:
            data = json.load(f)
        self.assertEqual(data["samples"], 10)
        self.assertEqual(len(data["region_widths"]), 6)

if __name__ == '__main__':
    unittest.main()
