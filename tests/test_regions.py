import random
import unittest
from energy_bodies.shared.pose import PoseResult, COCO17, REGION_NAMES
from energy_bodies.motion.velocity import VelocityEstimator
from energy_bodies.state.sliders import SliderStore
from energy_bodies.regions.coupler import RegionCoupler, combine, default_rules
from energy_bodies.pose_backends.mock_pose import standing_kp, sequence_occlusion

def rule(name):
    return next(r for r in default_rules() if r.name == name)

class TestCombine(unittest.TestCase):
    def test_abdomen_short_torso_inverts(self):
        pts = {"left_shoulder": (0, 0), "right_shoulder": (100, 0),
               "left_hip": (0, 100), "right_hip": (100, 100)}
        self.assertAlmostEqual(combine(rule("abdomen"), 0.0, pts), 3.0)

    def test_arms_wide_and_fast_saturates(self):
        pts = {"left_shoulder": (0, 0), "right_shoulder": (100, 0),
               "left_wrist": (-200, 0), "right_wrist": (300, 0)}
        self.assertEqual(combine(rule("arms_hands"), 0.02, pts), 5.0)

    def test_missing_required_point(self):
        pts = {"left_shoulder": (0, 0), "right_shoulder": (100, 0)}
        self.assertIsNone(combine(rule("arms_hands"), 0.01, pts))
        self.assertIsNone(combine(rule("head"), 0.04, pts))

    def test_coincident_shoulders_do_not_divide_by_zero(self):
        pts = {"left_shoulder": (50, 50), "right_shoulder": (50, 50),
               "left_wrist": (0, 0), "right_wrist": (100, 0)}
        self.assertEqual(combine(rule("arms_hands"), 0.0, pts), 5.0)

class TestRegionCoupler(unittest.TestCase):
    def setUp(self):
        self.coupler = RegionCoupler()
        self.vel = VelocityEstimator()
        self.store = SliderStore()

    def test_centred_spine(self):
        targets = self.coupler.update(PoseResult(standing_kp(), 0.9, 0.0), self.vel, self.store)
        self.assertAlmostEqual(targets["spine"], 50.0)
        self.assertAlmostEqual(self.store.get("spine"), 10.0)

    def test_spine_follows_sway(self):
        for i in range(40):
            self.coupler.update(PoseResult(standing_kp(cx=500.0), 0.9, i/15), self.vel, self.store)
        self.assertAlmostEqual(self.store.get("spine"), 100.0, delta=0.1)

    def test_random_poses_stay_in_range(self):
        rng = random.Random(7)
        for i in range(300):
            kp = {n: (rng.uniform(-50, 700), rng.uniform(-50, 530), rng.random()) for n in COCO17}
            self.coupler.update(PoseResult(kp, rng.random(), i/15), self.vel, self.store)
            for n in REGION_NAMES:
                self.assertGreaterEqual(self.store.get(n), 0.0)
                self.assertLessEqual(self.store.get(n), 5.0)
            self.assertGreaterEqual(self.store.get("spine"), 0.0)
            self.assertLessEqual(self.store.get("spine"), 100.0)

    def test_occluded_regions_hold_their_value(self):
        frames = list(sequence_occlusion(fps=15, visible_s=1.0, hidden_s=1.0, start=0.0))
        for pose in frames[:15]:
            self.coupler.update(pose, self.vel, self.store)
        held = {n: self.store.get(n) for n in ("neck", "chest", "arms_hands", "abdomen", "legs_feet", "spine")}
        for pose in frames[15:30]:
            targets = self.coupler.update(pose, self.vel, self.store)
            self.assertEqual(set(targets), {"head"})
        for n, v in held.items():
            self.assertEqual(self.store.get(n), v)

if __name__ == '__main__':
    unittest.main()
