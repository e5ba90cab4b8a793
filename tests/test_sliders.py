import unittest
from energy_bodies.state.sliders import SliderStore, SliderConfig

class TestSliderStore(unittest.TestCase):
    def test_external_apply_is_interpolated(self):
        s = SliderStore()
        self.assertTrue(s.apply({"anxiety": 5}, now=1.0))
        self.assertAlmostEqual(s.get("anxiety"), 1.75)
        s.apply(region={"chest": 5}, now=1.0)
        self.assertAlmostEqual(s.get("chest"), 1.75)

    def test_reset_blocks_external_updates(self):
        s = SliderStore()
        s.set("joy", 4.0)
        s.reset(now=10.0)
        self.assertEqual(s.get("joy"), 0.0)
        self.assertTrue(s.cooldown_active(10.3))
        self.assertFalse(s.apply({"joy": 5}, now=10.3))
        self.assertEqual(s.get("joy"), 0.0)
        self.assertTrue(s.apply({"joy": 5}, now=11.0))
        self.assertAlmostEqual(s.get("joy"), 1.75)

    def test_force_bypasses_cooldown(self):
        s = SliderStore()
        s.reset(now=10.0)
        self.assertTrue(s.apply({"calm": 5}, force=True, now=10.1))
        self.assertAlmostEqual(s.get("calm"), 1.75)

    def test_unknown_and_bad_values(self):
        s = SliderStore()
        s.set("fear", 2.0)
        s.apply({"bogus": 5, "fear": "not-a-number"}, region={"tail": 3}, now=0.0)
        self.assertAlmostEqual(s.get("fear"), 1.3)
        self.assertNotIn("bogus", s.snapshot()["emotion"])
        self.assertNotIn("tail", s.snapshot()["region"])
        with self.assertRaises(KeyError):
            s.get("bogus")

    def test_values_are_clamped(self):
        s = SliderStore(SliderConfig(spine_max=100.0))
        self.assertEqual(s.set("anger", 9.0), 5.0)
        self.assertEqual(s.set("anger", -3.0), 0.0)
        self.assertEqual(s.set("spine", 150.0), 100.0)
        self.assertEqual(s.set("spine", 60.0), 60.0)
        self.assertEqual(s.set("head", float("nan")), 0.0)
        for _ in range(50):
            s.blend("legs_feet", 12.0, 0.5)
        self.assertEqual(s.get("legs_feet"), 5.0)

    def test_region_widths_order(self):
        s = SliderStore()
        s.set("head", 1.0)
        s.set("legs_feet", 2.0)
        s.set("spine", 50.0)
        self.assertEqual(s.region_widths(), [1.0, 0.0, 0.0, 0.0, 0.0, 2.0])

if __name__ == '__main__':
    unittest.main()
