import json
import os
import tempfile
import unittest
from energy_bodies.pose_backends.jsonl_replay import JsonlReplayBackend, parse_detection

LINES = [
    json.dumps({"t": 1.0, "score": 0.8, "keypoints": [["nose", 100, 50, 0.9], ["left_wrist", 40, 200, 0.7]]}),
    "this is not json",
    "",
    json.dumps({"t": 2.0, "normalized": True, "vw": 640, "vh": 480, "keypoints": [["nose", 0.5, 0.5, 0.6]]}),
    json.dumps({"vw": 1280, "vh": 720, "poses": [
        {"t": 3.0, "keypoints": [["nose", 600, 300, 0.9]]},
        {"t": 3.0, "keypoints": [["nose", 10, 10, 0.9]]},
    ]}),
]

class TestJsonlReplay(unittest.TestCase):
    def setUp(self):
        fd, self.path = tempfile.mkstemp(suffix=".jsonl")
        with os.fdopen(fd, "w") as f:
            f.write("\n".join(LINES) + "\n")

    def tearDown(self):
        os.remove(self.path)

    def test_replay_skips_bad_lines(self):
        b = JsonlReplayBackend(self.path)
        p = b.infer()
        self.assertEqual(p.ts, 1.0)
        self.assertEqual(p.score, 0.8)
        self.assertEqual(p.keypoints["nose"], (100.0, 50.0, 0.9))
        p = b.infer()
        self.assertEqual(b.bad_lines, 1)
        self.assertEqual(p.keypoints["nose"], (320.0, 240.0, 0.6))
        self.assertAlmostEqual(p.score, 0.6)
        p = b.infer()
        self.assertEqual(p.frame_size, (1280, 720))
        self.assertEqual(p.keypoints["nose"][:2], (600.0, 300.0))
        p = b.infer()
        self.assertEqual(p.keypoints, {})

    def test_loop_wraps_around(self):
        b = JsonlReplayBackend(self.path, loop=True)
        seen = [b.infer().ts for _ in range(4)]
        self.assertEqual(seen, [1.0, 2.0, 3.0, 1.0])

    def test_parse_detection_default_score(self):
        poses = parse_detection({"t": 0, "keypoints": [["nose", 1, 1, 0.4], ["left_eye", 2, 2, 0.8]]})
        self.assertEqual(len(poses), 1)
        self.assertAlmostEqual(poses[0].score, 0.6)
        self.assertEqual(poses[0].frame_size, (640, 480))

if __name__ == '__main__':
    unittest.main()
