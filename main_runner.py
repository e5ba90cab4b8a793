"""Executable wrapper so users can run `python main_runner.py --config config.yaml`
from a checkout without installing the package.
"""
import argparse, os, sys

HERE = os.path.dirname(os.path.abspath(__file__))
if HERE not in sys.path:
    sys.path.insert(0, HERE)

from energy_bodies.main import run  # type: ignore

def main():
    ap = argparse.ArgumentParser()
    ap.add_argument('--config', default='config.yaml')
    ap.add_argument('--max-frames', type=int, default=0)
    ap.add_argument('--summary-out', default=None)
    ns = ap.parse_args()
    run(ns.config, max_frames=ns.max_frames, summary_out=ns.summary_out)

if __name__ == '__main__':
    main()
