#!/usr/bin/env python
"""
Quick start example - write a small LAMMPS dump, then read it back.

Usage:
    python examples/quickstart.py [dump.lammpstrj]
"""

import sys
import tempfile
from pathlib import Path

import numpy as np

import chemtraj
from chemtraj import Atom, Frame, UnitCell


def write_demo(path):
    """Write a few steps of two atoms drifting apart."""
    with chemtraj.open(path, mode="w", units="real") as trajectory:
        for i in range(5):
            frame = Frame(
                step=100 * i,
                cell=UnitCell.orthorhombic(20.0, 20.0, 20.0),
                atoms=[Atom("Ar"), Atom("Ar")],
                positions=np.array([[5.0, 5.0, 5.0], [6.0 + 0.5 * i, 5.0, 5.0]]),
            )
            trajectory.write(frame)


def main():
    print("=" * 60)
    print("LAMMPS dump Quick Start")
    print("=" * 60)

    if len(sys.argv) > 1:
        path = Path(sys.argv[1])
    else:
        path = Path(tempfile.mkdtemp()) / "demo.lammpstrj"
        write_demo(path)

    with chemtraj.open(path) as trajectory:
        print(f"\n{path}: {trajectory.nsteps} steps")

        # 1. Sequential reading
        print("\n1. Sequential reading:")
        print("-" * 40)
        for _ in range(trajectory.nsteps):
            frame = trajectory.read()
            print(f"   step {frame.step:6d}  atoms {frame.size}  volume {frame.cell.volume:.2f}")

        # 2. Random access
        print("\n2. Random access:")
        print("-" * 40)
        last = trajectory.read_step(trajectory.nsteps - 1)
        distance = np.linalg.norm(last.positions[1] - last.positions[0])
        print(f"   distance between the first atoms: {distance:.3f}")
        print(f"   frame properties: {last.properties}")

    print("\n" + "=" * 60)
    print("Done!")
    print("=" * 60)


if __name__ == "__main__":
    main()
