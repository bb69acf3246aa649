"""Simple usage example for the Hopfield relaxation engine.

Builds an 8-queens network, anneals it with a logarithmic schedule and
prints the board it settles into.
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hopfield_codec import format_state
from hopfield_problems import board_positions, is_valid_queens, queens_problem
from hopfield_random import RandomSource
from hopfield_temperature import LogarithmicSchedule


def main():
    net = queens_problem(8)
    rng = RandomSource(seed=2024)

    print("=== Initial State ===")
    print(f"units on: {net.active_count()} / {net.count}")
    print(f"energy: {net.energy():g}")

    # The network only references the schedule; keep it alive here.
    schedule = LogarithmicSchedule(3.0)
    net.attach_schedule(schedule)

    print("\n=== Annealing (random permutation sweeps) ===")
    while schedule.is_hot():
        result = net.compute_random_seq(rng=rng)
        print(f"sweep ended after {result.steps} steps at T={schedule.temperature:.3f}")
    result = net.compute_random_seq(rng=rng)
    print(f"frozen: equilibrium={result.equilibrium} after {result.steps} steps")

    print("\n=== Result ===")
    print(format_state(net))
    print(f"queens: {board_positions(net)}")
    print(f"valid 8-queens solution: {is_valid_queens(net)}")
    print(f"energy: {net.energy():g}")


if __name__ == "__main__":
    main()
