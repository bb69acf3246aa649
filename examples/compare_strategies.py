"""Compare the three traversal strategies on the N-rooks problem.

Each strategy relaxes its own network with its own RandomSource, so runs are
independent and reproducible from the seed.
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hopfield_network import STRATEGIES
from hopfield_problems import is_valid_rooks, rooks_problem
from hopfield_random import RandomSource


def main(board_size: int = 6, runs: int = 20):
    print(f"{'strategy':<12} {'mean steps':>10} {'valid':>6}")
    for strategy in STRATEGIES:
        total_steps = 0
        valid = 0
        for seed in range(runs):
            net = rooks_problem(board_size)
            result = net.relax(strategy, rng=RandomSource(seed=seed))
            total_steps += result.steps
            valid += is_valid_rooks(net)
        print(f"{strategy:<12} {total_steps / runs:>10.1f} {valid:>3}/{runs}")


if __name__ == "__main__":
    main()
