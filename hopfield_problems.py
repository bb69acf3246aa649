"""
Combinatorial problems encoded as Hopfield weight matrices.

Each builder returns a fresh ``HopfieldNetwork`` whose low-energy fixed
points correspond to valid (or short) solutions.  Whether a relaxed network
actually holds a valid solution depends on the encoding and on luck; the
``is_valid_*`` helpers check it.

Board problems use one unit per cell, indexed ``row * size + column``.
The travelling-salesman encoding uses one unit per (city, step) pair,
indexed ``city * cities + step``.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from hopfield_errors import MalformedInput
from hopfield_network import HopfieldNetwork

logger = logging.getLogger("hopfield.problems")

SELF_WEIGHT = 1.0
CONFLICT_WEIGHT = -2.0


def _board_coordinates(board_size: int) -> Tuple[np.ndarray, np.ndarray]:
    cells = np.arange(board_size * board_size)
    return cells // board_size, cells % board_size


def rooks_problem(board_size: int) -> HopfieldNetwork:
    """N-rooks: every unit starts off; units sharing a row or column inhibit."""
    if board_size < 1:
        raise ValueError(f"board_size must be positive, got {board_size}")
    rows, columns = _board_coordinates(board_size)
    conflict = (rows[:, None] == rows[None, :]) | (columns[:, None] == columns[None, :])
    weights = np.where(conflict, CONFLICT_WEIGHT, 0.0)
    np.fill_diagonal(weights, SELF_WEIGHT)
    count = board_size * board_size
    logger.debug("Built %dx%d rooks problem (%d units)", board_size, board_size, count)
    return HopfieldNetwork(weights, [False] * count, count)


def queens_problem(board_size: int) -> HopfieldNetwork:
    """N-queens: every unit starts on; units sharing a row, column or diagonal inhibit."""
    if board_size < 1:
        raise ValueError(f"board_size must be positive, got {board_size}")
    rows, columns = _board_coordinates(board_size)
    d_row = rows[:, None] - rows[None, :]
    d_col = columns[:, None] - columns[None, :]
    conflict = (d_row == 0) | (d_col == 0) | (d_row == d_col) | (d_row == -d_col)
    weights = np.where(conflict, CONFLICT_WEIGHT, 0.0)
    np.fill_diagonal(weights, SELF_WEIGHT)
    count = board_size * board_size
    logger.debug("Built %dx%d queens problem (%d units)", board_size, board_size, count)
    return HopfieldNetwork(weights, [True] * count, count)


def tsp_problem(coordinates: Sequence[Sequence[float]], delta: float) -> HopfieldNetwork:
    """Travelling salesman over the given city coordinates.

    Weights:
        (a, s) -> (a, s): delta / 2 (bias)
        (a, s) -> (a, t), s != t: -delta (a city is visited once)
        (a, s) -> (b, s), a != b: -delta (one city per step)
        (a, s) <-> (b, s + 1): -dist(a, b) (tour length)

    Args:
        coordinates: One (x, y) pair per city.
        delta: Constraint penalty; must dominate the distances for tours to
            be valid.
    """
    points = np.asarray(coordinates, dtype=np.float64)
    if points.ndim != 2 or points.shape[1] != 2:
        raise MalformedInput(f"expected (x, y) pairs, got array of shape {points.shape}")
    cities = len(points)
    distances = np.sqrt(((points[:, None, :] - points[None, :, :]) ** 2).sum(axis=-1))

    count = cities * cities
    weights = np.zeros((count, count), dtype=np.float64)
    for city in range(cities):
        for step in range(cities):
            unit = city * cities + step
            following = (step + 1) % cities
            for other in range(cities):
                if other == city:
                    for other_step in range(cities):
                        weights[unit, city * cities + other_step] = (
                            delta / 2.0 if other_step == step else -delta
                        )
                else:
                    weights[unit, other * cities + step] = -delta
                    neighbour = other * cities + following
                    weights[unit, neighbour] = weights[neighbour, unit] = -distances[city, other]

    logger.debug("Built TSP problem for %d cities (%d units)", cities, count)
    return HopfieldNetwork(weights, [False] * count, count)


def parse_tsp(text: str) -> List[Tuple[int, int]]:
    """Parse a city count followed by that many integer ``x y`` pairs."""
    tokens = text.split()
    try:
        cities = int(tokens[0])
        values = [int(t) for t in tokens[1:1 + 2 * cities]]
    except (IndexError, ValueError) as exc:
        raise MalformedInput(f"invalid TSP input: {exc}") from exc
    if cities < 0 or len(values) != 2 * cities:
        raise MalformedInput(
            f"TSP input declares {cities} cities but holds {len(values) // 2} coordinate pairs"
        )
    return list(zip(values[0::2], values[1::2]))


def load_tsp(path: Union[str, Path], delta: float) -> HopfieldNetwork:
    """Build a TSP network from a coordinates file (see ``parse_tsp``)."""
    return tsp_problem(parse_tsp(Path(path).read_text()), delta)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def _side(network: HopfieldNetwork) -> int:
    side = math.isqrt(network.count)
    if side * side != network.count:
        raise ValueError(f"{network.count} units do not form a square board")
    return side


def board_positions(network: HopfieldNetwork) -> List[Tuple[int, int]]:
    """(row, column) of every cell that is on."""
    side = _side(network)
    return [(int(i) // side, int(i) % side) for i in np.flatnonzero(network.state)]


def is_valid_rooks(network: HopfieldNetwork) -> bool:
    """Exactly one piece in every row and every column."""
    side = _side(network)
    positions = board_positions(network)
    rows = {r for r, _ in positions}
    columns = {c for _, c in positions}
    return len(positions) == side and len(rows) == side and len(columns) == side


def is_valid_queens(network: HopfieldNetwork) -> bool:
    """A rooks solution in which no two pieces share a diagonal."""
    if not is_valid_rooks(network):
        return False
    positions = board_positions(network)
    diagonals = {r - c for r, c in positions}
    anti_diagonals = {r + c for r, c in positions}
    return len(diagonals) == len(positions) and len(anti_diagonals) == len(positions)


def tour(network: HopfieldNetwork) -> List[Optional[int]]:
    """City visited at each step, ``None`` where no city is on.

    If several cities are on at one step the lowest-numbered one is reported;
    use ``is_valid_tour`` to reject such states.
    """
    cities = _side(network)
    grid = np.asarray(network.state).reshape(cities, cities)
    result: List[Optional[int]] = []
    for step in range(cities):
        visiting = np.flatnonzero(grid[:, step])
        result.append(int(visiting[0]) if visiting.size else None)
    return result


def is_valid_tour(network: HopfieldNetwork) -> bool:
    """Every step visits exactly one city and every city is visited once."""
    cities = _side(network)
    grid = np.asarray(network.state).reshape(cities, cities)
    return bool((grid.sum(axis=0) == 1).all() and (grid.sum(axis=1) == 1).all())


def tour_length(coordinates: Sequence[Sequence[float]], order: Sequence[int]) -> float:
    """Length of the closed tour visiting ``coordinates`` in ``order``."""
    points = np.asarray(coordinates, dtype=np.float64)[list(order)]
    if len(points) < 2:
        return 0.0
    return float(np.sqrt(((points - np.roll(points, -1, axis=0)) ** 2).sum(axis=1)).sum())
