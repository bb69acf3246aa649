"""
Plain-text network format and report printing.

Format (whitespace separated, in this order):

    count
    state[0] ... state[count-1]            (0/1)
    weights[0][0] ... weights[count-1][count-1]   (row-major)

``dumps`` writes floats with ``repr`` so ``loads(dumps(net)) == net``.
Parsing never touches an existing network unless the whole input is valid.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import IO, List, Optional, Union

import numpy as np

from hopfield_errors import MalformedInput
from hopfield_network import HopfieldNetwork

logger = logging.getLogger("hopfield.codec")

_BOOL_TOKENS = {"0": False, "1": True, "false": False, "true": True}


def _parse_bool(token: str) -> bool:
    try:
        return _BOOL_TOKENS[token.lower()]
    except KeyError:
        raise MalformedInput(f"expected a 0/1 state value, got {token!r}") from None


def parse_network(text: str, network: Optional[HopfieldNetwork] = None) -> HopfieldNetwork:
    """Parse ``text`` into ``network`` (or a new network).

    Raises:
        MalformedInput: On missing or unparsable tokens, or trailing data.
        DimensionMismatch, NonSymmetricWeights: If the parsed triple is
            inconsistent.
    """
    tokens = text.split()
    if not tokens:
        raise MalformedInput("empty network input")
    try:
        count = int(tokens[0])
    except ValueError:
        raise MalformedInput(f"expected a neuron count, got {tokens[0]!r}") from None
    if count < 0:
        raise MalformedInput(f"neuron count must be non-negative, got {count}")

    expected = 1 + count + count * count
    if len(tokens) < expected:
        raise MalformedInput(f"expected {expected} values, input holds {len(tokens)}")
    if len(tokens) > expected:
        raise MalformedInput(f"{len(tokens) - expected} unexpected trailing values")

    state = [_parse_bool(t) for t in tokens[1:1 + count]]
    try:
        flat = [float(t) for t in tokens[1 + count:]]
    except ValueError as exc:
        raise MalformedInput(f"invalid weight: {exc}") from exc
    weights = np.array(flat, dtype=np.float64).reshape(count, count)

    if network is None:
        network = HopfieldNetwork()
    network.replace_state(weights, state, count)
    return network


def load_network(stream: IO[str], network: Optional[HopfieldNetwork] = None) -> HopfieldNetwork:
    return parse_network(stream.read(), network)


def load_file(path: Union[str, Path], network: Optional[HopfieldNetwork] = None) -> HopfieldNetwork:
    """Load a network from ``path``; ``OSError`` propagates if it cannot be read."""
    logger.debug("Loading network from %s", path)
    with open(path, "r") as f:
        return load_network(f, network)


def dumps(network: HopfieldNetwork) -> str:
    lines: List[str] = [str(network.count)]
    lines.append(" ".join("1" if v else "0" for v in network.state))
    for row in network.weights:
        lines.append(" ".join(repr(float(w)) for w in row))
    return "\n".join(lines) + "\n"


def dump_network(network: HopfieldNetwork, stream: IO[str]) -> None:
    stream.write(dumps(network))


def save_file(network: HopfieldNetwork, path: Union[str, Path]) -> None:
    with open(path, "w") as f:
        dump_network(network, f)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

def format_state(network: HopfieldNetwork) -> str:
    """Count, a blank line, then the state laid out in rows of sqrt(count)."""
    width = max(1, math.isqrt(network.count))
    cells = ["1" if v else "0" for v in network.state]
    rows = ["\t".join(cells[i:i + width]) for i in range(0, len(cells), width)]
    return f"{network.count}\n\n" + "\n".join(rows) + "\n"


def format_weights(network: HopfieldNetwork) -> str:
    return "\n".join("\t".join(f"{w:g}" for w in row) for row in network.weights) + "\n"


def format_path(order: List[Optional[int]]) -> str:
    """Tab-separated city order, ``-`` for steps with no city."""
    return "\t".join("-" if city is None else str(city) for city in order)


def format_energy(network: HopfieldNetwork) -> str:
    return f"{network.energy():g}"
