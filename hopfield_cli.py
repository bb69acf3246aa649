"""
Command line driver: build or load a network, relax it, report the result.

Usage:
    hopfield-relax queens 8 --strategy random-seq
    hopfield-relax rooks 5 --schedule exp --temperature 40 --factor 0.9 --period 25
    hopfield-relax tsp cities.txt --delta 20 --schedule log --temperature 30 --strategy random
    hopfield-relax load network.txt --max-steps 10000 --checkpoint out.msgpack

Exit codes:
    0  equilibrium reached
    1  invalid input or configuration
    2  step budget exhausted without equilibrium
"""

from __future__ import annotations

import argparse
import json
import logging
import logging.handlers
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from hopfield_codec import format_energy, format_path, format_state, format_weights, load_file
from hopfield_config import RelaxationConfig, load_config
from hopfield_errors import HopfieldError
from hopfield_network import STRATEGIES, HopfieldNetwork, RelaxationResult
from hopfield_problems import (
    board_positions,
    is_valid_queens,
    is_valid_rooks,
    is_valid_tour,
    load_tsp,
    queens_problem,
    rooks_problem,
    tour,
)
from hopfield_temperature import SCHEDULE_KINDS

logger = logging.getLogger("hopfield.cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NO_EQUILIBRIUM = 2


def setup_logging(cfg: RelaxationConfig) -> Optional[logging.Logger]:
    """Configure console logging and, if requested, a rotating JSON-line run log.

    Returns:
        The run-event logger when ``cfg.logging.log_file`` is set.
    """
    logging.basicConfig(
        level=getattr(logging, cfg.logging.level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    if not cfg.logging.log_file:
        return None

    log_path = Path(cfg.logging.log_file).expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        str(log_path),
        maxBytes=cfg.logging.max_log_size_mb * 1024 * 1024,
        backupCount=cfg.logging.backup_count,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    events = logging.getLogger("hopfield.events")
    for previous in list(events.handlers):
        events.removeHandler(previous)
        previous.close()
    events.addHandler(handler)
    events.setLevel(logging.INFO)
    events.propagate = False
    return events


def log_event(events: Optional[logging.Logger], event_type: str, data: Dict[str, Any]) -> None:
    """Write a structured event to the run log, if one is configured."""
    if events is None:
        return
    events.info(json.dumps({"timestamp": time.time(), "event": event_type, "data": data}, default=str))


def build_parser() -> argparse.ArgumentParser:
    # Shared run options, accepted after any problem name.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", type=str, default=None, help="JSON configuration file")
    common.add_argument("--strategy", choices=STRATEGIES, default=None, help="Traversal strategy")
    common.add_argument("--max-steps", type=int, default=None, help="Step budget (0 = unbounded)")
    common.add_argument("--schedule", choices=SCHEDULE_KINDS, default=None, help="Temperature schedule")
    common.add_argument("--temperature", type=float, default=None, help="Initial temperature")
    common.add_argument("--factor", type=float, default=None, help="Decay factor for the exp schedule")
    common.add_argument("--period", type=int, default=None, help="Ticks between exp decays")
    common.add_argument("--seed", type=int, default=None, help="Random seed")
    common.add_argument("--log-level", type=str, default=None, help="Console log level")
    common.add_argument("--print-weights", action="store_true", help="Print the weight matrix")
    common.add_argument("--checkpoint", type=str, default=None,
                        help="Save the relaxed network (.json or .msgpack)")

    parser = argparse.ArgumentParser(
        prog="hopfield-relax",
        description="Relax a Hopfield network encoding of a combinatorial problem",
    )
    problems = parser.add_subparsers(dest="problem", required=True)
    queens = problems.add_parser("queens", parents=[common], help="N-queens on an N x N board")
    queens.add_argument("size", type=int)
    rooks = problems.add_parser("rooks", parents=[common], help="N-rooks on an N x N board")
    rooks.add_argument("size", type=int)
    tsp = problems.add_parser("tsp", parents=[common], help="Travelling salesman from a coordinates file")
    tsp.add_argument("path", type=str)
    tsp.add_argument("--delta", type=float, default=20.0, help="Constraint penalty")
    load = problems.add_parser("load", parents=[common], help="Network stored in the plain-text format")
    load.add_argument("path", type=str)
    return parser


def config_from_args(args: argparse.Namespace) -> RelaxationConfig:
    """Layer command line flags over the (optional) configuration file."""
    schedule = {
        key: value
        for key, value in (
            ("kind", args.schedule),
            ("temperature", args.temperature),
            ("factor", args.factor),
            ("period", args.period),
        )
        if value is not None
    }
    run = {
        key: value
        for key, value in (
            ("strategy", args.strategy),
            ("max_steps", args.max_steps),
            ("seed", args.seed),
        )
        if value is not None
    }
    overrides: Dict[str, Any] = {"schedule": schedule, "run": run}
    if args.log_level is not None:
        overrides["logging"] = {"level": args.log_level}
    cfg = load_config(overrides, config_path=args.config)
    cfg.validate()
    return cfg


def build_network(args: argparse.Namespace) -> HopfieldNetwork:
    if args.problem == "queens":
        return queens_problem(args.size)
    if args.problem == "rooks":
        return rooks_problem(args.size)
    if args.problem == "tsp":
        return load_tsp(args.path, args.delta)
    return load_file(args.path)


def report(args: argparse.Namespace, network: HopfieldNetwork, result: RelaxationResult) -> List[str]:
    lines = [format_state(network)]
    if args.problem in ("queens", "rooks"):
        valid = is_valid_queens(network) if args.problem == "queens" else is_valid_rooks(network)
        lines.append(f"pieces: {board_positions(network)}")
        lines.append(f"valid: {valid}")
    elif args.problem == "tsp":
        lines.append(f"tour: {format_path(tour(network))}")
        lines.append(f"valid: {is_valid_tour(network)}")
    lines.append(f"energy: {format_energy(network)}")
    lines.append(f"steps: {result.steps} ({result.strategy}, equilibrium={result.equilibrium})")
    return lines


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = config_from_args(args)
        schedule = cfg.schedule.build()
    except (TypeError, ValueError) as exc:
        logging.basicConfig(format="%(asctime)s [%(levelname)s] %(message)s")
        logger.error("Invalid configuration: %s", exc)
        return EXIT_ERROR
    events = setup_logging(cfg)

    try:
        network = build_network(args)
    except (HopfieldError, OSError, ValueError) as exc:
        logger.error("Could not build network: %s", exc)
        return EXIT_ERROR

    network.attach_schedule(schedule)
    rng = cfg.run.build_rng()
    log_event(events, "start", {"problem": args.problem, "count": network.count, "config": cfg.to_dict()})

    started = time.time()
    result = network.relax(cfg.run.strategy, cfg.run.max_steps, rng)
    log_event(events, "finish", {
        "equilibrium": result.equilibrium,
        "steps": result.steps,
        "energy": network.energy(),
        "elapsed": time.time() - started,
    })

    if args.print_weights:
        print(format_weights(network))
    print("\n".join(report(args, network, result)))

    if args.checkpoint:
        try:
            network.checkpoint(args.checkpoint)
        except (OSError, ImportError) as exc:
            logger.error("Could not write checkpoint %s: %s", args.checkpoint, exc)
            return EXIT_ERROR

    return EXIT_OK if result.equilibrium else EXIT_NO_EQUILIBRIUM


if __name__ == "__main__":
    sys.exit(main())
