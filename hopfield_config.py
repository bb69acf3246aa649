"""
Relaxation configuration.

A single ``RelaxationConfig`` dataclass groups every tunable of a run: the
temperature schedule, the traversal strategy and budget, and logging.
Configuration can be loaded from a dict of overrides, a JSON file, or left at
defaults.

Usage::

    from hopfield_config import load_config

    cfg = load_config()
    cfg = load_config({"schedule": {"kind": "log", "temperature": 30}})
    cfg = load_config(config_path="~/.hopfield/run.json")
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from hopfield_network import STRATEGIES
from hopfield_random import RandomSource
from hopfield_temperature import SCHEDULE_KINDS, TemperatureSchedule, build_schedule

logger = logging.getLogger("hopfield.config")

SECTIONS = ("schedule", "run", "logging")


@dataclass
class ScheduleConfig:
    """Temperature schedule parameters."""

    kind: str = "none"
    temperature: float = 0.0
    factor: float = 0.995
    period: int = 1

    def build(self) -> Optional[TemperatureSchedule]:
        return build_schedule(self.kind, self.temperature, self.factor, self.period)


@dataclass
class RunConfig:
    """Traversal parameters."""

    strategy: str = "sequential"
    max_steps: Optional[int] = None
    seed: Optional[int] = None

    def build_rng(self) -> RandomSource:
        return RandomSource(seed=self.seed)


@dataclass
class LoggingConfig:
    """Logging parameters for the command line driver."""

    level: str = "WARNING"
    log_file: Optional[str] = None
    max_log_size_mb: int = 10
    backup_count: int = 3


@dataclass
class RelaxationConfig:
    """Top-level configuration.  Use ``load_config()`` to apply overrides."""

    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    run: RunConfig = field(default_factory=RunConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> None:
        """Raise ``ValueError`` on an unknown strategy or schedule kind, or a bad budget or period."""
        if self.run.strategy not in STRATEGIES:
            raise ValueError(
                f"Unknown traversal strategy {self.run.strategy!r}; expected one of {STRATEGIES}"
            )
        if self.schedule.kind not in SCHEDULE_KINDS:
            raise ValueError(
                f"Unknown temperature schedule {self.schedule.kind!r}; expected one of {SCHEDULE_KINDS}"
            )
        if self.run.max_steps is not None and self.run.max_steps < 0:
            raise ValueError(f"max_steps must be non-negative, got {self.run.max_steps}")
        if self.schedule.period < 1:
            raise ValueError(f"schedule period must be at least 1, got {self.schedule.period}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _apply_overrides(obj: Any, overrides: Dict[str, Any]) -> None:
    """Apply a dict of overrides to a dataclass instance (in-place)."""
    for key, value in overrides.items():
        if hasattr(obj, key):
            setattr(obj, key, value)
        else:
            logger.warning("Ignoring unknown setting %s.%s", type(obj).__name__, key)


def load_config(
    overrides: Optional[Dict[str, Any]] = None,
    config_path: Optional[str] = None,
) -> RelaxationConfig:
    """Assemble the settings for one relaxation run.

    Starts from the dataclass defaults, layers the sections found in the
    JSON file at ``config_path`` on top, then the ``overrides`` dict (the
    command line uses it for its flags).  An unreadable or missing file is
    logged and skipped.  Nothing is validated here; call
    ``RelaxationConfig.validate`` before building a schedule or RNG.

    Args:
        overrides: ``{"schedule": {...}, "run": {...}, "logging": {...}}``;
            any section may be omitted.
        config_path: JSON file laid out the same way.
    """
    cfg = RelaxationConfig()

    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            try:
                with open(p) as f:
                    file_data = json.load(f)
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning("Failed to load config from %s: %s", p, exc)
            else:
                for section in SECTIONS:
                    if section in file_data:
                        _apply_overrides(getattr(cfg, section), file_data[section])
        else:
            logger.warning("Config file %s not found, using defaults", p)

    if overrides is not None:
        for section in SECTIONS:
            if section in overrides:
                _apply_overrides(getattr(cfg, section), overrides[section])

    return cfg
