"""Configuration management for fragment-repair.

Loads settings from environment variables with sensible defaults, and applies
partial overrides from a JSON file. Override files are validated with
Pydantic: every field is optional, absent fields keep the current value, and
unknown fields are rejected.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

LOG = logging.getLogger("repair.settings")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class GeneticConfig:
    """Genetic search: population cap, round budget and pruning ratio."""
    population_size: int = 10
    max_rounds: int = 5
    fitness_threshold: float = 0.75

    def __post_init__(self) -> None:
        if self.population_size < 1:
            raise ValueError(f"population_size must be >= 1, got {self.population_size}")
        if self.max_rounds < 0:
            raise ValueError(f"max_rounds must be >= 0, got {self.max_rounds}")
        if not 0.0 <= self.fitness_threshold <= 1.0:
            raise ValueError(f"fitness_threshold must be 0-1, got {self.fitness_threshold}")

    @classmethod
    def from_env(cls) -> "GeneticConfig":
        return cls(
            population_size=int(os.getenv("REPAIR_GEN_INDIVIDUALS", "10")),
            max_rounds=int(os.getenv("REPAIR_GEN_ROUNDS", "5")),
            fitness_threshold=float(os.getenv("REPAIR_GEN_THRESHOLD", "0.75")),
        )


@dataclass
class ExhaustiveConfig:
    """Exhaustive search: wall-clock budget, early stop, check batch size."""
    search_budget_seconds: float = 5 * 60
    stop_on_results: bool = False
    batch_size: int = 10

    def __post_init__(self) -> None:
        if self.search_budget_seconds <= 0:
            raise ValueError(f"search_budget_seconds must be > 0, got {self.search_budget_seconds}")
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")

    @classmethod
    def from_env(cls) -> "ExhaustiveConfig":
        return cls(
            search_budget_seconds=float(os.getenv("REPAIR_EXH_BUDGET", "300")),
            stop_on_results=_env_bool("REPAIR_EXH_STOP_ON_RESULTS", False),
            batch_size=int(os.getenv("REPAIR_EXH_BATCH_SIZE", "10")),
        )


@dataclass
class CheckConfig:
    """Property checking: per-check timeout, parallelism, interpreter."""
    check_timeout_seconds: float = 1.0
    max_concurrency: int = 4
    python_executable: str = sys.executable

    def __post_init__(self) -> None:
        if self.check_timeout_seconds <= 0:
            raise ValueError(f"check_timeout_seconds must be > 0, got {self.check_timeout_seconds}")
        if self.max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {self.max_concurrency}")

    @classmethod
    def from_env(cls) -> "CheckConfig":
        return cls(
            check_timeout_seconds=float(os.getenv("REPAIR_CHECK_TIMEOUT", "1.0")),
            max_concurrency=int(os.getenv("REPAIR_CHECK_CONCURRENCY", "4")),
            python_executable=os.getenv("REPAIR_PYTHON", sys.executable),
        )


@dataclass
class OutputConfig:
    """Where patches are written and whether existing files may be replaced."""
    directory: str = "output"
    overwrite: bool = False

    @classmethod
    def from_env(cls) -> "OutputConfig":
        return cls(
            directory=os.getenv("REPAIR_OUTPUT_DIR", "output"),
            overwrite=_env_bool("REPAIR_OUTPUT_OVERWRITE", False),
        )


@dataclass
class RepairConfig:
    """Top-level configuration."""
    genetic: GeneticConfig = field(default_factory=GeneticConfig)
    exhaustive: ExhaustiveConfig = field(default_factory=ExhaustiveConfig)
    check: CheckConfig = field(default_factory=CheckConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "RepairConfig":
        return cls(
            genetic=GeneticConfig.from_env(),
            exhaustive=ExhaustiveConfig.from_env(),
            check=CheckConfig.from_env(),
            output=OutputConfig.from_env(),
            log_level=os.getenv("REPAIR_LOG_LEVEL", "INFO").upper(),
        )


# ── Partial overrides ───────────────────────────────────────────────────────


class _Override(BaseModel):
    model_config = ConfigDict(extra="forbid")


class GeneticOverride(_Override):
    population_size: Optional[int] = None
    max_rounds: Optional[int] = None
    fitness_threshold: Optional[float] = None


class ExhaustiveOverride(_Override):
    search_budget_seconds: Optional[float] = None
    stop_on_results: Optional[bool] = None
    batch_size: Optional[int] = None


class CheckOverride(_Override):
    check_timeout_seconds: Optional[float] = None
    max_concurrency: Optional[int] = None
    python_executable: Optional[str] = None


class OutputOverride(_Override):
    directory: Optional[str] = None
    overwrite: Optional[bool] = None


class RepairOverride(_Override):
    genetic: Optional[GeneticOverride] = None
    exhaustive: Optional[ExhaustiveOverride] = None
    check: Optional[CheckOverride] = None
    output: Optional[OutputOverride] = None
    log_level: Optional[str] = None


def _apply(base, partial: Optional[_Override]):
    if partial is None:
        return base
    # replace() re-runs __post_init__, so overridden values are validated too.
    return replace(base, **partial.model_dump(exclude_none=True))


def override(base: RepairConfig, partial: Optional[RepairOverride]) -> RepairConfig:
    """Apply a partial configuration onto ``base``; absent fields keep their value."""
    if partial is None:
        return base
    return RepairConfig(
        genetic=_apply(base.genetic, partial.genetic),
        exhaustive=_apply(base.exhaustive, partial.exhaustive),
        check=_apply(base.check, partial.check),
        output=_apply(base.output, partial.output),
        log_level=(partial.log_level or base.log_level).upper(),
    )


def load_config(path: Optional[Union[str, Path]] = None, base: Optional[RepairConfig] = None) -> RepairConfig:
    """Environment defaults, overridden by the JSON file at ``path`` if given."""
    config = base if base is not None else RepairConfig.from_env()
    if path is None:
        return config
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    LOG.debug("Loaded configuration overrides from %s", path)
    return override(config, RepairOverride.model_validate(data))


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
