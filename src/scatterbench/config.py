# Copyright (c) Syntropy Systems
"""Configuration management for scatterbench."""
from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import cast

import yaml

from scatterbench.errors import ConfigurationError
from scatterbench.models.report import StdMode

CONFIG_FILENAME = "scatterbench.yaml"
DEFAULT_DIMENSIONS = (10, 50, 100)
DEFAULT_RUNS_PER_CELL = 20


@dataclass(frozen=True)
class CompareThresholds:
    """Regression thresholds for suite comparison."""

    # Success rate drop (absolute, 0.02 = 2 percentage points)
    success_rate: float = 0.02

    # Runtime increase relative to the baseline value (0.10 = 10% slowdown)
    runtime_relative: float = 0.10

    def __post_init__(self) -> None:
        if not math.isfinite(self.success_rate) or self.success_rate < 0:
            msg = f"success_rate threshold must be a non-negative number, got {self.success_rate}"
            raise ConfigurationError(msg)
        if not math.isfinite(self.runtime_relative) or self.runtime_relative < 0:
            msg = (
                "runtime_relative threshold must be a non-negative number, "
                f"got {self.runtime_relative}"
            )
            raise ConfigurationError(msg)


@dataclass(frozen=True)
class SuiteConfig:
    """What a benchmark suite runs.

    ``functions`` empty means every registered problem. The two restrictions
    narrow the cross product and can be combined.
    """

    functions: tuple[str, ...] = ()
    dimensions: tuple[int, ...] = DEFAULT_DIMENSIONS
    runs_per_cell: int = DEFAULT_RUNS_PER_CELL
    restrict_to_function: str | None = None
    restrict_to_dimension: int | None = None
    base_seed: int | None = None

    # Trials of one cell run on up to this many threads
    max_workers: int = 1

    # Seconds before a trial is recorded as timed out (None = no limit)
    trial_timeout: float | None = None

    std_mode: StdMode = "sample"


@dataclass
class BenchConfig:
    """Project defaults read from scatterbench.yaml."""

    suite: SuiteConfig = field(default_factory=SuiteConfig)
    thresholds: CompareThresholds = field(default_factory=CompareThresholds)


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find the nearest scatterbench.yaml by walking up from start_path.

    Returns None if no config file is found.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while current != current.parent:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        current = current.parent

    # Check root
    candidate = current / CONFIG_FILENAME
    if candidate.is_file():
        return candidate

    return None


def _number(data: dict[str, object], key: str) -> float | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        msg = f"Config key '{key}' must be a number, got {value!r}"
        raise ConfigurationError(msg)
    return float(value)


def _integer(data: dict[str, object], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"Config key '{key}' must be an integer, got {value!r}"
        raise ConfigurationError(msg)
    return value


def _string_list(data: dict[str, object], key: str) -> tuple[str, ...] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        msg = f"Config key '{key}' must be a list of names, got {value!r}"
        raise ConfigurationError(msg)
    return tuple(cast("list[str]", value))


def _int_list(data: dict[str, object], key: str) -> tuple[int, ...] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(
        isinstance(v, int) and not isinstance(v, bool) for v in value
    ):
        msg = f"Config key '{key}' must be a list of integers, got {value!r}"
        raise ConfigurationError(msg)
    return tuple(cast("list[int]", value))


def load_config(config_path: Path | None = None) -> BenchConfig:
    """Load configuration from scatterbench.yaml or defaults.

    Looks for config in:
    1. Provided config_path
    2. Nearest scatterbench.yaml walking up from the working directory
    3. Defaults
    """
    config = BenchConfig()

    if config_path is None:
        config_path = find_config_file()
    elif not config_path.exists():
        msg = f"Config file not found: {config_path}"
        raise ConfigurationError(msg)

    if config_path is None:
        return config

    try:
        with config_path.open() as f:
            loaded = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        msg = f"Cannot read config file {config_path}: {e}"
        raise ConfigurationError(msg) from e

    if not isinstance(loaded, dict):
        msg = f"Config file {config_path} must contain a mapping"
        raise ConfigurationError(msg)
    data = cast("dict[str, object]", loaded)

    suite = config.suite
    functions = _string_list(data, "functions")
    if functions is not None:
        suite = replace(suite, functions=functions)
    dimensions = _int_list(data, "dimensions")
    if dimensions is not None:
        suite = replace(suite, dimensions=dimensions)
    runs = _integer(data, "runs")
    if runs is not None:
        suite = replace(suite, runs_per_cell=runs)
    base_seed = _integer(data, "base_seed")
    if base_seed is not None:
        suite = replace(suite, base_seed=base_seed)
    workers = _integer(data, "workers")
    if workers is not None:
        suite = replace(suite, max_workers=workers)
    timeout = _number(data, "trial_timeout")
    if timeout is not None:
        suite = replace(suite, trial_timeout=timeout)
    std_mode = data.get("std_mode")
    if std_mode is not None:
        if std_mode not in ("sample", "population"):
            msg = f"Config key 'std_mode' must be 'sample' or 'population', got {std_mode!r}"
            raise ConfigurationError(msg)
        suite = replace(suite, std_mode=cast("StdMode", std_mode))
    config.suite = suite

    thresholds = data.get("thresholds")
    if thresholds is not None:
        if not isinstance(thresholds, dict):
            msg = "Config key 'thresholds' must be a mapping"
            raise ConfigurationError(msg)
        threshold_data = cast("dict[str, object]", thresholds)
        success_rate = _number(threshold_data, "success_rate")
        runtime_relative = _number(threshold_data, "runtime_relative")
        config.thresholds = CompareThresholds(
            success_rate=(
                success_rate
                if success_rate is not None
                else config.thresholds.success_rate
            ),
            runtime_relative=(
                runtime_relative
                if runtime_relative is not None
                else config.thresholds.runtime_relative
            ),
        )

    return config
