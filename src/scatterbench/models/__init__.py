# Copyright (c) Syntropy Systems
"""Pydantic models for scatterbench."""

from .report import (
    CellComparison,
    CellKey,
    ComparisonReport,
    ComparisonThresholdsSnapshot,
    MetricDelta,
    SuiteEntry,
    SuiteMetadata,
    SuiteReport,
    SummaryRecord,
)
from .trial import LandscapeGrid, PopulationSample, TrialResult

__all__ = [
    "CellComparison",
    "CellKey",
    "ComparisonReport",
    "ComparisonThresholdsSnapshot",
    "LandscapeGrid",
    "MetricDelta",
    "PopulationSample",
    "SuiteEntry",
    "SuiteMetadata",
    "SuiteReport",
    "SummaryRecord",
    "TrialResult",
]
