# Copyright (c) Syntropy Systems
"""Pydantic models for suite and comparison reports."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Literal, NamedTuple

from pydantic import Field, PrivateAttr, model_validator
from typing_extensions import Self, TypeAlias

from .base import FrozenModel

if TYPE_CHECKING:
    from collections.abc import KeysView

StdMode: TypeAlias = Literal["sample", "population"]
Side: TypeAlias = Literal["baseline", "candidate"]


class CellKey(NamedTuple):
    """One (function, dimension) combination of the benchmark cross product."""

    function: str
    dimension: int

    def sort_key(self) -> tuple[int, str]:
        """Order by dimension first, then function name."""
        return (self.dimension, self.function)

    def label(self) -> str:
        """Human-readable label, e.g. ``Ackley/10D``."""
        return f"{self.function}/{self.dimension}D"


class SummaryRecord(FrozenModel):
    """Aggregate of all trials of one cell. Durations in seconds."""

    success_rate: float = Field(ge=0.0, le=1.0)
    mean_total_runtime: float = Field(ge=0.0)
    std_total_runtime: float = Field(ge=0.0)
    mean_stage1_runtime: float = Field(ge=0.0)
    mean_stage2_runtime: float = Field(ge=0.0)
    mean_solution_set_size: float = Field(ge=0.0)
    std_solution_set_size: float = Field(default=0.0, ge=0.0)
    mean_best_objective: float | None = None
    failed_count: int = Field(default=0, ge=0)
    timed_out_count: int = Field(default=0, ge=0)
    sample_count: int = Field(ge=1)

    @model_validator(mode="after")
    def _counts_fit_sample(self) -> Self:
        if self.failed_count + self.timed_out_count > self.sample_count:
            msg = "failed_count + timed_out_count exceeds sample_count"
            raise ValueError(msg)
        return self

    @property
    def converged_count(self) -> int:
        """Number of converged trials."""
        return round(self.success_rate * self.sample_count)


class SuiteMetadata(FrozenModel):
    """Snapshot of the configuration that produced a suite report."""

    runs_per_cell: int = Field(ge=1)
    dimensions: tuple[int, ...] = ()
    functions: tuple[str, ...] = ()
    base_seed: int | None = None
    std_mode: StdMode = "sample"
    solver: str = "unknown"
    created_at: str = ""


class SuiteEntry(FrozenModel):
    """A summary record filed under its cell."""

    function: str
    dimension: int = Field(ge=1)
    summary: SummaryRecord

    @property
    def key(self) -> CellKey:
        """The cell this entry belongs to."""
        return CellKey(self.function, self.dimension)


class SuiteReport(FrozenModel):
    """Per-cell summaries of one driver invocation.

    Entries are kept sorted by dimension, then function name. The report
    behaves as a read-only mapping from :class:`CellKey` to
    :class:`SummaryRecord`.
    """

    metadata: SuiteMetadata
    entries: tuple[SuiteEntry, ...] = ()
    partial: bool = False

    _index: dict[CellKey, SummaryRecord] = PrivateAttr(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _sort_entries(cls, data: object) -> object:
        if isinstance(data, dict) and isinstance(data.get("entries"), (list, tuple)):
            entries = list(data["entries"])
            entries.sort(key=_entry_sort_key)
            return {**data, "entries": tuple(entries)}
        return data

    @model_validator(mode="after")
    def _build_index(self) -> Self:
        index: dict[CellKey, SummaryRecord] = {}
        for entry in self.entries:
            if entry.key in index:
                msg = f"Duplicate cell {entry.key.label()}"
                raise ValueError(msg)
            index[entry.key] = entry.summary
        self._index = index
        return self

    @classmethod
    def from_cells(
        cls,
        cells: dict[CellKey, SummaryRecord],
        metadata: SuiteMetadata,
        *,
        partial: bool = False,
    ) -> SuiteReport:
        """Build a report from a cell mapping."""
        entries = [
            SuiteEntry(function=key.function, dimension=key.dimension, summary=summary)
            for key, summary in cells.items()
        ]
        return cls(metadata=metadata, entries=tuple(entries), partial=partial)

    def __getitem__(self, key: tuple[str, int]) -> SummaryRecord:
        return self._index[CellKey(*key)]

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def __len__(self) -> int:
        return len(self.entries)

    def keys(self) -> KeysView[CellKey]:
        """Return the cell keys."""
        return self._index.keys()

    def get(self, key: tuple[str, int]) -> SummaryRecord | None:
        """Return a summary by cell or None."""
        return self._index.get(CellKey(*key))

    def matches(self, other: SuiteReport, *, abs_tol: float = 1e-9) -> bool:
        """Structural equality with float fields compared within ``abs_tol``."""
        if self.metadata != other.metadata or self.partial != other.partial:
            return False
        if self.keys() != other.keys():
            return False
        return all(
            _summaries_close(self._index[key], other._index[key], abs_tol)
            for key in self._index
        )


class MetricDelta(FrozenModel):
    """Signed change of one metric between baseline and candidate."""

    metric: str
    baseline: float
    candidate: float
    delta: float
    regressed: bool = False
    improved: bool = False
    informational: bool = False


class CellComparison(FrozenModel):
    """Comparison result for one cell."""

    function: str
    dimension: int
    matched: bool
    side: Side | None = None
    paired: bool = False
    metrics: tuple[MetricDelta, ...] = ()

    @property
    def key(self) -> CellKey:
        """The cell this comparison belongs to."""
        return CellKey(self.function, self.dimension)

    @property
    def regressed(self) -> bool:
        """True when any gated metric regressed."""
        return any(m.regressed for m in self.metrics)

    @property
    def improved(self) -> bool:
        """True when any gated metric improved and none regressed."""
        return not self.regressed and any(m.improved for m in self.metrics)

    def metric(self, name: str) -> MetricDelta:
        """Look up a metric delta by name."""
        for delta in self.metrics:
            if delta.metric == name:
                return delta
        raise KeyError(name)


class ComparisonThresholdsSnapshot(FrozenModel):
    """Thresholds a comparison report was computed with."""

    success_rate: float
    runtime_relative: float


class ComparisonReport(FrozenModel):
    """Per-cell deltas between two suite reports, ordered by dimension then function."""

    thresholds: ComparisonThresholdsSnapshot
    entries: tuple[CellComparison, ...] = ()

    @property
    def matched(self) -> list[CellComparison]:
        """Cells present in both reports."""
        return [e for e in self.entries if e.matched]

    @property
    def unmatched(self) -> list[CellComparison]:
        """Cells present in only one report."""
        return [e for e in self.entries if not e.matched]

    @property
    def regressions(self) -> list[CellComparison]:
        """Matched cells with at least one regressed metric."""
        return [e for e in self.entries if e.regressed]

    @property
    def has_regression(self) -> bool:
        """True when any cell regressed."""
        return any(e.regressed for e in self.entries)

    def get(self, key: tuple[str, int]) -> CellComparison | None:
        """Return the comparison for a cell or None."""
        wanted = CellKey(*key)
        for entry in self.entries:
            if entry.key == wanted:
                return entry
        return None


def _entry_sort_key(entry: object) -> tuple[int, str]:
    if isinstance(entry, SuiteEntry):
        return entry.key.sort_key()
    if isinstance(entry, dict):
        try:
            return (int(entry.get("dimension", 0)), str(entry.get("function", "")))
        except (TypeError, ValueError):
            return (0, "")
    return (0, "")


def _summaries_close(a: SummaryRecord, b: SummaryRecord, abs_tol: float) -> bool:
    left = a.model_dump()
    right = b.model_dump()
    for name, value in left.items():
        other = right[name]
        if isinstance(value, float) and isinstance(other, float):
            if not math.isclose(value, other, rel_tol=0.0, abs_tol=abs_tol):
                return False
        elif value != other:
            return False
    return True
