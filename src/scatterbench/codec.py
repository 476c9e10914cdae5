# Copyright (c) Syntropy Systems
"""JSON persistence for suite and comparison reports."""
from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field, ValidationError

from scatterbench.errors import MalformedFileError
from scatterbench.models.base import BenchBaseModel
from scatterbench.models.report import (
    ComparisonReport,
    SuiteEntry,
    SuiteMetadata,
    SuiteReport,
    SummaryRecord,
)

FORMAT_VERSION = 1


class EntryDocument(SummaryRecord):
    """One persisted cell: its key plus the summary fields, flattened."""

    function: str
    dimension: int = Field(ge=1)


class SuiteDocument(BenchBaseModel):
    """On-disk layout of a suite report. Unknown keys are ignored."""

    format_version: int = FORMAT_VERSION
    metadata: SuiteMetadata
    partial: bool = False
    entries: list[EntryDocument] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: SuiteReport) -> SuiteDocument:
        """Flatten a report into its document form."""
        return cls(
            metadata=report.metadata,
            partial=report.partial,
            entries=[
                EntryDocument(
                    function=entry.function,
                    dimension=entry.dimension,
                    **entry.summary.model_dump(),
                )
                for entry in report.entries
            ],
        )

    def to_report(self) -> SuiteReport:
        """Rebuild the report. Raises ValidationError on duplicate cells."""
        entries = tuple(
            SuiteEntry(
                function=doc.function,
                dimension=doc.dimension,
                summary=SummaryRecord.model_validate(
                    doc.model_dump(exclude={"function", "dimension"})
                ),
            )
            for doc in self.entries
        )
        return SuiteReport(metadata=self.metadata, entries=entries, partial=self.partial)


def _describe(error: ValidationError) -> str:
    """First validation problem as ``location: message``."""
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "document"
    more = error.error_count() - 1
    suffix = f" (and {more} more)" if more else ""
    return f"{location}: {first['msg']}{suffix}"


def dumps(report: SuiteReport) -> str:
    """Serialize a suite report to JSON text."""
    return SuiteDocument.from_report(report).model_dump_json(indent=2)


def loads(text: str | bytes, source: str = "<string>") -> SuiteReport:
    """Parse a suite report from JSON text.

    Raises:
        MalformedFileError: If the text is not a structurally valid report.

    """
    try:
        document = SuiteDocument.model_validate_json(text, strict=True)
        if document.format_version > FORMAT_VERSION:
            msg = (
                f"{source}: format_version {document.format_version} is newer "
                f"than supported version {FORMAT_VERSION}"
            )
            raise MalformedFileError(msg)
        return document.to_report()
    except ValidationError as e:
        msg = f"{source}: invalid suite report: {_describe(e)}"
        raise MalformedFileError(msg) from e


def _write_atomic(path: Path, text: str) -> None:
    """Write via a sibling temp file so readers never see a partial file."""
    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        _ = tmp_path.write_text(text)
        os.replace(tmp_path, path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        msg = f"Cannot write {path}: {e}"
        raise MalformedFileError(msg) from e


def _read(path: Path) -> str:
    try:
        return path.read_text()
    except (OSError, UnicodeDecodeError) as e:
        msg = f"Cannot read {path}: {e}"
        raise MalformedFileError(msg) from e


def save(report: SuiteReport, path: Path | str) -> None:
    """Save a suite report as JSON."""
    _write_atomic(Path(path), dumps(report))


def load(path: Path | str) -> SuiteReport:
    """Load a suite report saved by :func:`save`.

    Raises:
        MalformedFileError: If the file is unreadable or structurally invalid.

    """
    path = Path(path)
    return loads(_read(path), source=str(path))


def save_comparison(report: ComparisonReport, path: Path | str) -> None:
    """Save a comparison report as JSON for rendering or archiving."""
    _write_atomic(Path(path), report.model_dump_json(indent=2))


def load_comparison(path: Path | str) -> ComparisonReport:
    """Load a comparison report saved by :func:`save_comparison`."""
    path = Path(path)
    try:
        return ComparisonReport.model_validate_json(_read(path))
    except ValidationError as e:
        msg = f"{path}: invalid comparison report: {_describe(e)}"
        raise MalformedFileError(msg) from e
