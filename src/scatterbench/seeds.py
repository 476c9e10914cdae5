# Copyright (c) Syntropy Systems
"""Deterministic seed derivation for trials and sampler runs."""

from __future__ import annotations

import logging
import secrets
import zlib

import numpy as np

from scatterbench.errors import ConfigurationError

logger = logging.getLogger(__name__)

SEED_BITS = 63


class SeedSource:
    """Derives one seed per (cell, run) pair from a base seed.

    The same base seed always yields the same trial seeds, so two suites
    built from it run identical trials and can be compared pairwise.
    """

    base_seed: int
    drawn: bool

    def __init__(self, base_seed: int | None = None) -> None:
        """Initialize a seed source.

        Args:
            base_seed: Root of all derived seeds. When None, one is drawn from
                OS entropy and logged so the run can be repeated.

        """
        if base_seed is None:
            base_seed = secrets.randbits(SEED_BITS)
            self.drawn = True
            logger.warning(
                "No base seed configured; drew %d. Pass it back to reproduce this run.",
                base_seed,
            )
        else:
            if base_seed < 0:
                msg = f"Base seed must be non-negative, got {base_seed}"
                raise ConfigurationError(msg)
            self.drawn = False
        self.base_seed = base_seed

    def seed_for(self, cell_index: int, run_index: int) -> int:
        """Seed of run ``run_index`` in cell ``cell_index``."""
        sequence = np.random.SeedSequence([self.base_seed, cell_index, run_index])
        state = int(sequence.generate_state(1, dtype=np.uint64)[0])
        return state >> (64 - SEED_BITS)

    def run_seeds(self, run_count: int, cell_index: int = 0) -> list[int]:
        """Seeds for ``run_count`` consecutive runs of one cell."""
        return [self.seed_for(cell_index, run) for run in range(run_count)]


def cell_index(function: str, dimension: int) -> int:
    """Stable index of a cell, independent of which other cells a suite runs.

    Filtering a suite down to one function must not change the seeds of the
    cells that remain, or paired comparisons across runs would break.
    """
    return zlib.crc32(f"{function.lower()}/{dimension}".encode())
