"""
scatterbench - Benchmark and A/B harness for two-stage global optimizers.

Run suites, compare results, catch regressions.
"""

from scatterbench.compare import run_ab
from scatterbench.driver import run_suite
from scatterbench.models import ComparisonReport, SuiteReport, TrialResult
from scatterbench.sampler import landscape_grid, sample_population

__version__ = "0.1.0"
__all__ = [
    "ComparisonReport",
    "SuiteReport",
    "TrialResult",
    "landscape_grid",
    "run_ab",
    "run_suite",
    "sample_population",
    "__version__",
]
