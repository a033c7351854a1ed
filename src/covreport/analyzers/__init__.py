"""Coverage classification and diffing."""

from covreport.analyzers.diff import CoverageDiffer, DiffResult, FailureSignal, FileDelta
from covreport.analyzers.threshold import Tier, classify, round_percentage

__all__ = [
    "CoverageDiffer",
    "DiffResult",
    "FailureSignal",
    "FileDelta",
    "Tier",
    "classify",
    "round_percentage",
]
