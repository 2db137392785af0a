"""Tee-time lottery allocation engine."""

from .allocator import (
    AllocationCandidate,
    AllocationOutcome,
    AllocationResult,
    LotteryAllocator,
    SlotCapacity,
)
from .booking import BookingSink, SessionBookingSink
from .config import LotterySettings, TeeSheetConfig
from .errors import (
    ConcurrentRunError,
    ConfigurationError,
    EmptyWindowError,
    GroupTooLargeError,
    LotteryError,
    NoCapacityError,
    PlacementError,
    RunFailedError,
)
from .fairness import FairnessUpdater, compute_fairness_score
from .locks import DEFAULT_DATE_LOCKS, DateLockRegistry
from .orchestrator import RunSummary, process_lottery_for_date
from .scoring import (
    AlgorithmRegistry,
    DEFAULT_SCORING_REGISTRY,
    MemberSnapshot,
    ScoreEvaluation,
    ScoringAlgorithm,
)
from .speed import apply_pace_data, capture_member_snapshots, classify_speed_tier
from .windows import ResolvedWindow, WindowResolution, resolve_time_windows

__all__ = [
    "AllocationCandidate",
    "AllocationOutcome",
    "AllocationResult",
    "LotteryAllocator",
    "SlotCapacity",
    "BookingSink",
    "SessionBookingSink",
    "LotterySettings",
    "TeeSheetConfig",
    "ConcurrentRunError",
    "ConfigurationError",
    "EmptyWindowError",
    "GroupTooLargeError",
    "LotteryError",
    "NoCapacityError",
    "PlacementError",
    "RunFailedError",
    "FairnessUpdater",
    "compute_fairness_score",
    "DEFAULT_DATE_LOCKS",
    "DateLockRegistry",
    "RunSummary",
    "process_lottery_for_date",
    "AlgorithmRegistry",
    "DEFAULT_SCORING_REGISTRY",
    "MemberSnapshot",
    "ScoreEvaluation",
    "ScoringAlgorithm",
    "apply_pace_data",
    "capture_member_snapshots",
    "classify_speed_tier",
    "ResolvedWindow",
    "WindowResolution",
    "resolve_time_windows",
]
