"""Priority scoring for lottery entries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Optional

from .config import LotterySettings


@dataclass(frozen=True)
class MemberSnapshot:
    """Immutable copy of a member's speed and fairness state taken at run start.

    Attributes
    ----------
    member_id : int
        Member the snapshot describes.
    speed_tier : str
        ``"FAST"``, ``"AVERAGE"`` or ``"SLOW"``. Members without a speed
        profile are treated as ``"AVERAGE"``.
    admin_priority_adjustment : int
        Manual priority tweak from the member's speed profile.
    fairness_score : int
        Current fairness score; ``0`` for members without history.
    days_without_good_time : int
        Consecutive processed entries without a preferred-window assignment.
    preference_fulfillment_rate : Optional[float]
        Granted/submitted ratio for the month, ``None`` without history.
    """

    member_id: int
    speed_tier: str = "AVERAGE"
    admin_priority_adjustment: int = 0
    fairness_score: int = 0
    days_without_good_time: int = 0
    preference_fulfillment_rate: Optional[float] = None


@dataclass(frozen=True)
class ScoreBreakdown:
    """Components returned by a scoring routine."""

    fairness: float
    speed_bonus: float
    admin_adjustment: float

    @property
    def total(self) -> float:
        return self.fairness + self.speed_bonus + self.admin_adjustment


@dataclass(frozen=True)
class ScoreEvaluation:
    """Result of scoring one member against one window.

    Attributes
    ----------
    algorithm_key : str
        Identifier of the algorithm used, matching :attr:`ScoringAlgorithm.key`.
    member_id : int
        Member whose snapshot was scored.
    window : str
        Target window the score was computed for.
    score : float
        Total priority score; higher is processed earlier.
    breakdown : ScoreBreakdown
        Individual components of ``score``.
    """

    algorithm_key: str
    member_id: int
    window: str
    score: float
    breakdown: ScoreBreakdown


Scorer = Callable[[MemberSnapshot, str, LotterySettings], ScoreBreakdown]


@dataclass(frozen=True)
class ScoringAlgorithm:
    """Definition of a scoring algorithm.

    Attributes
    ----------
    key : str
        Registry key used to identify the algorithm.
    scorer : Callable[[MemberSnapshot, str, LotterySettings], ScoreBreakdown]
        Pure callable that scores a snapshot against a target window.
    description : Optional[str]
        Human-readable summary of the algorithm's behaviour.
    """

    key: str
    scorer: Scorer
    description: Optional[str] = None

    def evaluate(
        self,
        snapshot: MemberSnapshot,
        window: str,
        settings: LotterySettings,
    ) -> ScoreEvaluation:
        """Score ``snapshot`` against ``window``.

        Parameters
        ----------
        snapshot : MemberSnapshot
            Frozen member state captured at run start.
        window : str
            Target preference window.
        settings : LotterySettings
            Constants of the bonus table.

        Returns
        -------
        ScoreEvaluation
            Dataclass describing the score and its components.
        """
        breakdown = self.scorer(snapshot, window, settings)
        return ScoreEvaluation(
            algorithm_key=self.key,
            member_id=snapshot.member_id,
            window=window,
            score=float(breakdown.total),
            breakdown=breakdown,
        )


class AlgorithmRegistry:
    """Mutable registry mapping algorithm keys to definitions."""

    def __init__(self) -> None:
        self._algorithms: Dict[str, ScoringAlgorithm] = {}

    def register(self, algorithm: ScoringAlgorithm, *, replace: bool = False) -> None:
        """Register a scoring algorithm under its key.

        Parameters
        ----------
        algorithm : ScoringAlgorithm
            Algorithm to add to the registry.
        replace : bool, default: False
            When ``True`` an existing registration with the same key is
            overwritten. Otherwise a duplicate raises :class:`ValueError`.
        """
        if not replace and algorithm.key in self._algorithms:
            raise ValueError(f"Algorithm '{algorithm.key}' is already registered")
        self._algorithms[algorithm.key] = algorithm

    def get(self, key: str) -> ScoringAlgorithm:
        """Return the algorithm registered under ``key``."""
        try:
            return self._algorithms[key]
        except KeyError as exc:
            raise KeyError(f"Unknown scoring algorithm '{key}'") from exc


def speed_bonus(speed_tier: str, window: str, settings: LotterySettings) -> int:
    """Return the window-dependent bonus for ``speed_tier``.

    FAST players earn the configured window bonus, AVERAGE players nothing,
    and SLOW players lose ``slow_penalty`` wherever FAST players are rewarded.
    """

    fast_bonus = int(settings.fast_bonuses.get(window, 0))
    if speed_tier == "FAST":
        return fast_bonus
    if speed_tier == "SLOW" and fast_bonus > 0:
        return -settings.slow_penalty
    return 0


def _fairness_speed_admin(
    snapshot: MemberSnapshot, window: str, settings: LotterySettings
) -> ScoreBreakdown:
    """Fairness score + speed bonus for the window + admin adjustment."""
    return ScoreBreakdown(
        fairness=float(snapshot.fairness_score),
        speed_bonus=float(speed_bonus(snapshot.speed_tier, window, settings)),
        admin_adjustment=float(snapshot.admin_priority_adjustment),
    )


def priority_sort_key(
    score: float,
    submitted_at: datetime,
    member_id: int,
    kind: str,
    entry_id: int,
) -> tuple:
    """Sort key ordering entries by score, then submission time, then member id.

    ``kind`` and ``entry_id`` only separate rows that agree on everything
    else, so the order is total and reproducible.
    """
    return (-score, submitted_at, member_id, 0 if kind == "entry" else 1, entry_id)


DEFAULT_SCORING_REGISTRY = AlgorithmRegistry()
DEFAULT_SCORING_REGISTRY.register(
    ScoringAlgorithm(
        key="fairness_speed_admin",
        scorer=_fairness_speed_admin,
        description=(
            "Sum of the member's fairness score, the speed-tier bonus for the "
            "target window, and the admin priority adjustment."
        ),
    )
)

__all__ = [
    "AlgorithmRegistry",
    "DEFAULT_SCORING_REGISTRY",
    "MemberSnapshot",
    "ScoreBreakdown",
    "ScoreEvaluation",
    "ScoringAlgorithm",
    "priority_sort_key",
    "speed_bonus",
]
