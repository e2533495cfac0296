from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from app.services.common import round_half_up, to_float
from app.services.performance.metrics import MemberRecord, UserMetrics

WEIGHT_TOTAL = 100


@dataclass(frozen=True)
class ScoringWeights:
    completion_weight: int = 40
    timeliness_weight: int = 30
    quality_weight: int = 20
    kra_alignment_weight: int = 10

    @property
    def total(self) -> int:
        return self.completion_weight + self.timeliness_weight + self.quality_weight + self.kra_alignment_weight

    @classmethod
    def from_config(cls, config: Any) -> ScoringWeights:
        return cls(
            completion_weight=int(config.completion_weight),
            timeliness_weight=int(config.timeliness_weight),
            quality_weight=int(config.quality_weight),
            kra_alignment_weight=int(config.kra_alignment_weight),
        )

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


DEFAULT_WEIGHTS = ScoringWeights()


@dataclass(frozen=True)
class ScoreBreakdown:
    completion_score: float
    timeliness_score: float
    quality_score: float
    kra_alignment_score: float
    overall_score: int

    def as_dict(self) -> dict[str, float | int]:
        return asdict(self)


@dataclass(frozen=True)
class MemberScore:
    member: MemberRecord
    metrics: UserMetrics
    breakdown: ScoreBreakdown

    @property
    def rank_key(self) -> tuple[int, int, str]:
        return (-self.breakdown.overall_score, -self.metrics.tasks_completed, self.member.person_id)

    def as_dict(self) -> dict[str, Any]:
        return {
            "person_id": self.member.person_id,
            "display_name": self.member.display_name,
            "tasks_assigned": self.metrics.tasks_assigned,
            "tasks_completed": self.metrics.tasks_completed,
            "on_time_count": self.metrics.on_time_count,
            "late_count": self.metrics.late_count,
            "overdue_count": self.metrics.overdue_count,
            "kras_covered_count": self.metrics.kras_covered_count,
            "kras_total_count": self.metrics.kras_total_count,
            **self.breakdown.as_dict(),
        }


def rank_members(scores: list[MemberScore]) -> list[MemberScore]:
    """Overall score desc, then completed tasks desc, then person id."""
    return sorted(scores, key=lambda score: score.rank_key)


def _safe_div(num: float, den: float) -> float:
    if den <= 0:
        return 0.0
    return num / den


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def completion_score(metrics: UserMetrics) -> float:
    return _clamp(_safe_div(float(metrics.tasks_completed), max(float(metrics.tasks_assigned), 1.0)) * 100)


def timeliness_score(metrics: UserMetrics) -> float:
    # No completions means no evidence of lateness.
    if metrics.tasks_completed <= 0:
        return 100.0
    return _clamp(_safe_div(float(metrics.on_time_count), float(metrics.tasks_completed)) * 100)


def quality_score(metrics: UserMetrics) -> float:
    return _clamp(to_float(metrics.quality_checklist_score))


def kra_alignment_score(metrics: UserMetrics) -> float:
    return _clamp(_safe_div(float(metrics.kras_covered_count), max(float(metrics.kras_total_count), 1.0)) * 100)


class ScoreCalculator:
    """Turns one member's weekly metrics into a weighted score.

    Pure: no I/O and no shared state, so it is safe to call from report
    worker threads. The overall score uses the unrounded sub-scores; the
    breakdown reports them rounded to two decimals.
    """

    def compute(self, metrics: UserMetrics, weights: ScoringWeights) -> ScoreBreakdown:
        completion = completion_score(metrics)
        timeliness = timeliness_score(metrics)
        quality = quality_score(metrics)
        kra = kra_alignment_score(metrics)

        weighted = (
            completion * weights.completion_weight
            + timeliness * weights.timeliness_weight
            + quality * weights.quality_weight
            + kra * weights.kra_alignment_weight
        )
        overall = int(_clamp(round_half_up(weighted / WEIGHT_TOTAL)))
        return ScoreBreakdown(
            completion_score=round(completion, 2),
            timeliness_score=round(timeliness, 2),
            quality_score=round(quality, 2),
            kra_alignment_score=round(kra, 2),
            overall_score=overall,
        )

    def average(self, breakdowns: list[ScoreBreakdown]) -> ScoreBreakdown:
        """Mean of each sub-score across members; overall is the rounded mean overall."""
        if not breakdowns:
            return ScoreBreakdown(0.0, 0.0, 0.0, 0.0, 0)
        count = float(len(breakdowns))
        return ScoreBreakdown(
            completion_score=round(sum(b.completion_score for b in breakdowns) / count, 2),
            timeliness_score=round(sum(b.timeliness_score for b in breakdowns) / count, 2),
            quality_score=round(sum(b.quality_score for b in breakdowns) / count, 2),
            kra_alignment_score=round(sum(b.kra_alignment_score for b in breakdowns) / count, 2),
            overall_score=int(_clamp(round_half_up(sum(b.overall_score for b in breakdowns) / count))),
        )


score_calculator = ScoreCalculator()
