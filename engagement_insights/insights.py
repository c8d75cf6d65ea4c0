"""
Rule-based insight and follow-up strategy generation from CommunityMetrics.

Thresholds are strict comparisons: a click rate of exactly 30 or 50 yields
no click-rate insight, an average play time of exactly 3 does not trigger
"Extend Watch Time".
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from engagement_insights.metrics import CommunityMetrics, StageMetrics

STRONG_CLICK_RATE = 50.0
WEAK_CLICK_RATE = 30.0
EXCELLENT_WATCH_MINUTES = 5.0

LOW_CLICK_RATE = 40.0
LOW_PLAY_RATE = 70.0
SHORT_WATCH_MINUTES = 3.0


@dataclass(frozen=True)
class Strategy:
    focus: str
    actions: Tuple[str, ...]

    def to_dict(self) -> dict:
        return {"focus": self.focus, "actions": list(self.actions)}

    @classmethod
    def from_dict(cls, d: dict) -> "Strategy":
        return cls(focus=d["focus"], actions=tuple(d.get("actions") or ()))


IMPROVE_INITIAL_ENGAGEMENT = Strategy(
    focus="Improve Initial Engagement",
    actions=(
        "A/B test video thumbnail images",
        "Optimize video titles for clarity and impact",
        "Send invites during peak engagement hours",
        "Include personalized preview content in invitations",
    ),
)

INCREASE_PLAY_RATE = Strategy(
    focus="Increase Play Rate",
    actions=(
        "Add social proof elements to landing pages",
        "Include video duration in preview",
        "Create stage-specific video content",
        "Implement one-click play functionality",
    ),
)

EXTEND_WATCH_TIME = Strategy(
    focus="Extend Watch Time",
    actions=(
        "Add chapter markers for longer videos",
        "Include interactive elements at key dropoff points",
        "Create shorter, more focused video content",
        "Add compelling calls-to-action throughout",
    ),
)


def strongest_stage(stage_breakdown: Dict[str, StageMetrics]) -> Optional[str]:
    """
    Stage with the most plays. Ties go to the stage that appears first in
    the breakdown (which is first-seen row order).
    """
    best = None
    for name, stage in stage_breakdown.items():
        if best is None or stage.plays > stage_breakdown[best].plays:
            best = name
    return best


def generate_insights(metrics: CommunityMetrics) -> List[str]:
    insights = []

    if metrics.click_rate > STRONG_CLICK_RATE:
        insights.append(f"Strong initial engagement with {metrics.click_rate:.1f}% click rate")
    elif metrics.click_rate < WEAK_CLICK_RATE:
        insights.append(
            f"Opportunity to improve initial engagement ({metrics.click_rate:.1f}% click rate)"
        )

    if metrics.avg_play_time > EXCELLENT_WATCH_MINUTES:
        insights.append(f"Excellent average watch time of {metrics.avg_play_time:.1f} minutes")

    best = strongest_stage(metrics.stage_breakdown)
    if best is not None:
        insights.append(f"Strongest performance in {best} stage")

    return insights


def generate_strategies(metrics: CommunityMetrics) -> List[Strategy]:
    strategies = []
    if metrics.click_rate < LOW_CLICK_RATE:
        strategies.append(IMPROVE_INITIAL_ENGAGEMENT)
    if metrics.play_rate < LOW_PLAY_RATE:
        strategies.append(INCREASE_PLAY_RATE)
    if metrics.avg_play_time < SHORT_WATCH_MINUTES:
        strategies.append(EXTEND_WATCH_TIME)
    return strategies
