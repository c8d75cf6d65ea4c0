"""
Analysis report model, JSON (de)serialisation and plain-text rendering.

JSON layout (camelCase, as consumed by the dashboard):
  {
    "communityInsights": {"<community>": {"metrics": {...}, "insights": [...]}},
    "followUpStrategies": {"<community>": [{"focus": ..., "actions": [...]}]},
    "monthlyTrends": {"2024-01": {...}},
    "analysisDate": "2024-03-31"
  }
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List

from engagement_insights.insights import Strategy
from engagement_insights.metrics import CommunityMetrics, StageMetrics


@dataclass(frozen=True)
class CommunityInsight:
    metrics: CommunityMetrics
    insights: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"metrics": self.metrics.to_dict(), "insights": list(self.insights)}

    @classmethod
    def from_dict(cls, d: dict) -> "CommunityInsight":
        return cls(
            metrics=CommunityMetrics.from_dict(d["metrics"]),
            insights=list(d.get("insights") or []),
        )


@dataclass(frozen=True)
class AnalysisReport:
    community_insights: Dict[str, CommunityInsight] = field(default_factory=dict)
    follow_up_strategies: Dict[str, List[Strategy]] = field(default_factory=dict)
    monthly_trends: Dict[str, StageMetrics] = field(default_factory=dict)
    analysis_date: date = field(default_factory=date.today)

    @property
    def communities(self) -> List[str]:
        return list(self.community_insights)

    def to_dict(self) -> dict:
        return {
            "communityInsights": {k: v.to_dict() for k, v in self.community_insights.items()},
            "followUpStrategies": {
                k: [s.to_dict() for s in v] for k, v in self.follow_up_strategies.items()
            },
            "monthlyTrends": {k: v.to_dict() for k, v in self.monthly_trends.items()},
            "analysisDate": self.analysis_date.isoformat(),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "AnalysisReport":
        return cls(
            community_insights={
                k: CommunityInsight.from_dict(v) for k, v in (d.get("communityInsights") or {}).items()
            },
            follow_up_strategies={
                k: [Strategy.from_dict(s) for s in v]
                for k, v in (d.get("followUpStrategies") or {}).items()
            },
            monthly_trends={
                k: StageMetrics.from_dict(v) for k, v in (d.get("monthlyTrends") or {}).items()
            },
            analysis_date=date.fromisoformat(d["analysisDate"]),
        )

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, text: str) -> "AnalysisReport":
        return cls.from_dict(json.loads(text))


def _count(x: float) -> str:
    # counts are floats after coercion; show whole numbers without ".0"
    return f"{x:,.0f}" if float(x).is_integer() else f"{x:,.2f}"


def render_text(report: AnalysisReport) -> str:
    """Per-community summary: key metrics, stage breakdown, insights, strategies."""
    lines = [f"Video Engagement Analysis — {report.analysis_date.isoformat()}"]
    if not report.community_insights:
        lines += ["", "No engagement rows to analyse."]
        return "\n".join(lines)

    for community, ci in report.community_insights.items():
        m = ci.metrics
        lines += [
            "",
            f"== {community} ==",
            "Key metrics:",
            f"  • Total invites:    {_count(m.total_invites)}",
            f"  • Total clicks:     {_count(m.total_clicks)}",
            f"  • Total plays:      {_count(m.total_plays)}",
            f"  • Total play time:  {_count(m.total_play_time_minutes)} min",
            f"  • Click rate:       {m.click_rate:.1f}%",
            f"  • Play rate:        {m.play_rate:.1f}%",
            f"  • Avg play time:    {m.avg_play_time:.1f} min",
        ]
        if m.stage_breakdown:
            lines.append("Stage breakdown:")
            for stage, s in m.stage_breakdown.items():
                lines.append(
                    f"  • {stage}: {_count(s.invites)} invites, {_count(s.clicks)} clicks, "
                    f"{_count(s.plays)} plays, {s.avg_play_time:.1f} min/play ({s.record_count} rows)"
                )
        if ci.insights:
            lines.append("Insights:")
            lines += [f"  • {text}" for text in ci.insights]
        strategies = report.follow_up_strategies.get(community) or []
        if strategies:
            lines.append("Follow-up strategies:")
            for s in strategies:
                lines.append(f"  {s.focus}")
                lines += [f"    - {a}" for a in s.actions]

    if report.monthly_trends:
        lines += ["", "Monthly trends:"]
        for month, s in report.monthly_trends.items():
            lines.append(
                f"  • {month}: {_count(s.invites)} invites, {_count(s.clicks)} clicks, "
                f"{_count(s.plays)} plays, {s.avg_play_time:.1f} min/play"
            )
    return "\n".join(lines)
