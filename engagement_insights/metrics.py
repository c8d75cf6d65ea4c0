from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

import pandas as pd

from engagement_insights.data_prep import NUMERIC_FIELDS, month_key


def safe_ratio(num: float, den: float, scale: float = 1.0) -> float:
    # zero denominator -> 0.0, never NaN / ZeroDivisionError
    return num / den * scale if den else 0.0


@dataclass(frozen=True)
class StageMetrics:
    """Summed counts for one automation stage (or one calendar month)."""
    invites: float = 0.0
    clicks: float = 0.0
    plays: float = 0.0
    play_time_minutes: float = 0.0
    record_count: int = 0

    @property
    def avg_play_time(self) -> float:
        return safe_ratio(self.play_time_minutes, self.plays)

    def to_dict(self) -> dict:
        return {
            "invites": float(self.invites),
            "clicks": float(self.clicks),
            "plays": float(self.plays),
            "playTimeMinutes": float(self.play_time_minutes),
            "recordCount": int(self.record_count),
            "avgPlayTime": float(self.avg_play_time),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "StageMetrics":
        return cls(
            invites=float(d.get("invites", 0)),
            clicks=float(d.get("clicks", 0)),
            plays=float(d.get("plays", 0)),
            play_time_minutes=float(d.get("playTimeMinutes", 0)),
            record_count=int(d.get("recordCount", 0)),
        )


@dataclass(frozen=True)
class CommunityMetrics:
    total_invites: float = 0.0
    total_clicks: float = 0.0
    total_plays: float = 0.0
    total_play_time_minutes: float = 0.0
    click_rate: float = 0.0        # clicks per 100 invites
    play_rate: float = 0.0         # plays per 100 clicks
    avg_play_time: float = 0.0     # minutes per play
    stage_breakdown: Dict[str, StageMetrics] = field(default_factory=dict)

    @classmethod
    def from_totals(
        cls,
        total_invites: float,
        total_clicks: float,
        total_plays: float,
        total_play_time_minutes: float,
        stage_breakdown: Dict[str, StageMetrics] | None = None,
    ) -> "CommunityMetrics":
        return cls(
            total_invites=total_invites,
            total_clicks=total_clicks,
            total_plays=total_plays,
            total_play_time_minutes=total_play_time_minutes,
            click_rate=safe_ratio(total_clicks, total_invites, 100),
            play_rate=safe_ratio(total_plays, total_clicks, 100),
            avg_play_time=safe_ratio(total_play_time_minutes, total_plays),
            stage_breakdown=dict(stage_breakdown or {}),
        )

    def to_dict(self) -> dict:
        return {
            "totalInvites": float(self.total_invites),
            "totalClicks": float(self.total_clicks),
            "totalPlays": float(self.total_plays),
            "totalPlayTimeMinutes": float(self.total_play_time_minutes),
            "clickRate": float(self.click_rate),
            "playRate": float(self.play_rate),
            "avgPlayTime": float(self.avg_play_time),
            "stageBreakdown": {k: v.to_dict() for k, v in self.stage_breakdown.items()},
        }

    @classmethod
    def from_dict(cls, d: dict) -> "CommunityMetrics":
        return cls(
            total_invites=float(d.get("totalInvites", 0)),
            total_clicks=float(d.get("totalClicks", 0)),
            total_plays=float(d.get("totalPlays", 0)),
            total_play_time_minutes=float(d.get("totalPlayTimeMinutes", 0)),
            click_rate=float(d.get("clickRate", 0)),
            play_rate=float(d.get("playRate", 0)),
            avg_play_time=float(d.get("avgPlayTime", 0)),
            stage_breakdown={
                k: StageMetrics.from_dict(v) for k, v in (d.get("stageBreakdown") or {}).items()
            },
        )


def _grouped_metrics(df: pd.DataFrame, by) -> Dict[str, StageMetrics]:
    """
    Sum the count columns per group, keeping groups in first-seen order
    (sort=False), and count rows per group.
    """
    if df.empty:
        return {}
    agg = df.groupby(by, sort=False, dropna=False).agg(
        invites=("invites", "sum"),
        clicks=("clicks", "sum"),
        plays=("plays", "sum"),
        play_time_minutes=("play_time_minutes", "sum"),
        record_count=("invites", "size"),
    )
    out = {}
    for key, r in zip(agg.index, agg.itertuples(index=False)):
        out[str(key)] = StageMetrics(
            invites=float(r.invites),
            clicks=float(r.clicks),
            plays=float(r.plays),
            play_time_minutes=float(r.play_time_minutes),
            record_count=int(r.record_count),
        )
    return out


def calculate_stage_breakdown(community_data: pd.DataFrame) -> Dict[str, StageMetrics]:
    return _grouped_metrics(community_data, "automation_stage")


def calculate_community_metrics(community_data: pd.DataFrame) -> CommunityMetrics:
    totals = community_data[list(NUMERIC_FIELDS)].sum()
    return CommunityMetrics.from_totals(
        total_invites=float(totals["invites"]),
        total_clicks=float(totals["clicks"]),
        total_plays=float(totals["plays"]),
        total_play_time_minutes=float(totals["play_time_minutes"]),
        stage_breakdown=calculate_stage_breakdown(community_data),
    )


def calculate_monthly_trends(df: pd.DataFrame) -> Dict[str, StageMetrics]:
    """Global month buckets ('YYYY-MM', or 'unknown' for unparsable dates)."""
    if df.empty:
        return {}
    months = df["tracking_date"].map(month_key).rename("month")
    return _grouped_metrics(df, months)
