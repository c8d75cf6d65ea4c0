from __future__ import annotations
import os
from typing import Optional, Tuple
import numpy as np
import matplotlib.pyplot as plt

from engagement_insights.config import cfg
from engagement_insights.data_prep import UNKNOWN_MONTH
from engagement_insights.metrics import CommunityMetrics
from engagement_insights.report import AnalysisReport


def _ensure_dir(p: Optional[str]) -> None:
    if p:
        d = os.path.dirname(p)
        if d and not os.path.exists(d):
            os.makedirs(d, exist_ok=True)


def _finish(fig: plt.Figure, out_path: Optional[str], show: bool) -> Optional[str]:
    fig.tight_layout()
    saved = None
    if out_path:
        _ensure_dir(out_path)
        fig.savefig(out_path, dpi=cfg.CHART_DPI, bbox_inches="tight")
        saved = out_path
    if show:
        plt.show()
    else:
        plt.close(fig)
    return saved


def plot_community_rates(
    report: AnalysisReport,
    out_path: Optional[str] = None,
    show: bool = False,
) -> Tuple[plt.Figure, plt.Axes, Optional[str]]:
    """
    Grouped bars: click rate (% of invites) and play rate (% of clicks) per community.
    """
    if not report.community_insights:
        raise ValueError("Report has no communities to plot.")

    names = report.communities
    click = [report.community_insights[c].metrics.click_rate for c in names]
    play = [report.community_insights[c].metrics.play_rate for c in names]

    x = np.arange(len(names))
    width = 0.38
    fig, ax = plt.subplots(figsize=(max(6, 1.4 * len(names) + 3), 4.5))
    ax.bar(x - width / 2, click, width, label="Click rate")
    ax.bar(x + width / 2, play, width, label="Play rate")
    ax.set_xticks(x)
    ax.set_xticklabels(names, rotation=20, ha="right")
    ax.set_ylabel("Rate (%)")
    ax.set_title(f"Engagement rates by community ({report.analysis_date.isoformat()})")
    ax.legend()

    saved = _finish(fig, out_path, show)
    return fig, ax, saved


def plot_monthly_trends(
    report: AnalysisReport,
    out_path: Optional[str] = None,
    show: bool = False,
) -> Tuple[plt.Figure, plt.Axes, Optional[str]]:
    """
    Invites / clicks / plays per month across all communities.
    The 'unknown' bucket (unparsable dates) is left off the time axis.
    """
    months = sorted(k for k in report.monthly_trends if k != UNKNOWN_MONTH)
    if not months:
        raise ValueError("Report has no dated monthly trends to plot.")

    trend = [report.monthly_trends[m] for m in months]
    fig, ax = plt.subplots(figsize=(10, 4))
    ax.plot(months, [t.invites for t in trend], marker="o", label="Invites")
    ax.plot(months, [t.clicks for t in trend], marker="o", label="Clicks")
    ax.plot(months, [t.plays for t in trend], marker="o", label="Plays")
    ax.set_title("Monthly engagement trend")
    ax.set_xlabel("Month")
    ax.set_ylabel("Count")
    ax.legend()

    saved = _finish(fig, out_path, show)
    return fig, ax, saved


def plot_stage_plays(
    metrics: CommunityMetrics,
    community: str,
    out_path: Optional[str] = None,
    show: bool = False,
) -> Tuple[plt.Figure, plt.Axes, Optional[str]]:
    """Plays per automation stage for a single community, in breakdown order."""
    if not metrics.stage_breakdown:
        raise ValueError(f"No stage breakdown for community {community!r}.")

    stages = list(metrics.stage_breakdown)
    plays = [metrics.stage_breakdown[s].plays for s in stages]

    fig, ax = plt.subplots(figsize=(max(6, 1.2 * len(stages) + 3), 4))
    ax.barh(stages, plays)
    ax.invert_yaxis()  # first stage on top
    ax.set_xlabel("Plays")
    ax.set_title(f"{community}: plays by automation stage")

    saved = _finish(fig, out_path, show)
    return fig, ax, saved
