from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Dict, List

import pandas as pd

from engagement_insights import insights, metrics
from engagement_insights.data_prep import (
    ProcessedRecord,
    RawRecord,
    preprocess,
    processed_records,
    to_raw_records,
)
from engagement_insights.insights import Strategy
from engagement_insights.metrics import CommunityMetrics, StageMetrics
from engagement_insights.report import AnalysisReport, CommunityInsight

logger = logging.getLogger(__name__)


class VideoEngagementAnalyzer:
    """
    Aggregates tracking rows by community and automation stage and turns the
    totals into insights and follow-up strategies.

    Rows are validated and normalised once, at construction. ``analyze()`` is
    pure apart from calling ``clock`` for the report date, so a fixed clock
    gives reproducible reports.
    """

    def __init__(self, records, clock: Callable[[], date] = date.today):
        self.raw_records: List[RawRecord] = to_raw_records(records)
        self.processed_data: pd.DataFrame = preprocess(self.raw_records)
        self._clock = clock

        bad_dates = int(self.processed_data["tracking_date"].isna().sum())
        if bad_dates:
            logger.warning("%d row(s) have an unparsable tracking date; bucketed as 'unknown'", bad_dates)
        logger.debug("Loaded %d engagement rows", len(self.processed_data))

    @property
    def processed_records(self) -> List[ProcessedRecord]:
        return processed_records(self.processed_data)

    @property
    def communities(self) -> List[str]:
        return list(pd.unique(self.processed_data["community"]))

    def calculate_community_metrics(self, community_data: pd.DataFrame) -> CommunityMetrics:
        return metrics.calculate_community_metrics(community_data)

    def calculate_stage_breakdown(self, community_data: pd.DataFrame) -> Dict[str, StageMetrics]:
        return metrics.calculate_stage_breakdown(community_data)

    def generate_insights(self, community_metrics: CommunityMetrics) -> List[str]:
        return insights.generate_insights(community_metrics)

    def generate_strategies(self, community_metrics: CommunityMetrics) -> List[Strategy]:
        return insights.generate_strategies(community_metrics)

    def calculate_monthly_trends(self) -> Dict[str, StageMetrics]:
        return metrics.calculate_monthly_trends(self.processed_data)

    def analyze(self) -> AnalysisReport:
        df = self.processed_data
        community_insights = {}
        follow_up_strategies = {}

        for community, community_data in df.groupby("community", sort=False):
            m = self.calculate_community_metrics(community_data)
            community_insights[community] = CommunityInsight(
                metrics=m, insights=self.generate_insights(m)
            )
            follow_up_strategies[community] = self.generate_strategies(m)

        report = AnalysisReport(
            community_insights=community_insights,
            follow_up_strategies=follow_up_strategies,
            monthly_trends=self.calculate_monthly_trends(),
            analysis_date=self._clock(),
        )
        logger.info(
            "Analysed %d rows across %d communities and %d months",
            len(df), len(community_insights), len(report.monthly_trends),
        )
        return report
