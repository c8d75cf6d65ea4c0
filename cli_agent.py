"""
Analyse a video-engagement CSV export from the command line.

  python cli_agent.py data.csv                          — print the text summary
  python cli_agent.py data.csv --json out/report.json   — also write the JSON report
  python cli_agent.py data.csv --charts-dir out/        — also save charts
"""

import argparse
import logging
import os
import re
import sys

import pandas as pd

from engagement_insights.analyzer import VideoEngagementAnalyzer
from engagement_insights.config import cfg
from engagement_insights.data_prep import MissingColumnsError, load_csv
from engagement_insights.report import AnalysisReport, render_text
from engagement_insights.viz import plot_community_rates, plot_monthly_trends, plot_stage_plays

logger = logging.getLogger("cli_agent")


def _slug(s: str) -> str:
    s = re.sub(r"[^a-z0-9]+", "-", (s or "").strip().lower()).strip("-")
    return s or "community"


def save_charts(report: AnalysisReport, charts_dir: str) -> list:
    saved = []
    if not report.community_insights:
        logger.info("No communities in report — skipping charts.")
        return saved

    saved.append(plot_community_rates(report, os.path.join(charts_dir, "community_rates.png"))[2])
    try:
        saved.append(plot_monthly_trends(report, os.path.join(charts_dir, "monthly_trends.png"))[2])
    except ValueError as exc:
        logger.warning("Skipping monthly trend chart: %s", exc)

    used = set()
    for community, ci in report.community_insights.items():
        slug = base = _slug(community)
        n = 2
        while slug in used:
            slug = f"{base}-{n}"
            n += 1
        used.add(slug)
        path = os.path.join(charts_dir, f"stages_{slug}.png")
        saved.append(plot_stage_plays(ci.metrics, community, path)[2])
    return saved


def run(csv_path: str, json_path: str = None, charts_dir: str = None, quiet: bool = False) -> AnalysisReport:
    logger.info("Loading %s", csv_path)
    rows = load_csv(csv_path)
    report = VideoEngagementAnalyzer(rows).analyze()

    if not quiet:
        print(render_text(report))

    if json_path:
        d = os.path.dirname(json_path)
        if d:
            os.makedirs(d, exist_ok=True)
        with open(json_path, "w") as f:
            f.write(report.to_json())
        logger.info("Wrote JSON report to %s", json_path)

    if charts_dir:
        for path in save_charts(report, charts_dir):
            logger.info("Saved chart %s", path)

    return report


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Summarise video engagement by community")
    parser.add_argument("csv_path", help="CSV export with tracking rows")
    parser.add_argument("--json", dest="json_path", help="Write the JSON report to this path")
    parser.add_argument(
        "--charts-dir",
        nargs="?",
        const=cfg.REPORT_OUTPUT_DIR,
        help=f"Save PNG charts here (default when given without a value: {cfg.REPORT_OUTPUT_DIR})",
    )
    parser.add_argument("--quiet", action="store_true", help="Do not print the text summary")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, cfg.LOG_LEVEL, logging.INFO),
        format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        run(args.csv_path, json_path=args.json_path, charts_dir=args.charts_dir, quiet=args.quiet)
    except MissingColumnsError as exc:
        logger.error("Cannot analyse %s: %s", args.csv_path, exc)
        return 2
    except (OSError, pd.errors.EmptyDataError, pd.errors.ParserError) as exc:
        logger.error("Failed to read %s: %s", args.csv_path, exc)
        return 2
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(0)
