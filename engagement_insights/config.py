"""
Settings for the outer surfaces (CLI, charts) loaded from environment variables / .env file.

The analyzer itself reads no configuration.
"""
import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    # ── Logging ────────────────────────────────────────────────────────────────
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # ── Output ─────────────────────────────────────────────────────────────────
    # Where cli_agent.py writes charts when --charts-dir is not given
    REPORT_OUTPUT_DIR: str = os.getenv("REPORT_OUTPUT_DIR", "reports")
    CHART_DPI: int = int(os.getenv("CHART_DPI", "150"))


cfg = Config()
