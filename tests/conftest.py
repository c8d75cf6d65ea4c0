"""
Shared fixtures for the engagement-insights test suite.

Everything runs in memory; charts use the non-interactive Agg backend.
"""

from __future__ import annotations

from datetime import date

import matplotlib

matplotlib.use("Agg")

import pytest  # noqa: E402

FIXED_DAY = date(2024, 3, 31)

HEADER = "Tracking Date Formatted,Invites,Clicks,Plays,Play Time (Min),Automation Stage,Community"


def make_row(
    community: str = "A",
    invites=100,
    clicks=60,
    plays=40,
    play_time=200,
    stage: str = "S1",
    tracking_date: str = "2024-01-01",
) -> dict:
    return {
        "Tracking Date Formatted": tracking_date,
        "Invites": invites,
        "Clicks": clicks,
        "Plays": plays,
        "Play Time (Min)": play_time,
        "Automation Stage": stage,
        "Community": community,
    }


@pytest.fixture()
def clock():
    return lambda: FIXED_DAY


@pytest.fixture()
def sample_rows() -> list[dict]:
    """Two communities, three stages, two months."""
    return [
        make_row("Alumni", 100, 60, 40, 240, "Welcome", "2024-01-15"),
        make_row("Alumni", 50, 10, 8, 16, "Reminder", "2024-01-28"),
        make_row("Alumni", 40, 20, 30, 90, "Last Call", "2024-02-01"),
        make_row("Donors", 200, 40, 10, 20, "Welcome", "2024-02-10"),
        make_row("Donors", 0, 0, 0, 0, "Reminder", "2024-02-11"),
    ]


@pytest.fixture()
def sample_csv() -> str:
    return "\n".join([
        HEADER,
        "2024-01-15,100,60,40,240,Welcome,Alumni",
        "2024-01-28,50,10,8,16,Reminder,Alumni",
        "",
        '"2024-02-01","40","20","30","90","Last Call","Alumni"',
        "2024-02-10,200,40,10,20,Welcome,Donors",
        "2024-02-11,0,0,0,0,Reminder,Donors",
        "",
    ])
