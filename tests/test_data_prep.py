"""
tests/test_data_prep.py

CSV ingestion, fixed-schema record construction and row normalisation.
"""

from __future__ import annotations

import logging
import math

import pandas as pd
import pytest

from conftest import HEADER, make_row
from engagement_insights.data_prep import (
    REQUIRED_COLUMNS,
    UNKNOWN_MONTH,
    MissingColumnsError,
    ProcessedRecord,
    RawRecord,
    coerce_field,
    load_csv,
    month_key,
    preprocess,
    processed_records,
    read_csv_text,
    to_raw_records,
)


# ---------------------------------------------------------------------------
# coerce_field
# ---------------------------------------------------------------------------


class TestCoerceField:
    def test_integer_text_becomes_int(self) -> None:
        assert coerce_field("42") == 42
        assert isinstance(coerce_field("42"), int)

    def test_decimal_text_becomes_float(self) -> None:
        assert coerce_field("3.5") == 3.5

    def test_partial_number_stays_text(self) -> None:
        assert coerce_field("12abc") == "12abc"

    def test_empty_stays_empty_text(self) -> None:
        assert coerce_field("") == ""

    def test_non_string_passes_through(self) -> None:
        assert coerce_field(7) == 7

    @pytest.mark.parametrize("text", ["1_000", "nan", "inf", "-Infinity", "0x1f", "1e"])
    def test_python_only_literals_stay_text(self, text) -> None:
        assert coerce_field(text) == text

    def test_exponent_and_whole_decimals_become_int(self) -> None:
        assert coerce_field("1e3") == 1000
        assert isinstance(coerce_field("1e3"), int)
        assert coerce_field("2.0") == 2

    def test_signed_and_leading_dot(self) -> None:
        assert coerce_field("-4") == -4
        assert coerce_field(".5") == 0.5


# ---------------------------------------------------------------------------
# read_csv_text
# ---------------------------------------------------------------------------


class TestReadCsvText:
    def test_rows_keyed_by_header(self, sample_csv: str) -> None:
        rows = read_csv_text(sample_csv)
        assert len(rows) == 5
        assert rows[0]["Community"] == "Alumni"
        assert rows[0]["Invites"] == 100
        assert rows[0]["Automation Stage"] == "Welcome"

    def test_blank_and_whitespace_lines_skipped(self) -> None:
        text = "\n".join([HEADER, "2024-01-01,1,1,1,1,S1,A", "   ", "", "2024-01-02,2,2,2,2,S1,A"])
        rows = read_csv_text(text)
        assert [r["Invites"] for r in rows] == [1, 2]

    def test_quoted_values_are_unwrapped_and_numeric(self, sample_csv: str) -> None:
        rows = read_csv_text(sample_csv)
        assert rows[2]["Tracking Date Formatted"] == "2024-02-01"
        assert rows[2]["Plays"] == 30

    def test_header_quotes_and_spaces_stripped(self) -> None:
        header = ", ".join(f'"{c}"' for c in REQUIRED_COLUMNS)
        rows = read_csv_text(header + "\n2024-01-01,1,2,3,4,S1,A\n")
        assert set(REQUIRED_COLUMNS) <= set(rows[0])
        assert rows[0]["Community"] == "A"

    def test_quoted_field_keeps_embedded_comma(self) -> None:
        rows = read_csv_text(HEADER + '\n2024-01-01,1,2,3,4,"Intro, part 1",A\n')
        assert rows[0]["Automation Stage"] == "Intro, part 1"

    def test_non_numeric_count_kept_as_text(self) -> None:
        rows = read_csv_text(HEADER + "\n2024-01-01,n/a,2,3,4,S1,A\n")
        assert rows[0]["Invites"] == "n/a"

    def test_trailing_comma_on_every_row_keeps_positions(self) -> None:
        text = HEADER + "\n2024-01-15,100,60,40,200,S1,A,\n2024-02-15,10,6,4,20,S2,B,\n"
        rows = read_csv_text(text)
        assert len(rows) == 2
        assert rows[0]["Tracking Date Formatted"] == "2024-01-15"
        assert rows[0]["Invites"] == 100
        assert rows[0]["Automation Stage"] == "S1"
        assert rows[0]["Community"] == "A"
        assert rows[1]["Community"] == "B"

    def test_ragged_row_extra_fields_dropped(self, caplog) -> None:
        text = HEADER + "\n2024-01-15,100,60,40,200,S1,A\n2024-02-15,10,6,4,20,S2,B,extra\n"
        with caplog.at_level(logging.WARNING, logger="engagement_insights.data_prep"):
            rows = read_csv_text(text)
        assert [r["Community"] for r in rows] == ["A", "B"]
        assert rows[1]["Play Time (Min)"] == 20
        assert "extra" not in rows[1].values()
        assert "extra values ignored" in caplog.text

    def test_short_row_padded_with_blanks(self) -> None:
        rows = read_csv_text(HEADER + "\n2024-01-15,100,60\n")
        assert rows[0]["Invites"] == 100
        assert rows[0]["Community"] == ""

    def test_header_only_gives_no_rows(self) -> None:
        assert read_csv_text(HEADER + "\n") == []

    def test_load_csv_reads_file_with_bom(self, tmp_path, sample_csv: str) -> None:
        path = tmp_path / "tracking.csv"
        path.write_text("\ufeff" + sample_csv, encoding="utf-8")
        rows = load_csv(str(path))
        assert len(rows) == 5
        assert "Tracking Date Formatted" in rows[0]


# ---------------------------------------------------------------------------
# RawRecord construction
# ---------------------------------------------------------------------------


class TestRawRecords:
    def test_from_mapping_maps_fields(self) -> None:
        rec = RawRecord.from_mapping(make_row(community="B", stage="S2"))
        assert rec.community == "B"
        assert rec.automation_stage == "S2"
        assert rec.play_time_minutes == 200

    def test_extra_columns_ignored(self) -> None:
        row = make_row()
        row["Campaign"] = "spring"
        rec = RawRecord.from_mapping(row)
        assert not hasattr(rec, "campaign")

    def test_missing_column_fails_fast(self) -> None:
        row = make_row()
        del row["Plays"]
        del row["Community"]
        with pytest.raises(MissingColumnsError) as exc_info:
            RawRecord.from_mapping(row)
        assert exc_info.value.missing == ["Community", "Plays"]
        assert "Plays" in str(exc_info.value)

    def test_missing_column_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            to_raw_records([{"Community": "A"}])

    def test_dataframe_input_validated_once(self) -> None:
        df = pd.DataFrame([make_row()]).drop(columns=["Invites"])
        with pytest.raises(MissingColumnsError) as exc_info:
            to_raw_records(df)
        assert exc_info.value.missing == ["Invites"]

    def test_raw_records_pass_through(self) -> None:
        rec = RawRecord.from_mapping(make_row())
        assert to_raw_records([rec]) == [rec]


# ---------------------------------------------------------------------------
# preprocess
# ---------------------------------------------------------------------------


class TestPreprocess:
    def test_counts_coerced_to_float(self) -> None:
        df = preprocess(to_raw_records([make_row(invites="12", clicks=3)]))
        assert df.loc[0, "invites"] == 12.0
        assert df.loc[0, "clicks"] == 3.0
        assert df["invites"].dtype == float

    def test_unparsable_and_blank_counts_become_zero(self) -> None:
        df = preprocess(to_raw_records([make_row(invites="n/a", clicks="", plays=None)]))
        assert df.loc[0, "invites"] == 0.0
        assert df.loc[0, "clicks"] == 0.0
        assert df.loc[0, "plays"] == 0.0

    def test_non_finite_counts_become_zero(self) -> None:
        df = preprocess(to_raw_records([make_row(invites=float("inf"), clicks=float("nan"))]))
        assert df.loc[0, "invites"] == 0.0
        assert df.loc[0, "clicks"] == 0.0

    def test_no_nan_survives(self) -> None:
        rows = [make_row(invites="x", clicks=None, plays="", play_time="?")]
        df = preprocess(to_raw_records(rows))
        for col in ("invites", "clicks", "plays", "play_time_minutes"):
            assert all(math.isfinite(v) for v in df[col])

    def test_dates_parsed_to_utc(self) -> None:
        df = preprocess(to_raw_records([make_row(tracking_date="2024-03-05")]))
        ts = df.loc[0, "tracking_date"]
        assert (ts.year, ts.month, ts.day) == (2024, 3, 5)
        assert str(ts.tz) == "UTC"

    def test_bad_date_becomes_nat(self) -> None:
        df = preprocess(to_raw_records([make_row(tracking_date="not a date")]))
        assert pd.isna(df.loc[0, "tracking_date"])

    def test_empty_input(self) -> None:
        df = preprocess([])
        assert df.empty
        assert "community" in df.columns

    def test_processed_records_view(self) -> None:
        df = preprocess(to_raw_records([make_row(community="Z")]))
        recs = processed_records(df)
        assert len(recs) == 1
        assert isinstance(recs[0], ProcessedRecord)
        assert recs[0].community == "Z"
        assert recs[0].plays == 40.0


# ---------------------------------------------------------------------------
# month_key
# ---------------------------------------------------------------------------


class TestMonthKey:
    def test_year_month(self) -> None:
        assert month_key(pd.Timestamp("2024-01-28", tz="UTC")) == "2024-01"

    def test_nat_is_unknown(self) -> None:
        assert month_key(pd.NaT) == UNKNOWN_MONTH
