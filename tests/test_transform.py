"""Tests for the Transform layer modules."""

from datetime import date

import pandas as pd
import pytest


class TestStatusMapping:
    """Test suite for MovementStatus label mapping."""

    @pytest.mark.parametrize("label,expected", [
        ("Em Transito", "in-transit"),
        ("Em Trânsito", "in-transit"),
        ("  ENTREGUE ", "delivered"),
        ("atrasado", "delayed"),
        ("Cancelado", "cancelled"),
        ("delivered", "delivered"),
        ("In Transit", "in-transit"),
    ])
    def test_known_labels(self, label, expected):
        from logistics_analytics.transform.status import parse_status

        assert parse_status(label).value == expected

    def test_unknown_label_rejected_by_default(self):
        from logistics_analytics.transform.status import parse_status

        assert parse_status("Extraviado") is None
        assert parse_status("other") is None

    def test_unknown_label_kept_as_other(self):
        from logistics_analytics.transform.status import (
            MovementStatus, UnknownStatusPolicy, parse_status
        )

        assert parse_status("Extraviado", UnknownStatusPolicy.OTHER) is MovementStatus.OTHER

    @pytest.mark.parametrize("label", [None, float("nan"), "", "   "])
    def test_missing_labels(self, label):
        from logistics_analytics.transform.status import UnknownStatusPolicy, parse_status

        assert parse_status(label, UnknownStatusPolicy.OTHER) is None


class TestMovementCleaner:
    """Test suite for MovementCleaner."""

    def _clean(self, raw, policy="reject"):
        from logistics_analytics.transform.cleaners import MovementCleaner
        return MovementCleaner(unknown_status=policy).clean(raw)

    def test_valid_rows_are_typed(self, raw_frame):
        result = self._clean(raw_frame({}, {"movement_id": "M002", "delay_days": "3"}))
        records = result.records

        assert len(records) == 2
        assert result.rejected_count == 0
        assert pd.api.types.is_datetime64_any_dtype(records["movement_date"])
        assert records["freight_value"].dtype == "float64"
        assert records["quantity"].dtype == "float64"
        assert records["delay_days"].dtype == "int64"
        assert records["status"].tolist() == ["delivered", "delivered"]
        assert records["delay_days"].tolist() == [0, 3]

    def test_non_numeric_freight_drops_exactly_one_row(self, raw_frame):
        raw = raw_frame(
            {"movement_id": "M1"},
            {"movement_id": "M2", "freight_value": "abc"},
            {"movement_id": "M3"},
        )

        result = self._clean(raw)

        assert len(result.records) == len(raw) - 1
        assert "M2" not in result.records["movement_id"].tolist()
        assert result.rejections.to_dict("records") == [
            {"row": 1, "movement_id": "M2", "reason": "non-numeric freight_value"}
        ]

    @pytest.mark.parametrize("override,reason", [
        ({"movement_date": "not a date"}, "unparseable movement_date"),
        ({"quantity": "ten"}, "non-numeric quantity"),
        ({"delay_days": "x"}, "non-numeric delay_days"),
        ({"delay_days": "-2"}, "negative delay_days"),
        ({"delay_days": "1.5"}, "fractional delay_days"),
        ({"freight_value": "-10"}, "negative freight_value"),
        ({"freight_value": "inf"}, "non-finite freight_value"),
        ({"status": "Extraviado"}, "unknown status"),
        ({"route": "   "}, "missing route"),
        ({"origin": None}, "missing origin"),
        ({"movement_date": None}, "missing movement_date"),
    ])
    def test_invalid_rows_are_dropped_with_reason(self, raw_frame, override, reason):
        raw = raw_frame({"movement_id": "OK"}, {"movement_id": "BAD", **override})

        result = self._clean(raw)

        assert result.records["movement_id"].tolist() == ["OK"]
        assert result.rejections["reason"].tolist() == [reason]

    def test_first_failing_step_is_reported(self, raw_frame):
        raw = raw_frame({"movement_date": "31/31/2024", "freight_value": "abc", "status": "?"})

        result = self._clean(raw)

        assert result.rejections["reason"].tolist() == ["unparseable movement_date"]

    def test_unknown_status_kept_under_other_policy(self, raw_frame):
        result = self._clean(raw_frame({"status": "Extraviado"}), policy="other")

        assert result.records["status"].tolist() == ["other"]

    def test_invalid_policy_rejected(self):
        from logistics_analytics.errors import ConfigurationError
        from logistics_analytics.transform.cleaners import MovementCleaner

        with pytest.raises(ConfigurationError):
            MovementCleaner(unknown_status="ignore")

    @pytest.mark.parametrize("day,month,week,weekday", [
        ("2024-12-30", 12, 1, "Monday"),
        ("2021-01-03", 1, 53, "Sunday"),
        ("2024-03-01", 3, 9, "Friday"),
    ])
    def test_calendar_features(self, raw_frame, day, month, week, weekday):
        records = self._clean(raw_frame({"movement_date": day})).records

        assert records.loc[0, "month"] == month
        assert records.loc[0, "week"] == week
        assert records.loc[0, "weekday"] == weekday

    def test_calendar_features_match_iso_calendar(self, raw_frame):
        days = pd.date_range("2023-12-20", "2024-01-10", freq="D")
        raw = raw_frame(*[
            {"movement_id": f"M{i}", "movement_date": d.strftime("%Y-%m-%d")}
            for i, d in enumerate(days)
        ])

        records = self._clean(raw).records

        for _, row in records.iterrows():
            expected = row["movement_date"].date()
            assert row["month"] == expected.month
            assert row["week"] == expected.isocalendar()[1]
            assert row["weekday"] == expected.strftime("%A")

    def test_input_order_preserved_and_never_longer(self, raw_frame):
        raw = raw_frame(
            {"movement_id": "C"},
            {"movement_id": "A", "status": "??"},
            {"movement_id": "B"},
        )

        result = self._clean(raw)

        assert result.records["movement_id"].tolist() == ["C", "B"]
        assert result.input_count == len(raw)
        assert len(result.records) <= len(raw)

    def test_dates_become_midnight_calendar_dates(self, raw_frame):
        records = self._clean(raw_frame({"movement_date": "2024-03-01 17:45:00"})).records

        assert records.loc[0, "movement_date"] == pd.Timestamp("2024-03-01")

    def test_accepts_date_objects(self, raw_frame):
        records = self._clean(raw_frame({"movement_date": date(2024, 3, 1)})).records

        assert records.loc[0, "month"] == 3

    def test_missing_columns_raise(self):
        from logistics_analytics.errors import DataQualityError
        from logistics_analytics.transform.cleaners import MovementCleaner

        with pytest.raises(DataQualityError):
            MovementCleaner().clean(pd.DataFrame({"movement_id": ["M1"]}))

    def test_empty_input(self, raw_frame):
        from logistics_analytics.extract.schema import MOVEMENT_COLUMNS

        empty = pd.DataFrame(columns=MOVEMENT_COLUMNS)

        result = self._clean(empty)

        assert result.records.empty
        assert result.rejections.empty
        assert result.reason_counts() == {}

    def test_reason_counts(self, raw_frame):
        raw = raw_frame(
            {"movement_id": "1", "status": "??"},
            {"movement_id": "2", "status": "??"},
            {"movement_id": "3", "quantity": "x"},
        )

        assert self._clean(raw).reason_counts() == {
            "unknown status": 2,
            "non-numeric quantity": 1,
        }

    def test_mixed_date_and_datetime_strings(self, raw_frame):
        raw = raw_frame(
            {"movement_id": "A", "movement_date": "2024-03-01"},
            {"movement_id": "B", "movement_date": "2024-03-02 10:30:00"},
            {"movement_id": "C", "movement_date": "2024-03-03T08:00:00"},
        )

        result = self._clean(raw)

        assert result.rejected_count == 0, result.rejections
        assert result.records["movement_date"].tolist() == [
            pd.Timestamp("2024-03-01"),
            pd.Timestamp("2024-03-02"),
            pd.Timestamp("2024-03-03"),
        ]

    def test_datetime_first_does_not_reject_later_dates(self, raw_frame):
        raw = raw_frame(
            {"movement_id": "A", "movement_date": "2024-03-02 10:30:00"},
            {"movement_id": "B", "movement_date": "2024-03-01"},
        )

        assert len(self._clean(raw).records) == 2

    def test_integer_ids_read_as_float_keep_integer_text(self, raw_frame):
        raw = raw_frame({"movement_id": 1.0}, {"movement_id": float("nan")}, {"movement_id": 3.0})

        result = self._clean(raw)

        assert result.records["movement_id"].tolist() == ["1", "3"]
        assert result.rejections["reason"].tolist() == ["missing movement_id"]


class TestValidators:
    """Test suite for movement consistency checks."""

    def test_rule_counts_violations_and_samples_ids(self):
        from logistics_analytics.transform.validators import DataValidator

        df = pd.DataFrame({"movement_id": ["1", "2", "3"], "quantity": [5.0, 0.0, 0.0]})

        report = (
            DataValidator("test")
            .add_rule("empty_load", lambda d: d["quantity"] == 0, "Nothing moved")
            .validate(df)
        )

        assert not report.passed
        failure = report.failures()[0]
        assert failure.violations == 2
        assert failure.sample_ids == ["2", "3"]

    def test_unique_check_flags_repeats_only(self):
        from logistics_analytics.transform.validators import DataValidator

        df = pd.DataFrame({"movement_id": ["1", "1", "2"]})

        report = DataValidator("test").add_unique_check(["movement_id"]).validate(df)

        assert report.results[0].violations == 1

    def test_cleaned_records_pass(self, clean_frame):
        from logistics_analytics.transform.validators import create_movements_validator

        records = clean_frame(
            {"movement_id": "M1"},
            {"movement_id": "M2", "delay_days": "2", "status": "Atrasado"},
        )

        report = create_movements_validator(as_of=date(2024, 4, 1)).validate(records)

        assert report.passed
        assert report.to_dict()["failures"] == []

    @pytest.mark.parametrize("rows,rule", [
        ([{"movement_id": "M1"}, {"movement_id": "M1"}], "unique_movement_id"),
        ([{"movement_id": "M1", "status": "Atrasado", "delay_days": "0"}],
         "delayed_without_delay_days"),
        ([{"movement_id": "M1", "origin": "Santos", "destination": " santos "}],
         "same_origin_destination"),
        ([{"movement_id": "M1", "movement_date": "2024-05-01"}], "future_movement_date"),
    ])
    def test_inconsistent_records_are_reported(self, clean_frame, rows, rule):
        from logistics_analytics.transform.validators import create_movements_validator

        records = clean_frame(*rows)

        report = create_movements_validator(as_of=date(2024, 4, 1)).validate(records)

        assert [r.rule_name for r in report.failures()] == [rule]
        assert len(records) == len(rows)

    def test_empty_records(self):
        from logistics_analytics.extract.schema import MOVEMENT_COLUMNS
        from logistics_analytics.transform.cleaners import MovementCleaner
        from logistics_analytics.transform.validators import create_movements_validator

        records = MovementCleaner().clean(pd.DataFrame(columns=MOVEMENT_COLUMNS)).records

        report = create_movements_validator().validate(records)

        assert report.passed
        assert report.row_count == 0
