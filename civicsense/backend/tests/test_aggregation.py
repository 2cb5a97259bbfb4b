import datetime as dt

import pytest

from errors import ValidationError
from services.aggregation import bucket_key, count_by, group_statistics, performance_metrics, trend

from conftest import make_report

UTC = dt.timezone.utc


class TestCountBy:
    @pytest.mark.parametrize("dimension", ["status", "priority", "category"])
    def test_counts_sum_to_subset_size(self, scenario_reports, dimension):
        counts = count_by(scenario_reports, dimension)
        assert sum(counts.values()) == len(scenario_reports)

    def test_status_counts(self, scenario_reports):
        assert count_by(scenario_reports, "status") == {"submitted": 2, "in_progress": 2, "resolved": 1}

    def test_unseen_values_are_absent(self, scenario_reports):
        assert "low" not in count_by(scenario_reports, "priority")

    def test_empty_subset(self):
        assert count_by([], "status") == {}

    def test_unknown_dimension(self, scenario_reports):
        with pytest.raises(ValidationError):
            count_by(scenario_reports, "colour")


class TestTrend:
    def test_day_buckets(self, scenario_reports):
        assert trend(scenario_reports, "day") == {
            "2024-01-11": 1,
            "2024-01-12": 1,
            "2024-01-13": 1,
            "2024-01-14": 1,
            "2024-01-15": 1,
        }

    def test_week_starts_on_sunday(self):
        # 2024-01-14 is a Sunday.
        assert bucket_key(dt.datetime(2024, 1, 17, 9, tzinfo=UTC), "week") == "2024-01-14"
        assert bucket_key(dt.datetime(2024, 1, 14, 0, tzinfo=UTC), "week") == "2024-01-14"
        assert bucket_key(dt.datetime(2024, 1, 13, 23, tzinfo=UTC), "week") == "2024-01-07"

    def test_week_buckets(self, scenario_reports):
        assert trend(scenario_reports, "week") == {"2024-01-07": 3, "2024-01-14": 2}

    def test_month_key_is_zero_padded(self):
        reports = [make_report(1, created_at=dt.datetime(2024, 3, 5, tzinfo=UTC)),
                   make_report(2, created_at=dt.datetime(2023, 12, 31, 23, tzinfo=UTC))]
        assert trend(reports, "month") == {"2023-12": 1, "2024-03": 1}

    @pytest.mark.parametrize("granularity", ["day", "week", "month"])
    def test_buckets_sum_to_subset_size(self, scenario_reports, granularity):
        assert sum(trend(scenario_reports, granularity).values()) == len(scenario_reports)

    @pytest.mark.parametrize("granularity", ["century", "", "hour"])
    def test_unknown_granularity_is_rejected(self, scenario_reports, granularity):
        with pytest.raises(ValidationError):
            trend(scenario_reports, granularity)

    def test_unknown_granularity_rejected_even_when_empty(self):
        with pytest.raises(ValidationError):
            trend([], "century")


class TestPerformance:
    def test_empty_subset_has_zero_rates(self):
        m = performance_metrics([])
        assert (m.total, m.resolved, m.resolution_rate, m.avg_resolution_hours) == (0, 0, 0, 0)

    def test_scenario_resolution_rate(self, scenario_reports):
        m = performance_metrics(scenario_reports)
        assert m.total == 5
        assert m.resolved == 1
        assert m.resolution_rate == pytest.approx(20.0)
        # Pothole: created 13th 08:00, updated 17th 16:00.
        assert m.avg_resolution_hours == pytest.approx(104.0)

    def test_closed_counts_as_resolved(self):
        created = dt.datetime(2024, 1, 1, tzinfo=UTC)
        reports = [
            make_report(1, status="closed", created_at=created, updated_at=created + dt.timedelta(hours=10)),
            make_report(2, status="resolved", created_at=created, updated_at=created + dt.timedelta(hours=20)),
            make_report(3, status="in_progress", created_at=created, updated_at=created + dt.timedelta(hours=99)),
            make_report(4, status="submitted", created_at=created),
        ]
        m = performance_metrics(reports)
        assert m.resolved == 2
        assert m.resolution_rate == pytest.approx(50.0)
        assert m.avg_resolution_hours == pytest.approx(15.0)


def test_group_statistics(scenario_reports):
    stats = group_statistics(scenario_reports, "department", ("status", "priority"))
    assert list(stats) == sorted(stats)
    assert stats["Public Works"] == {
        "total": 2,
        "byStatus": {"submitted": 1, "resolved": 1},
        "byPriority": {"medium": 1, "high": 1},
    }
    assert sum(s["total"] for s in stats.values()) == len(scenario_reports)


def test_aggregations_are_repeatable(scenario_reports):
    snapshot = tuple(scenario_reports)
    first = (count_by(snapshot, "status"), trend(snapshot, "week"), performance_metrics(snapshot))
    second = (count_by(snapshot, "status"), trend(snapshot, "week"), performance_metrics(snapshot))
    assert first == second
    assert snapshot == tuple(scenario_reports)
