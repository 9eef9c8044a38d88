from datetime import datetime, timedelta, timezone

from models.tree_record import ClassificationRecord, Prediction
from services.analytics import build_report, bucket_by_day, summarize


def make_record(status, when, record_id=None):
    return ClassificationRecord(
        id=record_id,
        subject_id="tree",
        image_data="x",
        health_status=status,
        timestamp=when,
        predictions=[Prediction(status, 1.0)],
    )


DAY1 = datetime(2024, 1, 1, 10, tzinfo=timezone.utc)
DAY2 = datetime(2024, 1, 2, 9, tzinfo=timezone.utc)


def test_summarize_empty():
    summary = summarize([])
    assert (summary.total_records, summary.healthy_count, summary.unhealthy_count) == (0, 0, 0)


def test_anything_but_exact_healthy_is_unhealthy():
    records = [
        make_record("healthy", DAY1),
        make_record("unhealthy", DAY1),
        make_record("leaf-spot", DAY1),
        make_record("Healthy", DAY1),
        make_record("", DAY1),
    ]
    summary = summarize(records)
    assert summary.total_records == len(records)
    assert summary.healthy_count == 1
    assert summary.unhealthy_count == 4
    assert summary.healthy_count + summary.unhealthy_count == summary.total_records


def test_same_day_records_share_a_bucket():
    records = [make_record("healthy", DAY1), make_record("unhealthy", DAY1 + timedelta(hours=1))]
    assert summarize(records).to_dict() == {"totalRecords": 2, "healthyCount": 1, "unhealthyCount": 1}
    buckets = bucket_by_day(records, tz=timezone.utc)
    assert [b.to_dict() for b in buckets] == [
        {"date": "2024-01-01", "count": 2, "healthyCount": 1, "unhealthyCount": 1}
    ]


def test_buckets_follow_first_encounter_order():
    records = [
        make_record("healthy", DAY2),
        make_record("unhealthy", DAY1),
        make_record("healthy", DAY2 + timedelta(hours=2)),
    ]
    buckets = bucket_by_day(records, tz=timezone.utc)
    assert [b.date for b in buckets] == ["2024-01-02", "2024-01-01"]
    assert sum(b.count for b in buckets) == len(records)
    assert buckets[0].healthy_count == 2


def test_bucket_date_depends_on_zone():
    late = datetime(2024, 1, 1, 23, 30, tzinfo=timezone.utc)
    east = timezone(timedelta(hours=2))
    assert bucket_by_day([make_record("healthy", late)], tz=east)[0].date == "2024-01-02"
    assert bucket_by_day([make_record("healthy", late)], tz=timezone.utc)[0].date == "2024-01-01"


def test_repeated_calls_give_identical_output():
    records = [make_record("healthy", DAY1), make_record("sick", DAY2)]
    assert build_report(records, tz=timezone.utc) == build_report(records, tz=timezone.utc)
    assert bucket_by_day(records) == bucket_by_day(records)


def test_build_report_accepts_generators():
    report = build_report((make_record("healthy", DAY1) for _ in range(3)), tz=timezone.utc)
    assert report["totalRecords"] == 3
    assert report["dailyAnalysis"] == [
        {"date": "2024-01-01", "count": 3, "healthyCount": 3, "unhealthyCount": 0}
    ]
