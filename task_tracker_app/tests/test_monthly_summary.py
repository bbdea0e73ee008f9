import os
import sys
from datetime import date, datetime, timedelta, timezone

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tracker.errors import ValidationError
from tracker.monthly_summary import (
    MonthlyAggregator,
    compute_trend,
    is_improving,
    month_bounds,
    parse_month,
    previous_month,
)
from tracker.task_schema import TaskRecord

_counter = iter(range(10000))


def _task(created, completed=None, estimated=None, actual=None):
    n = next(_counter)
    return TaskRecord(
        id=f'task-{n}',
        title=f'Task {n}',
        created_at=created,
        estimated_minutes=estimated,
        actual_minutes=actual,
        is_completed=completed is not None,
        completed_at=completed,
    )


# -----------------------------
# Month helpers
# -----------------------------

def test_parse_month():
    assert parse_month('2025-09') == (2025, 9)
    for bad in ('2025-13', '2025-00', 'Sept', '2025/09', ''):
        with pytest.raises(ValidationError):
            parse_month(bad)


def test_previous_month_wraps_year():
    assert previous_month(2025, 1) == (2024, 12)
    assert previous_month(2025, 6) == (2025, 5)


def test_month_bounds_are_half_open():
    start, end = month_bounds(2024, 12)
    assert start == datetime(2024, 12, 1)
    assert end == datetime(2025, 1, 1)


# -----------------------------
# Summaries
# -----------------------------

def test_empty_month_is_a_valid_state():
    summary = MonthlyAggregator().summarize([], 2024, 2)
    assert summary.month == '2024-02'
    assert summary.total_tasks == 0
    assert summary.completed_tasks == 0
    assert summary.completion_rate == 0.0
    assert len(summary.daily_completions) == 29
    assert all(d.completed == 0 for d in summary.daily_completions)
    assert summary.estimation_accuracy is None
    assert summary.insufficient is not None and not summary.insufficient
    assert summary.celebration_message
    assert "ready to start" in summary.insights[0]


def test_month_over_month_trend():
    jan = [_task(datetime(2025, 1, d + 1), datetime(2025, 1, d + 1, 18)) for d in range(3)]
    jan += [_task(datetime(2025, 1, 10)), _task(datetime(2025, 1, 11))]
    feb = [_task(datetime(2025, 2, d + 1), datetime(2025, 2, d + 1, 18)) for d in range(4)]
    feb += [_task(datetime(2025, 2, 20))]

    summary = MonthlyAggregator().summarize(jan + feb, 2025, 2)
    assert summary.completion_rate == 80.0
    assert summary.monthly_trend.previous_month == 60.0
    assert summary.monthly_trend.improvement == 20.0


def test_trend_uses_supplied_previous_lookup():
    tasks = [_task(datetime(2025, 3, 2), datetime(2025, 3, 2, 12))]
    summary = MonthlyAggregator().summarize(tasks, 2025, 3, previous_lookup=lambda y, m: None)
    assert summary.monthly_trend.previous_month == 0.0
    assert summary.monthly_trend.improvement == 100.0


def test_daily_histogram_is_zero_filled():
    tasks = [
        _task(datetime(2024, 3, 1), datetime(2024, 3, 5, 9)),
        _task(datetime(2024, 3, 1), datetime(2024, 3, 5, 17)),
        _task(datetime(2024, 3, 2), datetime(2024, 3, 6, 10)),
    ]
    summary = MonthlyAggregator().summarize(tasks, 2024, 3)
    days = summary.daily_completions
    assert len(days) == 31
    assert days[0].date == date(2024, 3, 1)
    assert days[4].completed == 2
    assert days[5].completed == 1
    assert sum(d.completed for d in days) == 3
    assert summary.longest_streak == 2
    assert summary.most_productive_day == 'Tuesday'


def test_task_completed_in_month_counts_even_if_created_earlier():
    tasks = [_task(datetime(2025, 1, 31, 22), datetime(2025, 2, 1, 9))]
    summary = MonthlyAggregator().summarize(tasks, 2025, 2)
    assert summary.total_tasks == 1
    assert summary.completed_tasks == 1
    assert summary.completion_rate == 100.0


def test_timezone_aware_records_are_summarized_in_local_time():
    created = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)
    task = TaskRecord(
        id='aware',
        title='Aware',
        created_at=created,
        completed_at=created + timedelta(hours=1),
        is_completed=True,
    )
    assert task.created_at.tzinfo is None
    assert task.completed_at.tzinfo is None

    summary = MonthlyAggregator().summarize([task], 2025, 3)
    assert summary.total_tasks == 1
    assert summary.completed_tasks == 1
    assert summary.completion_rate == 100.0


def test_estimation_accuracy_and_average_actual():
    tasks = [
        _task(datetime(2025, 5, 1), datetime(2025, 5, 1, 10), estimated=30, actual=30),
        _task(datetime(2025, 5, 2), datetime(2025, 5, 2, 10), estimated=60, actual=60),
    ]
    summary = MonthlyAggregator().summarize(tasks, 2025, 5)
    assert summary.estimation_accuracy == 100.0
    assert summary.average_actual_minutes == 45


def test_excellent_month_insights_and_tones():
    tasks = [_task(datetime(2025, 4, d + 1), datetime(2025, 4, d + 1, 12)) for d in range(10)]

    summary = MonthlyAggregator().summarize(tasks, 2025, 4)
    assert summary.completion_rate == 100.0
    assert 'excellence' in summary.insights[0]
    assert summary.celebration_message.startswith('🎉 Outstanding!')

    professional = MonthlyAggregator(preferences={'celebration_language': 'professional'})
    assert professional.summarize(tasks, 2025, 4).celebration_message.startswith('Excellent performance')

    quiet = MonthlyAggregator(preferences={'enable_insights': False})
    assert quiet.summarize(tasks, 2025, 4).insights == ()


def test_to_dict_uses_camel_case_keys():
    data = MonthlyAggregator().summarize([], 2025, 9).to_dict()
    assert data['totalTasks'] == 0
    assert data['monthlyTrend'] == {'previousMonth': 0.0, 'improvement': 0.0}
    assert data['dailyCompletions'][0] == {'date': '2025-09-01', 'completed': 0}
    assert len(data['dailyCompletions']) == 30


def test_compute_trend_without_previous_month():
    trend = compute_trend(50.0, None)
    assert trend.previous_month == 0.0
    assert trend.improvement == 50.0


def test_is_improving():
    assert is_improving([10, 20, 30, 40])
    assert is_improving([None, 50, None, 100])
    assert not is_improving([40, 10])
    assert not is_improving([None, 80])


# -----------------------------
# History
# -----------------------------

def test_history_has_gaps_for_empty_months():
    tasks = [_task(datetime(2024, 6, 3), datetime(2024, 6, 3, 12), estimated=30, actual=30)]
    trends = MonthlyAggregator().summarize_history(tasks, months_back=3, now=datetime(2024, 6, 15))
    assert [m.month for m in trends.months] == ['2024-06', '2024-05', '2024-04']
    assert trends.completion_rate_sparkline == '··█'
    assert trends.accuracy_sparkline == '··█'
    assert not trends.completion_rate_improving


def test_history_detects_improvement():
    tasks = [
        _task(datetime(2024, 4, 1), datetime(2024, 4, 1, 12)),
        _task(datetime(2024, 4, 2)),
        _task(datetime(2024, 6, 1), datetime(2024, 6, 1, 12)),
    ]
    trends = MonthlyAggregator().summarize_history(tasks, months_back=3, now=datetime(2024, 6, 15))
    assert trends.completion_rate_improving


def test_history_requires_at_least_one_month():
    with pytest.raises(ValidationError):
        MonthlyAggregator().summarize_history([], months_back=0)
