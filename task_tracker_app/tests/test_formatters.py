import os
import sys
from datetime import datetime

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tracker.accuracy import AccuracyAnalyzer
from tracker.formatters import (
    BAR_WIDTH,
    format_history,
    format_monthly_summary,
    format_stats,
    format_task_line,
    format_task_list,
    weekly_completion_chart,
)
from tracker.monthly_summary import MonthlyAggregator
from tracker.task_schema import TaskRecord


def _task(task_id, created, completed=None, estimated=None, actual=None, tags=()):
    return TaskRecord(
        id=task_id,
        title=f'Task {task_id}',
        created_at=created,
        estimated_minutes=estimated,
        actual_minutes=actual,
        is_completed=completed is not None,
        completed_at=completed,
        tags=tags,
    )


def test_task_line():
    line = format_task_line(_task('abcdef123456', datetime(2025, 9, 1), datetime(2025, 9, 1, 10),
                                  estimated=90, actual=45, tags=('work',)))
    assert line.startswith('[✓] abcdef12  Task abcdef123456')
    assert 'est 1h30m' in line
    assert 'took 45m' in line
    assert '#work' in line


def test_empty_task_list():
    assert 'No tasks found' in format_task_list([])


def test_stats_without_completions():
    text = format_stats(AccuracyAnalyzer().analyze([]), 'September 2025')
    assert 'September 2025' in text
    assert 'No completed tasks yet this month.' in text


def test_stats_without_estimates():
    result = AccuracyAnalyzer().analyze([_task('a', datetime(2025, 9, 1), datetime(2025, 9, 1, 9), actual=20)])
    assert 'Try adding time estimates' in format_stats(result, 'September 2025')


def test_stats_with_accuracy():
    tasks = [
        _task('a', datetime(2025, 9, 1), datetime(2025, 9, 1, 9), estimated=30, actual=30),
        _task('b', datetime(2025, 9, 2), datetime(2025, 9, 2, 9), estimated=60, actual=30),
    ]
    text = format_stats(AccuracyAnalyzer().analyze(tasks), 'September 2025')
    assert 'Overall Accuracy:' in text
    assert 'Accurate: 1 (50%)' in text
    assert 'Overestimated: 1 (50%)' in text
    assert 'Estimated: 45m' in text


def test_weekly_chart_clamps_weeks_to_month():
    # February 2024 starts on a Thursday: weeks 1-4, 5-11, 12-18, 19-25, 26-29
    tasks = [_task('a', datetime(2024, 2, 6), datetime(2024, 2, 6, 12)), _task('b', datetime(2024, 2, 27))]
    chart = weekly_completion_chart(tasks, 2024, 2)
    lines = [line for line in chart.splitlines() if line.startswith('Week')]
    assert len(lines) == 5
    assert lines[0].startswith('Week 1 (Feb 1-4)')
    assert '█' * BAR_WIDTH + ' 1/1 tasks (100%)' in lines[1]
    assert '░' * BAR_WIDTH + ' 0/1 tasks (0%)' in lines[4]


def test_weekly_chart_empty_month():
    assert 'No tasks created this month.' in weekly_completion_chart([], 2024, 2)


def test_monthly_summary_text():
    tasks = [_task('a', datetime(2025, 4, 1), datetime(2025, 4, 1, 12), estimated=30, actual=30)]
    summary = MonthlyAggregator().summarize(tasks, 2025, 4)
    text = format_monthly_summary(summary, tasks)
    assert 'Monthly Summary - April 2025' in text
    assert 'Completion Rate: 100.0%' in text
    assert 'Estimation Accuracy: 100.0%' in text
    assert 'Weekly Completion Pattern' in text
    assert 'Insights:' in text


def test_history_text():
    tasks = [_task('a', datetime(2024, 6, 3), datetime(2024, 6, 3, 12))]
    trends = MonthlyAggregator().summarize_history(tasks, months_back=2, now=datetime(2024, 6, 15))
    text = format_history(trends)
    assert '2024-06' in text and '2024-05' in text
    assert 'Completion rate (oldest → newest): ·█' in text
