# tracker/monthly_summary.py
"""
Monthly completion summaries, month-over-month trends and multi-month history.

Summaries are built fresh from a task snapshot on every request and are never
persisted. Month boundaries are local time: [first instant of the month,
first instant of the next month).
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from .accuracy import AccuracyAnalyzer, AccuracyResult
from .app_logger import get_logger, log_event
from .errors import InsufficientData, ValidationError
from .insights import DEFAULT_TONE, InsightContext, celebration_message, generate_insights
from .sparkline import accuracy_sparkline, completion_rate_sparkline
from .task_schema import TaskRecord

logger = get_logger('monthly_summary')

MONTH_RE = re.compile(r'^(\d{4})-(\d{2})$')

PreviousLookup = Callable[[int, int], Optional['MonthlySummary']]


# ============================================================================
# Month helpers
# ============================================================================

def month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def parse_month(value: str) -> Tuple[int, int]:
    """Parse 'YYYY-MM' into (year, month)."""
    match = MONTH_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValidationError(f"Invalid month format {value!r}. Use YYYY-MM (e.g., 2025-09)")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month {month} in {value!r}")
    return year, month


def previous_month(year: int, month: int) -> Tuple[int, int]:
    return (year - 1, 12) if month == 1 else (year, month - 1)


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    """Inclusive start, exclusive end of a calendar month."""
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month {month}")
    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
    return start, end


# ============================================================================
# Result types
# ============================================================================

@dataclass(frozen=True)
class DailyCompletion:
    date: date
    completed: int


@dataclass(frozen=True)
class MonthlyTrend:
    previous_month: float = 0.0
    improvement: float = 0.0


@dataclass(frozen=True)
class MonthlySummary:
    month: str
    total_tasks: int
    completed_tasks: int
    completion_rate: float
    daily_completions: Tuple[DailyCompletion, ...]
    insights: Tuple[str, ...] = ()
    celebration_message: Optional[str] = None
    monthly_trend: MonthlyTrend = field(default_factory=MonthlyTrend)
    estimation_accuracy: Optional[float] = None
    average_actual_minutes: Optional[int] = None
    longest_streak: int = 0
    most_productive_day: Optional[str] = None
    insufficient: Optional[InsufficientData] = None

    def to_dict(self) -> dict:
        return {
            'month': self.month,
            'totalTasks': self.total_tasks,
            'completedTasks': self.completed_tasks,
            'completionRate': self.completion_rate,
            'dailyCompletions': [
                {'date': d.date.isoformat(), 'completed': d.completed}
                for d in self.daily_completions
            ],
            'insights': list(self.insights),
            'celebrationMessage': self.celebration_message,
            'monthlyTrend': {
                'previousMonth': self.monthly_trend.previous_month,
                'improvement': self.monthly_trend.improvement,
            },
            'estimationAccuracy': self.estimation_accuracy,
            'averageActualMinutes': self.average_actual_minutes,
            'longestStreak': self.longest_streak,
            'mostProductiveDay': self.most_productive_day,
        }


@dataclass(frozen=True)
class HistoricalMonth:
    month: str
    summary: MonthlySummary


@dataclass(frozen=True)
class HistoricalTrends:
    months: Tuple[HistoricalMonth, ...]  # newest first
    completion_rate_sparkline: str  # oldest to newest
    accuracy_sparkline: str
    completion_rate_improving: bool
    estimation_accuracy_improving: bool


def compute_trend(current_rate: float, previous: Optional[MonthlySummary]) -> MonthlyTrend:
    """Month-over-month comparison; a missing previous month counts as 0."""
    previous_rate = previous.completion_rate if previous is not None else 0.0
    return MonthlyTrend(
        previous_month=previous_rate,
        improvement=round(current_rate - previous_rate, 2),
    )


def is_improving(values: Sequence[Optional[float]]) -> bool:
    """True when the newer half of a chronological series averages higher than the older half."""
    present = [v for v in values if v is not None]
    if len(present) < 2:
        return False
    split = len(present) // 2
    older, newer = present[:split], present[split:]
    return sum(newer) / len(newer) > sum(older) / len(older)


# ============================================================================
# Aggregation
# ============================================================================

def _tasks_frame(tasks: Sequence[TaskRecord]) -> pd.DataFrame:
    return pd.DataFrame({
        'created_at': pd.Series([t.created_at for t in tasks], dtype='datetime64[ns]'),
        'completed_at': pd.Series([t.completed_at for t in tasks], dtype='datetime64[ns]'),
        'is_completed': pd.Series([t.is_completed for t in tasks], dtype=bool),
    })


def _longest_streak(active_days: pd.DatetimeIndex) -> int:
    """Longest run of consecutive calendar days in a sorted index."""
    if len(active_days) == 0:
        return 0
    gaps = active_days.to_series().diff().dt.days.ne(1)
    run_ids = gaps.cumsum()
    return int(run_ids.value_counts().max())


class MonthlyAggregator:
    """Builds monthly summaries from a task snapshot.

    Args:
        preferences: Optional preference mapping; reads 'celebration_language'
            and 'enable_insights'.
        accuracy_analyzer: Collaborator for the estimation-accuracy figure.
    """

    def __init__(self, preferences: Optional[Dict] = None,
                 accuracy_analyzer: Optional[AccuracyAnalyzer] = None):
        preferences = preferences or {}
        self.tone = preferences.get('celebration_language') or DEFAULT_TONE
        self.enable_insights = bool(preferences.get('enable_insights', True))
        self.accuracy_analyzer = accuracy_analyzer or AccuracyAnalyzer()

    def summarize(
        self,
        tasks: Iterable[TaskRecord],
        year: int,
        month: int,
        previous_lookup: Optional[PreviousLookup] = None
    ) -> MonthlySummary:
        """Summarize one calendar month.

        In-scope tasks are those created or completed inside the month;
        completed_tasks counts the ones whose completed_at falls inside it.

        Args:
            tasks: Task snapshot (any range; filtered here)
            year: Calendar year
            month: Calendar month 1-12
            previous_lookup: Callable (year, month) -> MonthlySummary or None
                for the prior month. Defaults to summarizing the same snapshot.

        Returns:
            MonthlySummary with a trend against the previous month
        """
        tasks = list(tasks)
        if previous_lookup is None:
            def previous_lookup(y: int, m: int) -> Optional[MonthlySummary]:
                return self._summarize(tasks, y, m, previous=None)

        prev_year, prev_month = previous_month(year, month)
        previous = previous_lookup(prev_year, prev_month)
        summary = self._summarize(tasks, year, month, previous=previous, with_trend=True)

        log_event(logger, logging.INFO, 'Monthly summary generated', {
            'month': summary.month,
            'total_tasks': summary.total_tasks,
            'completed_tasks': summary.completed_tasks,
            'completion_rate': summary.completion_rate,
            'improvement': summary.monthly_trend.improvement,
        })
        return summary

    def _summarize(
        self,
        tasks: List[TaskRecord],
        year: int,
        month: int,
        previous: Optional[MonthlySummary],
        with_trend: bool = False
    ) -> MonthlySummary:
        start, end = month_bounds(year, month)
        frame = _tasks_frame(tasks)

        created_in = (frame['created_at'] >= start) & (frame['created_at'] < end)
        completed_in = (
            frame['is_completed']
            & (frame['completed_at'] >= start)
            & (frame['completed_at'] < end)
        )
        in_scope = created_in | completed_in

        total_tasks = int(in_scope.sum())
        completed_tasks = int(completed_in.sum())
        completion_rate = round(completed_tasks / total_tasks * 100, 2) if total_tasks else 0.0

        # Zero-filled histogram over every day of the month
        days = pd.date_range(start, end, freq='D', inclusive='left')
        completion_days = frame.loc[completed_in, 'completed_at'].dt.normalize()
        per_day = completion_days.value_counts().reindex(days, fill_value=0)
        daily_completions = tuple(
            DailyCompletion(date=day.date(), completed=int(count))
            for day, count in per_day.items()
        )

        active_days = per_day[per_day > 0].index
        longest_streak = _longest_streak(active_days)

        most_productive_day = None
        if completed_tasks:
            weekday_counts = completion_days.dt.weekday.value_counts().sort_index()
            most_productive_day = pd.Timestamp(2024, 1, 1 + int(weekday_counts.idxmax())).day_name()

        completed_records = [t for t, flag in zip(tasks, completed_in) if flag]
        actuals = [t.actual_minutes for t in completed_records if t.actual_minutes is not None]
        average_actual = int(round(sum(actuals) / len(actuals))) if actuals else None
        accuracy: AccuracyResult = self.accuracy_analyzer.analyze(completed_records)

        trend = compute_trend(completion_rate, previous) if with_trend else MonthlyTrend()

        ctx = InsightContext(
            total_tasks=total_tasks,
            completed_tasks=completed_tasks,
            completion_rate=completion_rate,
            improvement=trend.improvement,
            previous_rate=trend.previous_month,
            estimation_accuracy=accuracy.overall_accuracy,
            tasks_with_estimates=accuracy.tasks_analyzed,
            longest_streak=longest_streak,
            most_productive_day=most_productive_day,
        )
        insights = tuple(generate_insights(ctx)) if self.enable_insights else ()

        return MonthlySummary(
            month=month_key(year, month),
            total_tasks=total_tasks,
            completed_tasks=completed_tasks,
            completion_rate=completion_rate,
            daily_completions=daily_completions,
            insights=insights,
            celebration_message=celebration_message(ctx, self.tone),
            monthly_trend=trend,
            estimation_accuracy=accuracy.overall_accuracy,
            average_actual_minutes=average_actual,
            longest_streak=longest_streak,
            most_productive_day=most_productive_day,
            insufficient=None if total_tasks else InsufficientData('no tasks created or completed this month'),
        )

    def summarize_history(
        self,
        tasks: Iterable[TaskRecord],
        months_back: int = 6,
        now: Optional[datetime] = None
    ) -> HistoricalTrends:
        """Summaries for the last `months_back` months including the current one."""
        if months_back < 1:
            raise ValidationError("months_back must be at least 1")
        tasks = list(tasks)
        now = now or datetime.now()

        year, month = now.year, now.month
        months: List[HistoricalMonth] = []
        for _ in range(months_back):
            summary = self.summarize(tasks, year, month)
            months.append(HistoricalMonth(month=summary.month, summary=summary))
            year, month = previous_month(year, month)

        chronological = list(reversed(months))
        rates = [None if m.summary.insufficient is not None else m.summary.completion_rate
                 for m in chronological]
        accuracies = [m.summary.estimation_accuracy for m in chronological]

        return HistoricalTrends(
            months=tuple(months),
            completion_rate_sparkline=completion_rate_sparkline(rates),
            accuracy_sparkline=accuracy_sparkline(accuracies),
            completion_rate_improving=is_improving(rates),
            estimation_accuracy_improving=is_improving(accuracies),
        )
