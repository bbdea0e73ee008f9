# tracker/formatters.py
"""Plain-text rendering of tasks and analytics results for the CLI."""
from datetime import date, timedelta
from typing import List, Sequence, Tuple

from .accuracy import AccuracyResult
from .duration_codec import format_duration
from .monthly_summary import HistoricalTrends, MonthlySummary, month_bounds
from .sparkline import render_sparkline
from .task_schema import TaskRecord

BAR_WIDTH = 20
COMPLETED_CHAR = '█'
PENDING_CHAR = '░'
RULE = '=' * 60


def format_task_line(task: TaskRecord) -> str:
    status = '✓' if task.is_completed else ' '
    parts = [f"[{status}] {task.id[:8]}  {task.title}"]
    if task.estimated_minutes is not None:
        parts.append(f"est {format_duration(task.estimated_minutes)}")
    if task.actual_minutes is not None:
        parts.append(f"took {format_duration(task.actual_minutes)}")
    if task.tags:
        parts.append(' '.join(f"#{t}" for t in task.tags))
    return '  '.join(parts)


def format_task_list(tasks: Sequence[TaskRecord]) -> str:
    if not tasks:
        return "No tasks found. Add one with: task-tracker add \"My task\" --estimate 30m"
    return '\n'.join(format_task_line(t) for t in tasks)


def _percent(part: int, whole: int) -> int:
    return int(part / whole * 100 + 0.5) if whole else 0


def format_stats(stats: AccuracyResult, month_name: str) -> str:
    lines = [f"📊 Your Productivity Stats - {month_name}", ""]

    if stats.total_completed == 0:
        lines.append("No completed tasks yet this month.")
        lines.append("Start completing some tasks to see your estimation accuracy! 🚀")
        return '\n'.join(lines)

    lines.append("Tasks Overview:")
    lines.append(f"  ✅ Completed: {stats.total_completed}")
    lines.append(f"  ⏱️  With Estimates: {stats.tasks_analyzed}")
    lines.append("")

    if stats.overall_accuracy is None:
        lines.append("💡 Try adding time estimates to your tasks!")
        lines.append("   Use: task-tracker add \"task\" --estimate 30m")
        return '\n'.join(lines)

    lines.append("Time Estimation Accuracy:")
    lines.append(f"  🎓 Overall Accuracy: {stats.overall_accuracy:.1f}%")
    if stats.trend:
        symbol = {'up': '↑', 'down': '↓'}.get(stats.trend.direction, '→')
        lines.append(f"  📈 Trend: {symbol} {abs(stats.trend.change):.1f} points vs last month")
    lines.append(f"  🔍 Per task: {render_sparkline([t.score for t in stats.per_task], 0, 100)}")

    n = stats.tasks_analyzed
    lines.append("")
    lines.append("  Breakdown:")
    lines.append(f"    🎯 Accurate: {stats.accurate_count} ({_percent(stats.accurate_count, n)}%)")
    lines.append(f"    ⏫ Overestimated: {stats.overestimate_count} ({_percent(stats.overestimate_count, n)}%)")
    lines.append(f"    ⏬ Underestimated: {stats.underestimate_count} ({_percent(stats.underestimate_count, n)}%)")

    if stats.average_estimate is not None and stats.average_actual is not None:
        lines.append("")
        lines.append("  Average Times:")
        lines.append(f"    📝 Estimated: {format_duration(stats.average_estimate)}")
        lines.append(f"    ⏰ Actual: {format_duration(stats.average_actual)}")

    lines.append("")
    lines.append(accuracy_message(stats))
    return '\n'.join(lines)


def accuracy_message(stats: AccuracyResult) -> str:
    if stats.overall_accuracy is None:
        return ''
    improving = stats.trend is not None and stats.trend.direction == 'up'
    if stats.overall_accuracy > 85:
        if improving:
            return "🌟 Excellent work! Your estimation accuracy is improving - keep it up!"
        return "🌟 You're getting really good at estimating! Keep it up!"
    if stats.overall_accuracy > 70:
        return "🎯 Nice work! Your estimates are becoming more accurate."
    if improving:
        return f"📚 You're learning your patterns! {stats.trend.change:.1f} points better than last month!"
    return "📚 You're learning your patterns! Keep tracking to improve."


def _weeks_in_month(year: int, month: int) -> List[Tuple[date, date]]:
    """Monday-aligned weeks clamped to the month."""
    start, end = month_bounds(year, month)
    first, last = start.date(), (end - timedelta(days=1)).date()
    weeks = []
    week_start = first
    while week_start <= last:
        week_end = min(week_start + timedelta(days=6 - week_start.weekday()), last)
        weeks.append((week_start, week_end))
        week_start = week_end + timedelta(days=1)
    return weeks


def weekly_completion_chart(tasks: Sequence[TaskRecord], year: int, month: int) -> str:
    """Bar per week of tasks created that week, filled by how many are complete."""
    header = "📊 Weekly Completion Pattern\n"
    weeks = []
    for week_start, week_end in _weeks_in_month(year, month):
        week_tasks = [
            t for t in tasks
            if t.created_at is not None and week_start <= t.created_at.date() <= week_end
        ]
        weeks.append((week_start, week_end, sum(1 for t in week_tasks if t.is_completed), len(week_tasks)))

    if all(total == 0 for *_, total in weeks):
        return header + "\nNo tasks created this month."

    lines = [header]
    for number, (week_start, week_end, completed, total) in enumerate(weeks, start=1):
        filled = int(completed / total * BAR_WIDTH + 0.5) if total else 0
        bar = COMPLETED_CHAR * filled + PENDING_CHAR * (BAR_WIDTH - filled)
        label = f"Week {number} ({week_start:%b} {week_start.day}-{week_end.day})".ljust(20)
        lines.append(f"{label} {bar} {completed}/{total} tasks ({_percent(completed, total)}%)")
    lines.append("")
    lines.append(f"Legend: {COMPLETED_CHAR} = completed, {PENDING_CHAR} = pending")
    return '\n'.join(lines)


def format_monthly_summary(summary: MonthlySummary, tasks: Sequence[TaskRecord] = ()) -> str:
    year, month = (int(part) for part in summary.month.split('-'))
    lines = [RULE, f"Monthly Summary - {date(year, month, 1):%B %Y}", RULE, ""]

    if summary.celebration_message:
        lines.append(summary.celebration_message)
        lines.append("")

    lines.append(f"  🎯 Total Tasks: {summary.total_tasks}")
    lines.append(f"  ✅ Completed: {summary.completed_tasks}")
    lines.append(f"  📈 Completion Rate: {summary.completion_rate:.1f}%")

    trend = summary.monthly_trend
    sign = '+' if trend.improvement > 0 else ''
    lines.append(f"  ↕️  vs last month: {sign}{trend.improvement:.1f} points (was {trend.previous_month:.1f}%)")

    if summary.estimation_accuracy is not None:
        lines.append(f"  🎓 Estimation Accuracy: {summary.estimation_accuracy:.1f}%")
    if summary.average_actual_minutes is not None:
        lines.append(f"  ⏰ Average Time per Task: {format_duration(summary.average_actual_minutes)}")
    if summary.longest_streak:
        lines.append(f"  🔥 Longest Streak: {summary.longest_streak} day(s)")
    if summary.most_productive_day:
        lines.append(f"  📅 Most Productive Day: {summary.most_productive_day}")

    daily = [d.completed for d in summary.daily_completions]
    lines.append("")
    lines.append(f"  Daily: {render_sparkline(daily, min_value=0)}")

    if tasks:
        lines.append("")
        lines.append(weekly_completion_chart(tasks, year, month))

    if summary.insights:
        lines.append("")
        lines.append("Insights:")
        lines.extend(f"  💡 {insight}" for insight in summary.insights)
    return '\n'.join(lines)


def format_history(trends: HistoricalTrends) -> str:
    lines = [RULE, "Monthly History", RULE, ""]
    lines.append(f"{'Month':<10} {'Tasks':>6} {'Done':>6} {'Rate':>8} {'Accuracy':>9}")
    for entry in trends.months:
        s = entry.summary
        accuracy = f"{s.estimation_accuracy:.1f}%" if s.estimation_accuracy is not None else '-'
        lines.append(
            f"{entry.month:<10} {s.total_tasks:>6} {s.completed_tasks:>6} "
            f"{s.completion_rate:>7.1f}% {accuracy:>9}"
        )
    lines.append("")
    lines.append(f"Completion rate (oldest → newest): {trends.completion_rate_sparkline}"
                 f"{'  ↑ improving' if trends.completion_rate_improving else ''}")
    lines.append(f"Estimation accuracy (oldest → newest): {trends.accuracy_sparkline}"
                 f"{'  ↑ improving' if trends.estimation_accuracy_improving else ''}")
    return '\n'.join(lines)
