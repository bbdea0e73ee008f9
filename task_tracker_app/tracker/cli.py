#!/usr/bin/env python3
# tracker/cli.py
"""
Command line interface for the task tracker.

Usage:
    task-tracker add "Write report" --estimate 1h30m --tags work,writing
    task-tracker complete 3f2a --actual 95m
    task-tracker list --all
    task-tracker stats --month 2025-09
    task-tracker monthly --history
    task-tracker config --set celebration_language=gentle
"""
import argparse
import json
import sys
from datetime import date, datetime
from typing import List, Optional

from .accuracy import AccuracyAnalyzer
from .errors import TaskTrackerError, ValidationError
from .formatters import (
    format_history,
    format_monthly_summary,
    format_stats,
    format_task_line,
    format_task_list,
)
from .monthly_summary import MonthlyAggregator, month_bounds, parse_month, previous_month
from .task_manager import TaskManager
from .user_state import PreferencesManager


def _target_month(value: Optional[str]):
    if value:
        return parse_month(value)
    today = date.today()
    return today.year, today.month


def _split_tags(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    return [t for t in (part.strip() for part in value.split(',')) if t]


# ============================================================================
# Commands
# ============================================================================

def cmd_add(args, manager: TaskManager) -> int:
    estimate = args.estimate
    if estimate is None:
        estimate = PreferencesManager().get()['default_estimate_minutes']
    task = manager.create_task(
        args.title,
        description=args.description,
        estimate=estimate,
        tags=_split_tags(args.tags),
    )
    print(f"✅ Task added: {task.title} ({task.id[:8]})")
    return 0


def cmd_complete(args, manager: TaskManager) -> int:
    task = manager.complete_task(args.task_id, actual=args.actual)
    print(f"🎉 Task completed: {task.title}")
    print(f"   {format_task_line(task)}")
    return 0


def cmd_list(args, manager: TaskManager) -> int:
    if args.all:
        tasks = manager.list_tasks()
    elif args.completed:
        tasks = manager.list_tasks(is_completed=True)
    else:
        tasks = manager.list_tasks(is_completed=False)
    print(format_task_list(tasks))
    return 0


def cmd_edit(args, manager: TaskManager) -> int:
    if args.title is None and args.description is None and args.estimate is None and args.tags is None:
        raise ValidationError("Nothing to update. Pass --title, --description, --estimate or --tags")
    task = manager.update_task(
        args.task_id,
        title=args.title,
        description=args.description,
        estimate=args.estimate,
        tags=_split_tags(args.tags),
    )
    print(f"✏️  Task updated: {format_task_line(task)}")
    return 0


def cmd_delete(args, manager: TaskManager) -> int:
    task = manager.delete_task(args.task_id)
    print(f"🗑️  Task deleted: {task.title}")
    return 0


def cmd_stats(args, manager: TaskManager) -> int:
    year, month = _target_month(args.month)
    current = manager.list_tasks(completed_between=month_bounds(year, month))
    previous = manager.list_tasks(completed_between=month_bounds(*previous_month(year, month)))
    stats = AccuracyAnalyzer().analyze(current, previous_tasks=previous)
    print(format_stats(stats, date(year, month, 1).strftime('%B %Y')))
    return 0


def cmd_monthly(args, manager: TaskManager) -> int:
    tasks = manager.list_tasks()
    aggregator = MonthlyAggregator(preferences=PreferencesManager().get())

    if args.history:
        now = None
        if args.month:
            year, month = parse_month(args.month)
            now = datetime(year, month, 1)
        trends = aggregator.summarize_history(tasks, months_back=args.months, now=now)
        if args.json:
            print(json.dumps({
                'months': [m.summary.to_dict() for m in trends.months],
                'completionRateSparkline': trends.completion_rate_sparkline,
                'accuracySparkline': trends.accuracy_sparkline,
                'completionRateImproving': trends.completion_rate_improving,
                'estimationAccuracyImproving': trends.estimation_accuracy_improving,
            }, indent=2, ensure_ascii=False))
        else:
            print(format_history(trends))
        return 0

    year, month = _target_month(args.month)
    summary = aggregator.summarize(tasks, year, month)
    if args.json:
        print(json.dumps(summary.to_dict(), indent=2, ensure_ascii=False))
    else:
        start, end = month_bounds(year, month)
        created = [t for t in tasks if start <= t.created_at < end]
        print(format_monthly_summary(summary, created))
    return 0


def cmd_config(args, manager: TaskManager) -> int:
    prefs = PreferencesManager()
    if args.set:
        key, sep, value = args.set.partition('=')
        if not sep:
            raise ValidationError(f"Expected KEY=VALUE, got {args.set!r}")
        prefs.update(key.strip(), value.strip())
        print(f"✅ Updated {key.strip()}")
    # --show is implied; the current values are always printed
    for key, value in prefs.get().items():
        print(f"{key}: {'' if value is None else value}")
    return 0


# ============================================================================
# Entry point
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='task-tracker',
        description='Track tasks, time estimates and monthly progress'
    )
    sub = parser.add_subparsers(dest='command')

    add = sub.add_parser('add', help='Add a new task')
    add.add_argument('title', help='Task title')
    add.add_argument('-d', '--description', help='Task description')
    add.add_argument('-e', '--estimate', help='Time estimate (e.g. 30m, 1.5h, 1h30m)')
    add.add_argument('-t', '--tags', help='Comma-separated tags')
    add.set_defaults(handler=cmd_add)

    complete = sub.add_parser('complete', help='Mark a task as completed')
    complete.add_argument('task_id', help='Task id or unique id prefix')
    complete.add_argument('-a', '--actual', help='Actual time taken (default: time since creation)')
    complete.set_defaults(handler=cmd_complete)

    list_cmd = sub.add_parser('list', help='List tasks (pending by default)')
    group = list_cmd.add_mutually_exclusive_group()
    group.add_argument('-a', '--all', action='store_true', help='Show both pending and completed tasks')
    group.add_argument('-c', '--completed', action='store_true', help='Show only completed tasks')
    group.add_argument('-p', '--pending', action='store_true', help='Show only pending tasks')
    list_cmd.set_defaults(handler=cmd_list)

    edit = sub.add_parser('edit', help='Edit a task')
    edit.add_argument('task_id', help='Task id or unique id prefix')
    edit.add_argument('--title', help='New title')
    edit.add_argument('-d', '--description', help='New description')
    edit.add_argument('-e', '--estimate', help='New time estimate')
    edit.add_argument('-t', '--tags', help='Replace tags (comma-separated)')
    edit.set_defaults(handler=cmd_edit)

    delete = sub.add_parser('delete', help='Delete a task')
    delete.add_argument('task_id', help='Task id or unique id prefix')
    delete.set_defaults(handler=cmd_delete)

    stats = sub.add_parser('stats', help='Show estimation accuracy statistics')
    stats.add_argument('-m', '--month', help='Month as YYYY-MM (default: current month)')
    stats.set_defaults(handler=cmd_stats)

    monthly = sub.add_parser('monthly', help='Show the monthly summary')
    monthly.add_argument('-m', '--month', help='Month as YYYY-MM (default: current month)')
    monthly.add_argument('--history', action='store_true', help='Show the last few months with sparklines')
    monthly.add_argument('--months', type=int, default=6, help='Months of history (default: 6)')
    monthly.add_argument('--json', action='store_true', help='Print JSON instead of text')
    monthly.set_defaults(handler=cmd_monthly)

    config = sub.add_parser('config', help='Show or change preferences')
    config.add_argument('--show', action='store_true', help='Show current preferences')
    config.add_argument('--set', metavar='KEY=VALUE', help='Set a preference')
    config.set_defaults(handler=cmd_config)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, 'handler', None):
        parser.print_help()
        return 1

    manager = TaskManager()
    try:
        return args.handler(args, manager)
    except TaskTrackerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        manager.close()


if __name__ == '__main__':
    sys.exit(main())
