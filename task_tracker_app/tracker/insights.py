# tracker/insights.py
"""
Rule tables for monthly insights and celebration messages.

Each table is an ordered tuple of rules evaluated top to bottom. For insights,
only the first matching rule of each category contributes; the resulting list
keeps table order. Celebration text uses the first matching row of its own
table. Both tables share the completion-rate thresholds below so the headline
and the insights never disagree.
"""
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

EXCELLENT_RATE = 90.0
GOOD_RATE = 70.0
HALFWAY_RATE = 50.0

HIGH_ACCURACY = 80.0
LOW_ACCURACY = 50.0

STREAK_DAYS = 7

CELEBRATION_TONES = ('enthusiastic', 'gentle', 'professional')
DEFAULT_TONE = 'enthusiastic'


@dataclass(frozen=True)
class InsightContext:
    """Statistics the rule predicates look at."""
    total_tasks: int
    completed_tasks: int
    completion_rate: float
    improvement: float
    previous_rate: float
    estimation_accuracy: Optional[float] = None
    tasks_with_estimates: int = 0
    longest_streak: int = 0
    most_productive_day: Optional[str] = None


@dataclass(frozen=True)
class Rule:
    category: str
    predicate: Callable[[InsightContext], bool]
    messages: Tuple[str, ...]


def _has_tasks(ctx: InsightContext) -> bool:
    return ctx.total_tasks > 0


INSIGHT_RULES: Tuple[Rule, ...] = (
    # completion
    Rule('completion', lambda c: c.total_tasks == 0, (
        "This is a perfect time to set some productive goals - you're ready to start!",
    )),
    Rule('completion', lambda c: c.completion_rate >= EXCELLENT_RATE, (
        "You're absolutely crushing your goals this month - that's excellence!",
        "Your consistency is remarkable - keep it going!",
    )),
    Rule('completion', lambda c: c.completion_rate >= GOOD_RATE, (
        "You're doing really well - just a little push to reach excellence!",
    )),
    Rule('completion', lambda c: c.completion_rate >= HALFWAY_RATE, (
        "You're halfway there - every completed task is a step toward your goals",
    )),
    Rule('completion', lambda c: c.completed_tasks > 0, (
        "Progress is progress - celebrate these victories!",
        "Focus on completing one task at a time to build consistency",
    )),
    Rule('completion', _has_tasks, (
        "Having a plan is the first step - pick one task and give it your focus",
    )),
    # trend
    Rule('trend', lambda c: (
        _has_tasks(c) and HALFWAY_RATE <= c.completion_rate < EXCELLENT_RATE and c.improvement > 0
    ), (
        "Momentum is building - your completion rate is up from last month!",
    )),
    Rule('trend', lambda c: _has_tasks(c) and c.improvement >= 10, (
        "Big jump from last month - whatever you changed is working!",
    )),
    Rule('trend', lambda c: _has_tasks(c) and c.previous_rate > 0 and c.improvement < 0, (
        "A slower month than the last one - that's normal, keep going at your own pace",
    )),
    # accuracy
    Rule('accuracy', lambda c: c.estimation_accuracy is not None and c.estimation_accuracy >= HIGH_ACCURACY, (
        "Your time estimates are spot-on - you know your pace!",
    )),
    Rule('accuracy', lambda c: c.estimation_accuracy is not None and c.estimation_accuracy < LOW_ACCURACY, (
        "Try estimating a few short tasks first to calibrate your sense of time",
    )),
    Rule('accuracy', lambda c: c.completed_tasks > 0 and c.tasks_with_estimates == 0, (
        "Add time estimates to your tasks to learn your planning patterns",
    )),
    # streak
    Rule('streak', lambda c: c.longest_streak >= STREAK_DAYS, (
        "A streak of a week or more - consistency is your superpower!",
    )),
    Rule('streak', lambda c: c.most_productive_day is not None, (
        "{most_productive_day} is your most productive day - schedule key tasks then",
    )),
)


def _render(template: str, ctx: InsightContext) -> str:
    return template.format(
        total_tasks=ctx.total_tasks,
        completed_tasks=ctx.completed_tasks,
        completion_rate=ctx.completion_rate,
        longest_streak=ctx.longest_streak,
        most_productive_day=ctx.most_productive_day,
    )


def generate_insights(ctx: InsightContext, rules: Tuple[Rule, ...] = INSIGHT_RULES) -> List[str]:
    """Evaluate the rule table; first match per category wins."""
    insights: List[str] = []
    matched_categories = set()
    for rule in rules:
        if rule.category in matched_categories:
            continue
        if rule.predicate(ctx):
            matched_categories.add(rule.category)
            insights.extend(_render(message, ctx) for message in rule.messages)
    return insights


# (predicate, {tone: template}) rows, first match wins
CELEBRATION_RULES: Tuple[Tuple[Callable[[InsightContext], bool], dict], ...] = (
    (lambda c: c.total_tasks == 0, {
        'enthusiastic': "🚀 Ready to make this month amazing? Start by creating your first task!",
        'gentle': "✨ A fresh month is waiting. Add a task whenever you feel ready.",
        'professional': "No tasks recorded this month. Create a task to begin tracking.",
    }),
    (lambda c: c.completion_rate >= EXCELLENT_RATE, {
        'enthusiastic': "🎉 Outstanding! You've completed {completed_tasks} out of {total_tasks} tasks with {completion_rate:.1f}% completion rate!",
        'gentle': "✨ What a lovely month! You completed {completion_rate:.1f}% of your tasks with grace.",
        'professional': "Excellent performance this month: {completion_rate:.1f}% task completion rate achieved.",
    }),
    (lambda c: c.completion_rate >= GOOD_RATE, {
        'enthusiastic': "🌟 Great progress! {completed_tasks} tasks completed with {completion_rate:.1f}% completion rate!",
        'gentle': "🌸 Nice work! {completed_tasks} tasks done - you're finding your rhythm.",
        'professional': "Strong results: {completed_tasks} tasks completed at {completion_rate:.1f}% completion rate.",
    }),
    (lambda c: c.completion_rate >= HALFWAY_RATE, {
        'enthusiastic': "💪 Good start! You've completed {completed_tasks} tasks. Let's push for an even stronger finish!",
        'gentle': "🌱 You're growing! {completed_tasks} tasks completed as you learn your patterns.",
        'professional': "Progress noted: {completed_tasks} tasks completed as you refine your approach.",
    }),
    (lambda c: c.completed_tasks > 0, {
        'enthusiastic': "🚀 You've got {completed_tasks} wins on the board! Each completion builds momentum for the next!",
        'gentle': "✨ {completed_tasks} tasks completed. Each one is a step forward.",
        'professional': "Monthly summary: {completed_tasks} tasks completed at {completion_rate:.1f}% completion rate.",
    }),
    (lambda c: True, {
        'enthusiastic': "📋 You've created {total_tasks} tasks - now let's turn planning into action!",
        'gentle': "🌿 {total_tasks} tasks are planned. Pick one when it feels right.",
        'professional': "{total_tasks} tasks planned, none completed yet this month.",
    }),
)


def celebration_message(ctx: InsightContext, tone: str = DEFAULT_TONE) -> str:
    if tone not in CELEBRATION_TONES:
        tone = DEFAULT_TONE
    for predicate, templates in CELEBRATION_RULES:
        if predicate(ctx):
            return _render(templates[tone], ctx)
    return ''
