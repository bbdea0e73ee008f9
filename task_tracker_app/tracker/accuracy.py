# tracker/accuracy.py
"""
Estimation accuracy analysis.

Scores each completed task by how close its actual duration came to the
estimate, symmetric in log-ratio space: taking twice as long and taking half
as long are penalized equally.

    ratio = actual / estimated
    score = 100 * max(0, 1 - |ln(ratio)|)
"""
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import numpy as np

from .app_logger import get_logger, log_event
from .errors import InsufficientData
from .task_schema import TaskRecord

logger = get_logger('accuracy')

# Estimates within this fraction of the actual time count as "accurate"
ACCURATE_TOLERANCE = 0.10
# Accuracy change (percentage points) below which a trend is "stable"
TREND_THRESHOLD = 5.0


@dataclass(frozen=True)
class TaskAccuracy:
    task_id: str
    estimated_minutes: int
    actual_minutes: int
    ratio: float
    score: float
    estimation_type: str  # 'accurate' | 'overestimate' | 'underestimate'


@dataclass(frozen=True)
class AccuracyTrend:
    direction: str  # 'up' | 'down' | 'stable'
    change: float


@dataclass(frozen=True)
class AccuracyResult:
    tasks_analyzed: int
    overall_accuracy: Optional[float]
    per_task: Tuple[TaskAccuracy, ...] = ()
    total_completed: int = 0
    average_estimate: Optional[int] = None
    average_actual: Optional[int] = None
    accurate_count: int = 0
    overestimate_count: int = 0
    underestimate_count: int = 0
    trend: Optional[AccuracyTrend] = None
    insufficient: Optional[InsufficientData] = None

    @property
    def has_data(self) -> bool:
        return self.overall_accuracy is not None

    def to_dict(self) -> dict:
        return {
            'tasksAnalyzed': self.tasks_analyzed,
            'overallAccuracy': self.overall_accuracy,
            'perTask': [
                {
                    'taskId': t.task_id,
                    'estimatedMinutes': t.estimated_minutes,
                    'actualMinutes': t.actual_minutes,
                    'ratio': t.ratio,
                    'score': t.score,
                    'estimationType': t.estimation_type,
                }
                for t in self.per_task
            ],
            'totalCompleted': self.total_completed,
            'averageEstimate': self.average_estimate,
            'averageActual': self.average_actual,
            'accurateCount': self.accurate_count,
            'overestimateCount': self.overestimate_count,
            'underestimateCount': self.underestimate_count,
            'trend': (
                {'direction': self.trend.direction, 'change': self.trend.change}
                if self.trend else None
            ),
        }


def score_ratios(ratios: np.ndarray) -> np.ndarray:
    """Map actual/estimate ratios to 0-100 scores; a zero ratio scores 0."""
    ratios = np.asarray(ratios, dtype=float)
    scores = np.zeros_like(ratios)
    positive = ratios > 0
    scores[positive] = 100.0 * (1.0 - np.abs(np.log(ratios[positive])))
    return np.clip(scores, 0.0, 100.0)


def classify_estimate(estimated: int, actual: int) -> str:
    tolerance = max(1, int(actual * ACCURATE_TOLERANCE + 0.5))
    if abs(estimated - actual) <= tolerance:
        return 'accurate'
    return 'overestimate' if estimated > actual else 'underestimate'


class AccuracyAnalyzer:
    """Computes per-task and aggregate estimation accuracy."""

    @staticmethod
    def qualifying_tasks(tasks: Iterable[TaskRecord]) -> List[TaskRecord]:
        """Completed tasks carrying both an estimate and an actual, estimate > 0."""
        return [
            t for t in tasks
            if t.is_completed and t.has_estimate_pair and t.estimated_minutes > 0
        ]

    def analyze(
        self,
        tasks: Iterable[TaskRecord],
        previous_tasks: Optional[Iterable[TaskRecord]] = None
    ) -> AccuracyResult:
        """Analyze estimation accuracy for a set of tasks.

        Args:
            tasks: Task records for the period (incomplete ones are ignored)
            previous_tasks: Optional records from the prior period, used only
                for the trend

        Returns:
            AccuracyResult. overall_accuracy is None (with an InsufficientData
            marker) when no task qualifies.
        """
        tasks = list(tasks)
        total_completed = sum(1 for t in tasks if t.is_completed)
        qualifying = self.qualifying_tasks(tasks)

        if not qualifying:
            log_event(logger, logging.INFO, 'No tasks with estimate and actual', {
                'total_tasks': len(tasks),
                'total_completed': total_completed,
            })
            return AccuracyResult(
                tasks_analyzed=0,
                overall_accuracy=None,
                total_completed=total_completed,
                insufficient=InsufficientData('no completed tasks with both an estimate and an actual time'),
            )

        estimated = np.array([t.estimated_minutes for t in qualifying], dtype=float)
        actual = np.array([t.actual_minutes for t in qualifying], dtype=float)
        ratios = actual / estimated
        scores = score_ratios(ratios)

        per_task = tuple(
            TaskAccuracy(
                task_id=task.id,
                estimated_minutes=task.estimated_minutes,
                actual_minutes=task.actual_minutes,
                ratio=round(float(ratio), 4),
                score=round(float(score), 2),
                estimation_type=classify_estimate(task.estimated_minutes, task.actual_minutes),
            )
            for task, ratio, score in zip(qualifying, ratios, scores)
        )
        overall = round(float(scores.mean()), 2)

        trend = None
        if previous_tasks is not None:
            previous = self.analyze(previous_tasks)
            if previous.overall_accuracy is not None:
                trend = self.calculate_trend(overall, previous.overall_accuracy)

        result = AccuracyResult(
            tasks_analyzed=len(qualifying),
            overall_accuracy=overall,
            per_task=per_task,
            total_completed=total_completed,
            average_estimate=int(round(estimated.mean())),
            average_actual=int(round(actual.mean())),
            accurate_count=sum(1 for t in per_task if t.estimation_type == 'accurate'),
            overestimate_count=sum(1 for t in per_task if t.estimation_type == 'overestimate'),
            underestimate_count=sum(1 for t in per_task if t.estimation_type == 'underestimate'),
            trend=trend,
        )

        log_event(logger, logging.INFO, 'Accuracy calculation complete', {
            'accuracy': overall,
            'tasks_analyzed': result.tasks_analyzed,
            'trend': trend.direction if trend else None,
        })
        return result

    @staticmethod
    def calculate_trend(current: float, previous: float) -> AccuracyTrend:
        change = round(current - previous, 2)
        if abs(change) < TREND_THRESHOLD:
            direction = 'stable'
        elif change > 0:
            direction = 'up'
        else:
            direction = 'down'
        return AccuracyTrend(direction=direction, change=change)
