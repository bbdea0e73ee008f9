# tracker/task_manager.py
"""Task store: create/read/update/delete over the tasks table.

The analytics engine only ever reads TaskRecord snapshots produced here via
list_tasks(); it never touches the session.
"""
import logging
import math
import uuid
from datetime import datetime
from typing import Iterable, List, Optional, Tuple, Union

from .app_logger import get_logger, log_event
from .database import Task, get_database_url, init_db, make_engine, make_session_factory
from .duration_codec import parse_duration, MAX_DURATION_MINUTES
from .errors import DurationOutOfRange, TaskNotFoundError, ValidationError
from .task_schema import TaskRecord

logger = get_logger('task_manager')

MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000

DateRange = Tuple[datetime, datetime]


# ============================================================================
# Input Validation
# ============================================================================

def validate_title(title: Optional[str]) -> str:
    if not title or not title.strip():
        raise ValidationError("Task title is required")
    title = title.strip()
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Task title too long (max {MAX_TITLE_LENGTH} characters)")
    return title


def validate_description(description: Optional[str]) -> Optional[str]:
    if not description or not description.strip():
        return None
    description = description.strip()
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(f"Description too long (max {MAX_DESCRIPTION_LENGTH} characters)")
    return description


def validate_estimate(estimate: Union[str, int, None]) -> Optional[int]:
    """Accept duration text or whole minutes; None means no estimate."""
    if estimate is None or estimate == '':
        return None
    if isinstance(estimate, str):
        return parse_duration(estimate)
    minutes = int(estimate)
    if minutes <= 0 or minutes > MAX_DURATION_MINUTES:
        raise DurationOutOfRange(minutes)
    return minutes


def validate_tags(tags: Optional[Iterable[str]]) -> List[str]:
    if not tags:
        return []
    cleaned = []
    for tag in tags:
        tag = str(tag).strip().lower()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two timestamps, minimum 1."""
    seconds = (end - start).total_seconds()
    return max(1, int(math.floor(seconds / 60 + 0.5)))


class TaskManager:
    """SQLAlchemy-backed task store."""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or get_database_url()
        self.engine = make_engine(self.database_url)
        self.db_session = make_session_factory(self.engine)
        init_db(self.engine, self.database_url)

    def close(self):
        self.engine.dispose()

    # -----------------------------
    # Lookups
    # -----------------------------
    def _find(self, session, task_id: str) -> Task:
        """Find by exact id or unique id prefix."""
        task = session.get(Task, task_id)
        if task is not None:
            return task
        if task_id:
            matches = session.query(Task).filter(Task.task_id.startswith(task_id, autoescape=True)).limit(2).all()
            if len(matches) == 1:
                return matches[0]
            if len(matches) > 1:
                raise ValidationError(f"Task id prefix {task_id!r} is ambiguous")
        raise TaskNotFoundError(task_id)

    def get_task(self, task_id: str) -> TaskRecord:
        with self.db_session() as session:
            return TaskRecord.from_dict(self._find(session, task_id).to_dict())

    def list_tasks(
        self,
        completed_between: Optional[DateRange] = None,
        created_between: Optional[DateRange] = None,
        is_completed: Optional[bool] = None
    ) -> List[TaskRecord]:
        """Return task records ordered by creation time.

        Ranges are [start, end): inclusive start, exclusive end.
        """
        with self.db_session() as session:
            query = session.query(Task)
            if completed_between is not None:
                start, end = completed_between
                query = query.filter(Task.completed_at >= start, Task.completed_at < end)
            if created_between is not None:
                start, end = created_between
                query = query.filter(Task.created_at >= start, Task.created_at < end)
            if is_completed is not None:
                query = query.filter(Task.is_completed == is_completed)
            rows = query.order_by(Task.created_at, Task.task_id).all()
            return [TaskRecord.from_dict(row.to_dict()) for row in rows]

    # -----------------------------
    # Mutations
    # -----------------------------
    def create_task(
        self,
        title: str,
        description: Optional[str] = None,
        estimate: Union[str, int, None] = None,
        tags: Optional[Iterable[str]] = None,
        created_at: Optional[datetime] = None
    ) -> TaskRecord:
        task = Task(
            task_id=uuid.uuid4().hex,
            title=validate_title(title),
            description=validate_description(description),
            estimated_minutes=validate_estimate(estimate),
            tags=validate_tags(tags),
            created_at=created_at or datetime.now(),
            is_completed=False,
        )
        with self.db_session() as session:
            session.add(task)
            session.commit()
            record = TaskRecord.from_dict(task.to_dict())

        log_event(logger, logging.INFO, 'Task created', {
            'task_id': record.id,
            'estimated_minutes': record.estimated_minutes,
        })
        return record

    def update_task(
        self,
        task_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        estimate: Union[str, int, None] = None,
        tags: Optional[Iterable[str]] = None
    ) -> TaskRecord:
        """Update the given fields; None leaves a field unchanged."""
        with self.db_session() as session:
            task = self._find(session, task_id)
            if title is not None:
                task.title = validate_title(title)
            if description is not None:
                task.description = validate_description(description)
            if estimate is not None:
                task.estimated_minutes = validate_estimate(estimate)
            if tags is not None:
                task.tags = validate_tags(tags)
            session.commit()
            record = TaskRecord.from_dict(task.to_dict())

        log_event(logger, logging.INFO, 'Task updated', {'task_id': record.id})
        return record

    def complete_task(
        self,
        task_id: str,
        actual: Union[str, int, None] = None,
        completed_at: Optional[datetime] = None
    ) -> TaskRecord:
        """Mark a task complete.

        Args:
            task_id: Task id or unique prefix
            actual: Actual time as duration text or minutes; defaults to the
                minutes elapsed since creation (minimum 1)
            completed_at: Completion timestamp (default: now)
        """
        completed_at = completed_at or datetime.now()
        with self.db_session() as session:
            task = self._find(session, task_id)
            if task.is_completed:
                raise ValidationError(f"Task {task.task_id} is already completed")
            if actual is None or actual == '':
                actual_minutes = elapsed_minutes(task.created_at, completed_at)
            elif isinstance(actual, str):
                actual_minutes = parse_duration(actual)
            else:
                actual_minutes = int(actual)
                if actual_minutes < 0:
                    raise ValidationError("Actual minutes cannot be negative")
            task.is_completed = True
            task.completed_at = completed_at
            task.actual_minutes = actual_minutes
            session.commit()
            record = TaskRecord.from_dict(task.to_dict())

        log_event(logger, logging.INFO, 'Task completed', {
            'task_id': record.id,
            'estimated_minutes': record.estimated_minutes,
            'actual_minutes': record.actual_minutes,
        })
        return record

    def delete_task(self, task_id: str) -> TaskRecord:
        with self.db_session() as session:
            task = self._find(session, task_id)
            record = TaskRecord.from_dict(task.to_dict())
            session.delete(task)
            session.commit()

        log_event(logger, logging.INFO, 'Task deleted', {'task_id': record.id})
        return record
