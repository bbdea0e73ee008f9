from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional, Tuple

import pandas as pd


def _to_datetime(value: Any) -> Optional[datetime]:
    """Coerce a store value (datetime, ISO string, Timestamp) to a naive local datetime."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        result = value.to_pydatetime() if isinstance(value, pd.Timestamp) else value
    else:
        ts = pd.to_datetime(value, errors='coerce')
        if pd.isna(ts):
            return None
        result = ts.to_pydatetime()
    # Month boundaries are local time
    if result.tzinfo is not None:
        result = result.astimezone().replace(tzinfo=None)
    return result


def _to_minutes(value: Any) -> Optional[int]:
    if value is None or value == '':
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return int(value)


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes')
    return bool(value)


@dataclass(frozen=True)
class TaskRecord:
    """A task as the analytics engine sees it.

    Owned by the task store; the engine only reads it. Optional durations are
    None when absent, never 0 or -1.
    """
    id: str
    title: str
    created_at: datetime
    description: Optional[str] = None
    estimated_minutes: Optional[int] = None
    actual_minutes: Optional[int] = None
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    tags: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Aware timestamps become local naive so month bounds compare cleanly
        object.__setattr__(self, 'created_at', _to_datetime(self.created_at))
        object.__setattr__(self, 'completed_at', _to_datetime(self.completed_at))

    @property
    def has_estimate_pair(self) -> bool:
        return self.estimated_minutes is not None and self.actual_minutes is not None

    @classmethod
    def from_dict(cls, row: Mapping[str, Any]) -> 'TaskRecord':
        """Build a record from a store row (snake_case or camelCase keys)."""
        def pick(*keys, default=None):
            for key in keys:
                if key in row and row[key] is not None:
                    return row[key]
            return default

        tags = pick('tags', default=())
        if isinstance(tags, str):
            tags = [t.strip() for t in tags.split(',') if t.strip()]

        return cls(
            id=str(pick('id', 'task_id')),
            title=str(pick('title', 'name', default='')),
            description=pick('description') or None,
            estimated_minutes=_to_minutes(pick('estimated_minutes', 'estimatedMinutes')),
            actual_minutes=_to_minutes(pick('actual_minutes', 'actualMinutes')),
            is_completed=_to_bool(pick('is_completed', 'isCompleted', default=False)),
            created_at=_to_datetime(pick('created_at', 'createdAt')),
            completed_at=_to_datetime(pick('completed_at', 'completedAt')),
            tags=tuple(tags),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'estimated_minutes': self.estimated_minutes,
            'actual_minutes': self.actual_minutes,
            'is_completed': self.is_completed,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'tags': list(self.tags),
        }
