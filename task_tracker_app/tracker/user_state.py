import os
import logging
from datetime import datetime
from typing import Optional, Dict, Any

import pandas as pd

from .app_logger import get_data_dir, get_logger, log_event
from .duration_codec import parse_duration
from .errors import ValidationError
from .insights import CELEBRATION_TONES, DEFAULT_TONE

logger = get_logger('user_state')

PREFS_FILENAME = "user_preferences.csv"

DEFAULT_PREFS = {
    "celebration_language": DEFAULT_TONE,
    "enable_insights": "True",
    "default_estimate_minutes": "",
    "updated_at": "",
}


def _parse_bool(value: Any) -> bool:
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise ValidationError(f"Expected a yes/no value, got {value!r}")


class PreferencesManager:
    """Single-user preferences backed by a one-row CSV."""

    def __init__(self, prefs_file: Optional[str] = None):
        self.file = prefs_file or os.path.join(get_data_dir(), PREFS_FILENAME)
        os.makedirs(os.path.dirname(os.path.abspath(self.file)), exist_ok=True)
        self._ensure_file()
        self._reload()

    # -----------------------------
    # File helpers
    # -----------------------------
    def _ensure_file(self):
        if not os.path.exists(self.file):
            pd.DataFrame([DEFAULT_PREFS]).to_csv(self.file, index=False)

    def _reload(self):
        try:
            self.df = pd.read_csv(self.file, dtype=str).fillna("")
        except (pd.errors.EmptyDataError, pd.errors.ParserError):
            self.df = pd.DataFrame(columns=DEFAULT_PREFS.keys())
        if self.df.empty:
            self.df = pd.DataFrame([DEFAULT_PREFS])
        for key, default in DEFAULT_PREFS.items():
            if key not in self.df.columns:
                self.df[key] = default

    def _save(self):
        self.df.to_csv(self.file, index=False)
        self._reload()

    # -----------------------------
    # Public API
    # -----------------------------
    def get(self) -> Dict[str, Any]:
        """Typed preferences: tone str, insights bool, default estimate int or None."""
        self._reload()
        row = self.df.iloc[0].to_dict()
        tone = row.get("celebration_language") or DEFAULT_TONE
        default_estimate = str(row.get("default_estimate_minutes") or "").strip()
        if default_estimate and not default_estimate.isdigit():
            raise ValidationError(
                f"Stored default_estimate_minutes {default_estimate!r} is not a number of minutes. "
                "Fix it with: task-tracker config --set default_estimate_minutes=30m"
            )
        return {
            "celebration_language": tone if tone in CELEBRATION_TONES else DEFAULT_TONE,
            "enable_insights": str(row.get("enable_insights", "True")).lower() != "false",
            "default_estimate_minutes": int(default_estimate) if default_estimate else None,
        }

    def update(self, key: str, value: Any) -> Dict[str, Any]:
        """Validate and store a single preference."""
        if key not in DEFAULT_PREFS or key == "updated_at":
            raise ValidationError(
                f"Unknown preference {key!r}. Choose from: celebration_language, "
                "enable_insights, default_estimate_minutes"
            )

        if key == "celebration_language":
            value = str(value).strip().lower()
            if value not in CELEBRATION_TONES:
                raise ValidationError(
                    f"celebration_language must be one of: {', '.join(CELEBRATION_TONES)}"
                )
            stored = value
        elif key == "enable_insights":
            stored = str(_parse_bool(value))
        else:
            stored = "" if value in (None, "") else str(parse_duration(str(value)))

        self._reload()
        self.df.loc[0, key] = stored
        self.df.loc[0, "updated_at"] = datetime.now().isoformat()
        self._save()
        log_event(logger, logging.INFO, "Preference updated", {"key": key, "value": stored})
        return self.get()

    def reset(self) -> Dict[str, Any]:
        self.df = pd.DataFrame([DEFAULT_PREFS])
        self._save()
        return self.get()
