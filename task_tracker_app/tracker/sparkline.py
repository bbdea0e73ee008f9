# tracker/sparkline.py
"""Fixed-width sparkline rendering for numeric series with gaps."""
import math
from typing import Optional, Sequence, Union

SPARKLINE_CHARS = '▁▂▃▄▅▆▇█'
DEFAULT_NULL_CHAR = '·'

# Dead band (in sample units) under which a series counts as flat
TREND_THRESHOLD = 5.0

Sample = Optional[Union[int, float]]


def _is_missing(value: Sample) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def render_sparkline(
    samples: Sequence[Sample],
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
    null_char: str = DEFAULT_NULL_CHAR
) -> str:
    """Render samples as one glyph per sample.

    Bounds default to the min/max of the non-null samples. Samples outside an
    explicit range clamp to the lowest/highest glyph. If every non-null sample
    sits on a single value the line is flat at the lowest glyph.

    Example:
        render_sparkline([0, 50, 100], min_value=0, max_value=100) -> '▁▅█'
    """
    if not samples:
        return ''

    present = [float(v) for v in samples if not _is_missing(v)]
    if not present:
        return null_char * len(samples)

    low = float(min_value) if min_value is not None else min(present)
    high = float(max_value) if max_value is not None else max(present)
    span = high - low
    levels = len(SPARKLINE_CHARS)

    glyphs = []
    for value in samples:
        if _is_missing(value):
            glyphs.append(null_char)
            continue
        if span <= 0:
            index = 0
        else:
            index = math.floor((float(value) - low) / span * levels)
            index = max(0, min(index, levels - 1))
        glyphs.append(SPARKLINE_CHARS[index])
    return ''.join(glyphs)


def completion_rate_sparkline(rates: Sequence[Sample]) -> str:
    """Sparkline for completion-rate percentages (fixed 0-100 scale)."""
    return render_sparkline(rates, min_value=0, max_value=100)


def accuracy_sparkline(accuracies: Sequence[Sample]) -> str:
    """Sparkline for estimation-accuracy percentages (fixed 0-100 scale)."""
    return render_sparkline(accuracies, min_value=0, max_value=100)


def sparkline_trend(samples: Sequence[Sample]) -> str:
    """'up', 'down' or 'stable' comparing the first and last non-null samples."""
    present = [float(v) for v in samples if not _is_missing(v)]
    if len(present) < 2:
        return 'stable'
    change = present[-1] - present[0]
    if abs(change) < TREND_THRESHOLD:
        return 'stable'
    return 'up' if change > 0 else 'down'
