"""Text charts built from block characters. Pure functions, no styling."""

from typing import List, Sequence

_EIGHTHS = " ▁▂▃▄▅▆▇█"


def resample(values: Sequence[float], width: int) -> List[float]:
    """Fit a series into `width` points, keeping the most recent samples."""
    if width <= 0 or not values:
        return []
    if len(values) <= width:
        return list(values)
    step = len(values) / width
    # Average each bucket; the last bucket always ends on the newest sample
    out = []
    for i in range(width):
        start = int(i * step)
        end = max(int((i + 1) * step), start + 1)
        bucket = values[start:end]
        out.append(sum(bucket) / len(bucket))
    return out


def sparkline(values: Sequence[float], width: int) -> str:
    points = resample(values, width)
    if not points:
        return ""
    lo, hi = min(points), max(points)
    span = hi - lo
    if span == 0:
        return _EIGHTHS[4] * len(points)
    return "".join(_EIGHTHS[1 + round((v - lo) / span * 7)] for v in points)


def area_chart(values: Sequence[float], height: int, width: int) -> List[str]:
    """Render a filled area chart as `height` lines of exactly `width` chars.

    Each column is filled bottom-up in eighth-block steps. A flat series
    sits at mid height; an empty one renders blank lines.
    """
    points = resample(values, width)
    blank = " " * width
    if height <= 0:
        return []
    if not points:
        return [blank] * height

    lo, hi = min(points), max(points)
    span = hi - lo
    total = height * 8
    levels = [total // 2 if span == 0 else max(1, round((v - lo) / span * total)) for v in points]

    lines = []
    for row in range(height - 1, -1, -1):
        base = row * 8
        cells = []
        for level in levels:
            fill = min(max(level - base, 0), 8)
            cells.append(_EIGHTHS[fill])
        lines.append("".join(cells).ljust(width))
    return lines
