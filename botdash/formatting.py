import datetime
from typing import Optional

from rich.text import Text


def fmt_amount(val: Optional[float]) -> Text:
    if val is None:
        return Text("—", style="dim")
    if abs(val) >= 1_000_000:
        s = f"{val / 1_000_000:.2f}M"
    elif abs(val) >= 1_000:
        s = f"{val / 1_000:.2f}K"
    else:
        s = f"{val:.4f}"
    return Text(s, style="cyan")


def fmt_pct(val: Optional[float], digits: int = 2) -> Text:
    if val is None:
        return Text("—", style="dim")
    sign = "+" if val >= 0 else ""
    style = "green" if val >= 0 else "red"
    return Text(f"{sign}{val:.{digits}f}%", style=style)


def fmt_profit(val: Optional[float]) -> Text:
    if val is None:
        return Text("—", style="dim")
    sign = "+" if val >= 0 else ""
    style = "green" if val >= 0 else "red"
    return Text(f"{sign}{val:.4f}", style=style)


def fmt_time(ts: Optional[float]) -> str:
    """HH:MM:SS in UTC so the same snapshot always formats the same way."""
    if not ts:
        return "--:--:--"
    return datetime.datetime.fromtimestamp(ts, tz=datetime.timezone.utc).strftime("%H:%M:%S")


def short_address(address: str, keep: int = 4) -> str:
    if len(address) <= keep * 2 + 3:
        return address
    return f"{address[:keep]}...{address[-keep:]}"


def trend_style(current: Optional[float], previous: Optional[float]) -> str:
    """Border color: green when rising, red when falling, grey otherwise."""
    if current is None or previous is None:
        return "grey70"
    if current > previous:
        return "green"
    if current < previous:
        return "red"
    return "grey70"
