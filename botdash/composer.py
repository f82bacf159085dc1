"""View composer: (BusinessSnapshot, UIState) -> frame text.

Everything here is a pure function of its inputs. No clock reads and no
terminal probing, so the same inputs always give byte-identical frames.
"""

import io
import logging
from typing import List, Optional

from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from botdash.bot import BusinessSnapshot
from botdash.charts import area_chart, sparkline
from botdash.constants import (
    TRADE_HISTORY_COLUMNS, LOG_LINES_SHOWN, HOTKEYS, DEFAULT_WIDTH,
    PRICE_CHART_HEIGHT, PROFIT_CHART_HEIGHT,
)
from botdash.errors import CompositionError
from botdash.formatting import (
    fmt_amount, fmt_pct, fmt_profit, fmt_time, short_address, trend_style,
)
from botdash.state import Screen, UIState

logger = logging.getLogger(__name__)


def _chart_panel(title: str, values, height: int, width: int, border_style: str) -> Panel:
    inner = max(width - 4, 1)
    if not values:
        body: RenderableType = Text("waiting for data...", style="dim")
    else:
        body = Text("\n".join(area_chart(values, height, inner)), style=border_style)
    return Panel(body, title=title, title_align="right", border_style=border_style,
                 height=height + 2, padding=(0, 1))


def price_chart(snapshot: BusinessSnapshot, width: int) -> Panel:
    values = snapshot.series("price")
    price = snapshot.price or 0.0
    inverted = snapshot.price_inverted or 0.0
    prev = values[-2] if len(values) >= 2 else None
    title = f"Price {price:.12f}  | {inverted:.12f}"
    return _chart_panel(title, values, PRICE_CHART_HEIGHT, width, trend_style(snapshot.price, prev))


def expected_profit_chart(snapshot: BusinessSnapshot, width: int) -> Panel:
    values = snapshot.series("expected_profit_percent")
    latest = values[-1] if values else None
    title = f"Expected Profit {latest:.12f} %" if latest is not None else "Expected Profit %"
    if latest is None or latest == 0:
        style = "grey70"
    else:
        style = "green" if latest > 0 else "red"
    return _chart_panel(title, values, PROFIT_CHART_HEIGHT, width, style)


def header(snapshot: BusinessSnapshot, ui_state: UIState) -> Panel:
    left = Text()
    left.append(ui_state.current_screen.value.upper(), style="bold cyan")
    left.append("  ")
    left.append(f"status: {snapshot.status}", style="bold white")
    left.append("  ")
    left.append(f"updated {fmt_time(snapshot.updated_at)} UTC", style="grey46")

    right = Text(HOTKEYS, style="dim")

    table = Table(expand=True, box=None, show_header=False, padding=0)
    table.add_column("left", no_wrap=True)
    table.add_column("right", justify="right", no_wrap=True)
    table.add_row(left, right)
    return Panel(table, title="[bold grey70]BOTDASH[/bold grey70]", border_style="grey70")


def trade_history_table(snapshot: BusinessSnapshot, ui_state: UIState) -> Panel:
    table = Table(expand=True, box=None, padding=(0, 1))
    for label, justify, min_width in TRADE_HISTORY_COLUMNS:
        table.add_column(label, justify=justify, min_width=min_width, no_wrap=True)

    trades = snapshot.trade_history
    if not trades:
        table.add_row(*["—"] * len(TRADE_HISTORY_COLUMNS))
    # Clamp for display only; the store keeps the cursor in bounds on key presses
    cur_x = min(ui_state.cursor.x, len(TRADE_HISTORY_COLUMNS) - 1)
    cur_y = min(ui_state.cursor.y, max(len(trades) - 1, 0))
    for row_idx, trade in enumerate(trades):
        cells: List[Text] = [
            Text(fmt_time(trade.timestamp)),
            Text(trade.side.upper(), style="green" if trade.side.lower() == "buy" else "red"),
            Text(trade.token_in, style="bold white"),
            Text(trade.token_out, style="bold white"),
            fmt_amount(trade.amount_in),
            fmt_amount(trade.amount_out),
            fmt_pct(trade.expected_profit),
            fmt_profit(trade.profit),
        ]
        if row_idx == cur_y:
            cells[cur_x].stylize("reverse")
        table.add_row(*cells)

    subtitle = f"{len(trades)} trades  cursor {cur_x},{cur_y}"
    return Panel(table, title="[bold grey70]TRADE HISTORY[/bold grey70]",
                 subtitle=f"[grey46]{subtitle}[/grey46]", subtitle_align="right", border_style="grey70")


def config_panel(snapshot: BusinessSnapshot) -> Panel:
    table = Table(expand=True, box=None, padding=(0, 1), show_header=False)
    table.add_column("Setting", style="bold white", no_wrap=True)
    table.add_column("Value", justify="right")
    if not snapshot.config:
        table.add_row("—", Text("no configuration reported", style="dim"))
    for key in sorted(snapshot.config):
        table.add_row(Text(str(key)), Text(repr(snapshot.config[key]), style="cyan"))
    return Panel(table, title="[bold grey70]CONFIG[/bold grey70]",
                 subtitle="[grey46]press m to go back[/grey46]", subtitle_align="right", border_style="grey70")


def wallet_panel(snapshot: BusinessSnapshot) -> Panel:
    table = Table(expand=True, box=None, padding=(0, 1))
    table.add_column("Address", style="bold white", no_wrap=True)
    table.add_column("Token", no_wrap=True)
    table.add_column("Balance", justify="right")
    if not snapshot.wallets:
        table.add_row(Text("no wallet connected", style="dim"), "—", "—")
    for wallet in snapshot.wallets:
        if not wallet.balances:
            table.add_row(Text(wallet.address), "—", Text("—", style="dim"))
            continue
        for i, token in enumerate(sorted(wallet.balances)):
            addr = wallet.address if i == 0 else ""
            table.add_row(Text(addr), Text(token), fmt_amount(wallet.balances[token]))
    subtitle = "ctrl+s opens explorer"
    if snapshot.wallet_address:
        subtitle = f"{short_address(snapshot.wallet_address)}  {subtitle}"
    return Panel(table, title="[bold grey70]WALLET[/bold grey70]", subtitle=f"[grey46]{subtitle}[/grey46]",
                 subtitle_align="right", border_style="grey70")


def logs_panel(snapshot: BusinessSnapshot) -> Panel:
    lines = snapshot.logs[-LOG_LINES_SHOWN:]
    body = Text("\n".join(lines)) if lines else Text("no log lines yet", style="dim")
    return Panel(body, title="[bold grey70]LOGS[/bold grey70]",
                 subtitle=f"[grey46]last {len(lines)} of {len(snapshot.logs)}[/grey46]",
                 subtitle_align="right", border_style="grey70")


def build_view(snapshot: BusinessSnapshot, ui_state: UIState, width: int = DEFAULT_WIDTH) -> RenderableType:
    """Build the renderable for the active screen. Raises CompositionError."""
    screen = ui_state.current_screen
    try:
        if screen is Screen.MAIN:
            body: List[RenderableType] = [
                price_chart(snapshot, width),
                expected_profit_chart(snapshot, width),
                trade_history_table(snapshot, ui_state),
            ]
        elif screen is Screen.CONFIG:
            body = [config_panel(snapshot)]
        elif screen is Screen.WALLET:
            body = [wallet_panel(snapshot)]
        elif screen is Screen.LOGS:
            body = [logs_panel(snapshot)]
        elif screen is Screen.MINI:
            body = [Text(compose_mini_line(snapshot))]
        else:
            raise CompositionError(f"no view for screen {screen!r}")
    except CompositionError:
        raise
    except Exception as e:
        raise CompositionError(f"{screen.value} view: {e}") from e
    return Group(header(snapshot, ui_state), *body)


def render_text(renderable: RenderableType, width: int = DEFAULT_WIDTH) -> str:
    buf = io.StringIO()
    console = Console(file=buf, width=width, height=200, force_terminal=True,
                      color_system="standard", legacy_windows=False, highlight=False,
                      emoji=False)
    console.print(renderable)
    return buf.getvalue()


def placeholder_frame(reason: str, width: int = DEFAULT_WIDTH) -> str:
    panel = Panel(Text(f"Unable to render this view: {reason}", style="yellow"),
                  title="[bold grey70]BOTDASH[/bold grey70]", border_style="yellow")
    return render_text(panel, width)


def compose_frame(snapshot: BusinessSnapshot, ui_state: UIState, width: int = DEFAULT_WIDTH) -> str:
    try:
        return render_text(build_view(snapshot, ui_state, width), width)
    except Exception as e:
        # CompositionError from build_view, or a rich error while laying out
        logger.warning("composition failed: %s", e)
        return placeholder_frame(str(e), width)


def compose_mini_line(snapshot: BusinessSnapshot) -> str:
    """Condensed one-line view written by mini mode."""
    profit_series = snapshot.series("expected_profit_percent")
    profit: Optional[float] = profit_series[-1] if profit_series else None
    price = f"{snapshot.price:.12f}" if snapshot.price is not None else "—"
    profit_s = f"{profit:+.4f}%" if profit is not None else "—"
    trend = sparkline(snapshot.series("price")[-20:], 20)
    return (f"{fmt_time(snapshot.updated_at)} | price {price} {trend} | expected profit {profit_s}"
            f" | trades {len(snapshot.trade_history)} | {snapshot.status}")


def compose_banner(lines: List[str], warning: str = "", width: int = DEFAULT_WIDTH) -> str:
    """Plain notice lines, with the warning line (if any) highlighted."""
    text = Text()
    for i, line in enumerate(lines):
        if i:
            text.append("\n")
        text.append(line, style="bold #00c4fd" if warning and line == warning else None)
    return render_text(text, width)
