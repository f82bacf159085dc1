from typing import List, Tuple

import pytest

from botdash.app import Dashboard
from botdash.bot import BusinessSnapshot, SnapshotStore, Trade, Wallet

WALLET = "7vfCXTUXx5WJV5JADk17DUJ4ksgau7utNKj4b963voxs"


class FakeSurface:
    def __init__(self):
        self.ops: List[Tuple[str, str]] = []

    def clear(self):
        self.ops.append(("clear", ""))

    def write(self, text):
        self.ops.append(("write", text))

    @property
    def writes(self) -> List[str]:
        return [text for op, text in self.ops if op == "write"]

    @property
    def clears(self) -> int:
        return sum(1 for op, _ in self.ops if op == "clear")

    def reset(self):
        self.ops.clear()


class FakeBot:
    def __init__(self, snapshot: BusinessSnapshot = None):
        self.store = SnapshotStore(snapshot)
        self.commands: List[str] = []

    def set_status(self, command):
        self.commands.append(command)


def make_trades(n: int):
    return tuple(
        Trade(timestamp=1_700_000_000 + i * 60, side="buy" if i % 2 else "sell",
              token_in="SOL", token_out="USDC", amount_in=1.5 + i, amount_out=200.0 + i,
              expected_profit=0.12, profit=0.001 * i)
        for i in range(n)
    )


def make_snapshot(**changes) -> BusinessSnapshot:
    values = dict(
        price=0.000123456789,
        price_inverted=8100.0000737,
        chart={"price": (1.0, 1.2, 1.1, 1.4, 1.3), "expected_profit_percent": (0.1, -0.2, 0.3)},
        wallets=(Wallet(WALLET, {"SOL": 12.5, "USDC": 1530.25}),),
        trade_history=make_trades(3),
        config={"strategy": "arb", "slippage_bps": 50},
        logs=("10:00:00 started", "10:00:01 route found"),
        status="running",
        updated_at=1_700_000_000.0,
    )
    values.update(changes)
    return BusinessSnapshot(**values)


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def bot():
    return FakeBot(make_snapshot())


@pytest.fixture
def opened_links():
    return []


@pytest.fixture
def dashboard(bot, surface, opened_links):
    """A dashboard with no threads running; tests drain its queue by hand."""

    def opener(url):
        opened_links.append(url)
        return True

    return Dashboard(bot, {"fps": 10}, surface=surface, link_opener=opener)


def press(dash: Dashboard, *chords: str) -> int:
    for chord in chords:
        dash.keyboard.feed(chord)
    return dash.events.drain()
