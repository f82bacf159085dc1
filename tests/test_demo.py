"""Tests for the demo bot used by the standalone entrypoint."""

from botdash.constants import STATUS_EXECUTE_RECENT_ROUTE, STATUS_STOP
from botdash.demo import TRADE_HISTORY_LENGTH, DemoBot


def test_step_publishes_snapshot():
    bot = DemoBot(seed=3)
    seen = []
    bot.store.subscribe(seen.append)
    snapshot = bot.step()
    assert seen == [snapshot]
    assert bot.store.get_state() is snapshot
    assert len(snapshot.series("price")) == 1
    assert snapshot.wallet_address


def test_execute_command_records_trade():
    bot = DemoBot(seed=3)
    bot.step()
    bot.set_status(STATUS_EXECUTE_RECENT_ROUTE)
    snapshot = bot.store.get_state()
    assert len(snapshot.trade_history) >= 1
    assert any("execute:recentRoute" in line for line in snapshot.logs)


def test_stop_command_updates_status():
    bot = DemoBot(seed=3)
    bot.set_status(STATUS_STOP)
    assert bot.store.get_state().status == "stopping"


def test_unknown_command_is_ignored():
    bot = DemoBot(seed=3)
    bot.set_status("dance")
    assert bot.store.get_state().status == "idle"


def test_trade_history_is_bounded():
    bot = DemoBot(seed=3)
    bot.step()
    for _ in range(TRADE_HISTORY_LENGTH + 20):
        bot.set_status(STATUS_EXECUTE_RECENT_ROUTE)
    trades = bot.store.get_state().trade_history
    assert len(trades) == TRADE_HISTORY_LENGTH
    assert trades[0].timestamp <= trades[-1].timestamp
