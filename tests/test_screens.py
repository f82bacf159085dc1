"""Tests for screen transitions and the mini mode subscription."""

import pytest

from botdash.app import Dashboard
from botdash.constants import MINI_MODE_EXIT
from botdash.state import Screen

from conftest import FakeBot, FakeSurface, make_snapshot, press


def test_initial_screen_is_main(dashboard):
    assert dashboard.screens.current is Screen.MAIN
    assert not dashboard.screens.mini_active


@pytest.mark.parametrize("allow_clear", [True, False])
def test_main_mini_main_restores_clear_flag(allow_clear, bot, surface):
    dash = Dashboard(bot, {"allowClearConsole": allow_clear}, surface=surface)
    dash.screens.set_current_screen(Screen.MINI)
    assert dash.store.get_state().allow_clear_console is False
    dash.screens.set_current_screen(Screen.MAIN)

    state = dash.store.get_state()
    assert state.current_screen is Screen.MAIN
    assert state.allow_clear_console is allow_clear


def test_entering_mini_starts_subscription_and_prints_banner(dashboard, surface):
    dashboard.screens.set_current_screen(Screen.MINI)
    assert dashboard.screens.mini_active
    assert surface.clears == 0
    banner, line = surface.writes
    assert "Entering mini mode. Press 'm' to exit." in banner
    assert "EXPERIMENTAL" in banner
    assert line.startswith("22:13:20 | price")


def test_leaving_mini_stops_subscription(dashboard, surface, bot):
    dashboard.screens.set_current_screen(Screen.MINI)
    dashboard.screens.set_current_screen(Screen.MAIN)
    assert not dashboard.screens.mini_active
    assert MINI_MODE_EXIT in surface.writes

    surface.reset()
    bot.store.update(price=9.0)
    assert dashboard.events.drain() == 0
    assert surface.ops == []


def test_snapshot_changes_render_in_mini_mode(dashboard, surface, bot):
    dashboard.screens.set_current_screen(Screen.MINI)
    surface.reset()

    bot.store.update(price=1.25)
    bot.store.update(price=1.5)
    dashboard.events.drain()
    # Both notifications collapse into one queued render of the newest snapshot
    assert len(surface.writes) == 1
    assert "price 1.500000000000" in surface.writes[0]

    bot.store.publish(bot.store.get_state())
    dashboard.events.drain()
    assert len(surface.writes) == 1


def test_same_screen_reentry_renders_without_side_effects(dashboard, surface):
    dashboard.screens.set_current_screen(Screen.MAIN)
    assert [op for op, _ in surface.ops] == ["clear", "write"]
    assert not dashboard.screens.mini_active

    dashboard.screens.set_current_screen(Screen.MINI)
    surface.reset()
    dashboard.screens.set_current_screen(Screen.MINI)
    assert surface.ops == []
    assert dashboard.screens.mini_active


def test_forced_render_sees_new_screen(bot, surface):
    seen = []
    dash = Dashboard(bot, surface=surface)
    dash.render_loop.composer = lambda snapshot, ui_state, width: seen.append(ui_state.current_screen) or "f"
    for screen in (Screen.CONFIG, Screen.WALLET, Screen.LOGS, Screen.MAIN):
        dash.screens.set_current_screen(screen)
    assert seen == [Screen.CONFIG, Screen.WALLET, Screen.LOGS, Screen.MAIN]


def test_toggle_from_other_screens_goes_to_main(dashboard):
    dashboard.screens.set_current_screen(Screen.LOGS)
    dashboard.screens.toggle_mini()
    assert dashboard.screens.current is Screen.MAIN
    dashboard.screens.toggle_mini()
    assert dashboard.screens.current is Screen.MINI
    dashboard.screens.toggle_mini()
    assert dashboard.screens.current is Screen.MAIN


def test_leaving_mini_for_another_screen_restores_clear(dashboard):
    dashboard.screens.set_current_screen(Screen.MINI)
    dashboard.screens.set_current_screen(Screen.CONFIG)
    state = dashboard.store.get_state()
    assert state.allow_clear_console is True
    assert not dashboard.screens.mini_active


def test_screen_accepts_names(dashboard):
    dashboard.screens.set_current_screen("wallet")
    assert dashboard.screens.current is Screen.WALLET
    with pytest.raises(ValueError):
        dashboard.screens.set_current_screen("nope")


def test_m_key_toggles_mini_mode(dashboard):
    press(dashboard, "m")
    assert dashboard.screens.current is Screen.MINI
    press(dashboard, "m")
    assert dashboard.screens.current is Screen.MAIN


def test_stale_mini_notification_after_exit_is_dropped():
    bot = FakeBot(make_snapshot())
    surface = FakeSurface()
    dash = Dashboard(bot, surface=surface)
    dash.screens.set_current_screen(Screen.MINI)
    bot.store.update(price=3.0)
    # leave mini before the queued notification runs
    dash.screens.set_current_screen(Screen.MAIN)
    surface.reset()
    dash.events.drain()
    assert surface.ops == []
