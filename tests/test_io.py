"""Tests for the terminal-facing collaborators: surface, links, key source."""

import io
import os
import threading
import time
import webbrowser

import pytest
from rich.console import Console

from botdash import links
from botdash.keyboard import TerminalKeySource, decode_keys
from botdash.surface import TerminalSurface


def test_surface_writes_frames_verbatim_with_trailing_newline():
    buf = io.StringIO()
    surface = TerminalSurface(Console(file=buf, force_terminal=True, width=80))
    surface.write("\x1b[32mframe\x1b[0m")
    surface.write("line\n")
    assert buf.getvalue() == "\x1b[32mframe\x1b[0m\nline\n"


def test_surface_clear_emits_control_codes(monkeypatch):
    monkeypatch.setenv("TERM", "xterm-256color")
    buf = io.StringIO()
    surface = TerminalSurface(Console(file=buf, force_terminal=True, width=80))
    surface.clear()
    assert "\x1b[2J" in buf.getvalue()


def test_explorer_url():
    assert links.explorer_url("abc") == "https://solscan.io/address/abc"


def test_open_link_reports_success(monkeypatch):
    opened = []
    monkeypatch.setattr(webbrowser, "open", lambda url: opened.append(url) or True)
    assert links.open_link("https://example.com") is True
    assert opened == ["https://example.com"]


def test_open_link_failures_are_swallowed(monkeypatch):
    def broken(url):
        raise webbrowser.Error("no runnable browser")

    monkeypatch.setattr(webbrowser, "open", broken)
    assert links.open_link("https://example.com") is False
    monkeypatch.setattr(webbrowser, "open", lambda url: False)
    assert links.open_link("https://example.com") is False


def test_key_source_without_terminal_does_nothing():
    received = []
    source = TerminalKeySource(received.append, stream=io.StringIO())
    assert source.start() is False
    source.stop()
    assert received == []


@pytest.fixture
def tty():
    """A pseudo-terminal: (master fd, file object on the child end)."""
    pty = pytest.importorskip("pty")
    master, child = pty.openpty()
    stream = os.fdopen(child, "rb", buffering=0)
    yield master, stream
    stream.close()
    os.close(master)


class Collector:
    def __init__(self, expected):
        self.chords = []
        self.expected = expected
        self.done = threading.Event()

    def __call__(self, data):
        self.chords.extend(decode_keys(data))
        if len(self.chords) >= self.expected:
            self.done.set()


def test_key_source_on_a_terminal_reads_chords_and_restores_settings(tty):
    termios = pytest.importorskip("termios")
    master, stream = tty
    saved = termios.tcgetattr(stream.fileno())
    received = Collector(2)
    source = TerminalKeySource(received, stream=stream, poll_interval=0.02)
    try:
        assert source.start() is True
        attrs = termios.tcgetattr(stream.fileno())
        assert not attrs[0] & termios.IXON
        assert not attrs[3] & (termios.ISIG | termios.ICANON | termios.ECHO)
        os.write(master, b"\x1b[A\x03")
        assert received.done.wait(2)
    finally:
        source.stop()
    assert received.chords == ["up", "ctrl+c"]
    assert termios.tcgetattr(stream.fileno()) == saved


def test_key_source_joins_split_reads(tty):
    master, stream = tty
    received = Collector(3)
    source = TerminalKeySource(received, stream=stream, poll_interval=0.5)
    try:
        assert source.start() is True
        os.write(master, b"\x1b[")
        time.sleep(0.02)
        os.write(master, b"A\xc3")
        time.sleep(0.02)
        os.write(master, b"\xa9m")
        assert received.done.wait(2)
    finally:
        source.stop()
    assert received.chords == ["up", "é", "m"]


def test_lone_escape_is_delivered_after_a_quiet_poll(tty):
    master, stream = tty
    received = Collector(1)
    source = TerminalKeySource(received, stream=stream, poll_interval=0.02)
    try:
        assert source.start() is True
        os.write(master, b"\x1b")
        assert received.done.wait(2)
    finally:
        source.stop()
    assert received.chords == ["escape"]
