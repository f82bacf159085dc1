"""Stand-in bot that publishes made-up market data, so the dashboard can be
run without a real trading process behind it."""

import logging
import random
import threading
import time
from collections import deque
from typing import Deque, Optional

from botdash.bot import BusinessSnapshot, SnapshotStore, Trade, Wallet
from botdash.constants import STATUS_EXECUTE_RECENT_ROUTE, STATUS_STOP

logger = logging.getLogger(__name__)

DEMO_WALLET = "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"
SERIES_LENGTH = 240
TRADE_HISTORY_LENGTH = 100


class DemoBot:
    def __init__(self, interval: float = 0.5, seed: Optional[int] = None,
                 start_price: float = 0.000123456789):
        self.store = SnapshotStore()
        self._interval = interval
        self._rng = random.Random(seed)
        self._price = start_price
        self._prices: Deque[float] = deque(maxlen=SERIES_LENGTH)
        self._profits: Deque[float] = deque(maxlen=SERIES_LENGTH)
        self._trades: Deque[Trade] = deque(maxlen=TRADE_HISTORY_LENGTH)
        self._logs: Deque[str] = deque(maxlen=200)
        self._status = "running"
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._log("demo bot started")
        self._thread = threading.Thread(target=self._run, daemon=True, name="demo-bot")
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(self._interval * 2)

    def set_status(self, command: str) -> None:
        with self._lock:
            if command == STATUS_STOP:
                self._status = "stopping"
                self._stop.set()
            elif command == STATUS_EXECUTE_RECENT_ROUTE:
                self._record_trade(forced=True)
            else:
                logger.warning("demo bot ignored unknown command %r", command)
                return
        self._log(f"command {command}")
        self.step(advance=False)

    def step(self, advance: bool = True) -> BusinessSnapshot:
        """Advance the random walk once and publish a new snapshot."""
        with self._lock:
            if advance:
                self._price *= 1 + self._rng.gauss(0, 0.002)
                self._prices.append(self._price)
                self._profits.append(self._rng.gauss(0.05, 0.2))
                if self._rng.random() < 0.05:
                    self._record_trade()
            snapshot = BusinessSnapshot(
                price=self._price,
                price_inverted=1 / self._price,
                chart={"price": tuple(self._prices), "expected_profit_percent": tuple(self._profits)},
                wallets=(Wallet(DEMO_WALLET, {"SOL": 12.5, "USDC": 1530.25}),),
                trade_history=tuple(self._trades),
                config={"strategy": "demo", "interval": self._interval, "series_length": SERIES_LENGTH},
                logs=tuple(self._logs),
                status=self._status,
                updated_at=time.time(),
            )
        return self.store.publish(snapshot)

    def _record_trade(self, forced: bool = False) -> None:
        expected = self._profits[-1] if self._profits else 0.0
        amount_in = round(self._rng.uniform(1, 50), 4)
        self._trades.append(Trade(
            timestamp=time.time(),
            side="buy" if self._rng.random() < 0.5 else "sell",
            token_in="SOL",
            token_out="USDC",
            amount_in=amount_in,
            amount_out=amount_in / self._price * 1e-6,
            expected_profit=expected,
            profit=expected * self._rng.uniform(0.5, 1.1) / 100,
        ))
        self._logs.append(f"trade recorded{' (manual)' if forced else ''}")

    def _log(self, line: str) -> None:
        with self._lock:
            self._logs.append(f"{time.strftime('%H:%M:%S')} {line}")
        logger.info(line)

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            self.step()
