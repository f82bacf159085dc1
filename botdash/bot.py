"""Business-side collaborators: the snapshot the dashboard renders and the
bot it sends commands to. Trading logic itself lives elsewhere."""

import logging
import threading
import time
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, List, Mapping, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Wallet:
    address: str
    balances: Mapping[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class Trade:
    timestamp: float
    side: str
    token_in: str
    token_out: str
    amount_in: float
    amount_out: float
    expected_profit: Optional[float] = None
    profit: Optional[float] = None


@dataclass(frozen=True)
class BusinessSnapshot:
    price: Optional[float] = None
    price_inverted: Optional[float] = None
    chart: Mapping[str, Tuple[float, ...]] = field(default_factory=dict)
    wallets: Tuple[Wallet, ...] = ()
    trade_history: Tuple[Trade, ...] = ()
    config: Mapping[str, Any] = field(default_factory=dict)
    logs: Tuple[str, ...] = ()
    status: str = "idle"
    updated_at: float = 0.0

    def series(self, key: str) -> Tuple[float, ...]:
        return tuple(self.chart.get(key, ()))

    @property
    def wallet_address(self) -> Optional[str]:
        return self.wallets[0].address if self.wallets else None


SnapshotListener = Callable[[BusinessSnapshot], None]


class SnapshotStore:
    """Thread-safe holder of the latest BusinessSnapshot.

    Publishers replace the snapshot wholesale; subscribers are called with
    each new snapshot on the publisher's thread.
    """

    def __init__(self, initial: Optional[BusinessSnapshot] = None):
        self._snapshot = _freeze(initial or BusinessSnapshot())
        self._lock = threading.Lock()
        self._listeners: List[SnapshotListener] = []

    def get_state(self) -> BusinessSnapshot:
        with self._lock:
            return self._snapshot

    def publish(self, snapshot: BusinessSnapshot) -> BusinessSnapshot:
        snapshot = _freeze(replace(snapshot, updated_at=snapshot.updated_at or time.time()))
        with self._lock:
            self._snapshot = snapshot
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener failed")
        return snapshot

    def update(self, **changes) -> BusinessSnapshot:
        """Publish a copy of the current snapshot with the given fields replaced."""
        with self._lock:
            current = self._snapshot
        return self.publish(replace(current, updated_at=time.time(), **changes))

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe


def _freeze(snapshot: BusinessSnapshot) -> BusinessSnapshot:
    """Wrap mapping fields in read-only proxies so renderers cannot mutate them."""
    chart = {k: tuple(v) for k, v in snapshot.chart.items()}
    return replace(
        snapshot,
        chart=MappingProxyType(chart),
        config=MappingProxyType(dict(snapshot.config)),
        wallets=tuple(snapshot.wallets),
        trade_history=tuple(snapshot.trade_history),
        logs=tuple(snapshot.logs),
    )


class SnapshotSource(Protocol):
    def get_state(self) -> BusinessSnapshot: ...

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]: ...


class Bot(Protocol):
    store: SnapshotSource

    def set_status(self, command: str) -> None: ...
