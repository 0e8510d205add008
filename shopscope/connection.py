import logging
from enum import Enum

from .store import CollectionStore

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ConnectionStateError(RuntimeError):
    pass


class ShopConnection:
    """Connect-shop flow as an explicit state machine.

    ``begin`` starts a connection attempt; the external callback that
    receives the shop identity calls ``complete``. The connected shop name is
    persisted through the store, which also seeds the initial state.
    """

    def __init__(self, store: CollectionStore):
        self._store = store
        self.shop_name = store.get_connected_shop()
        self.state = ConnectionState.CONNECTED if self.shop_name else ConnectionState.IDLE

    def _require(self, *allowed: ConnectionState) -> None:
        if self.state not in allowed:
            raise ConnectionStateError(f"cannot do that while {self.state.value}")

    def begin(self) -> None:
        self._require(ConnectionState.IDLE)
        self.state = ConnectionState.CONNECTING

    def complete(self, shop_name: str) -> ConnectionState:
        self._require(ConnectionState.CONNECTING)
        persisted = self._store.set_connected_shop(shop_name) if shop_name.strip() else None
        if persisted is None:
            logger.info("connection finished without a shop name")
            self.state = ConnectionState.IDLE
            self.shop_name = None
        else:
            self.state = ConnectionState.CONNECTED
            self.shop_name = persisted
        return self.state

    def cancel(self) -> None:
        self._require(ConnectionState.CONNECTING)
        self.state = ConnectionState.IDLE

    def disconnect(self) -> None:
        self._store.clear_connected_shop()
        self.state = ConnectionState.IDLE
        self.shop_name = None
