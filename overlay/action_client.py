"""
Overlay side of the lock channel.
"""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal
from PySide6.QtNetwork import QLocalSocket

from shared import logger as app_logger
from shared.lock_protocol import (
    MSG_ACTION,
    MSG_BROADCAST,
    MSG_CLOSE,
    OVERLAY_ACTIONS,
    LockBroadcastPayload,
    ProtocolError,
    decode_message,
    encode_message,
)

CONNECT_TIMEOUT_MS = 3000


class ActionClient(QObject):
    """
    Receives broadcast and close messages from the control process and sends
    user intents back. Sending is fire-and-forget: a failed write is logged
    and the overlay carries on.
    """

    updateReceived = Signal(object)
    closeRequested = Signal()
    connectionLost = Signal()

    def __init__(self, parent: Optional[QObject] = None, *, connect_timeout_ms: int = CONNECT_TIMEOUT_MS) -> None:
        super().__init__(parent)
        self._logger = app_logger.get_logger()
        self._socket = QLocalSocket(self)
        self._socket.readyRead.connect(self._on_ready_read)  # type: ignore[arg-type]
        self._socket.connected.connect(self._on_connected)  # type: ignore[arg-type]
        self._socket.disconnected.connect(self._on_disconnected)  # type: ignore[arg-type]
        self._socket.errorOccurred.connect(self._on_error)  # type: ignore[arg-type]
        self._was_connected = False
        self._connecting = False
        self._server_name = ""
        self._connect_timer = QTimer(self)
        self._connect_timer.setSingleShot(True)
        self._connect_timer.setInterval(connect_timeout_ms)
        self._connect_timer.timeout.connect(self._on_connect_timeout)

    @property
    def connected(self) -> bool:
        return self._socket.state() == QLocalSocket.LocalSocketState.ConnectedState

    def connect_to(self, server_name: str) -> None:
        """Start connecting; the outcome arrives as a signal, never by blocking."""
        self._logger.info("Connecting to lock channel {}", server_name)
        self._server_name = server_name
        self._connecting = True
        # Armed before connecting: a missing server can fail synchronously.
        self._connect_timer.start()
        self._socket.connectToServer(server_name)

    def send_action(self, action: str) -> None:
        if action not in OVERLAY_ACTIONS:
            self._logger.warning("Refusing to send unknown action '{}'", action)
            return
        if not self.connected:
            self._logger.warning("Lock channel closed; action '{}' dropped.", action)
            return
        if self._socket.write(encode_message(MSG_ACTION, action=action)) < 0:
            self._logger.error("Failed to send action '{}': {}", action, self._socket.errorString())
            return
        self._socket.flush()

    def close(self) -> None:
        self._connect_timer.stop()
        self._connecting = False
        self._was_connected = False
        self._socket.abort()

    def handle_line(self, line: bytes) -> None:
        if not line.strip():
            return
        try:
            message = decode_message(line)
            kind = message["type"]
            if kind == MSG_BROADCAST:
                self.updateReceived.emit(LockBroadcastPayload.from_wire(message.get("payload") or {}))
            elif kind == MSG_CLOSE:
                self.closeRequested.emit()
            else:
                self._logger.warning("Unexpected lock channel message '{}'", kind)
        except ProtocolError as exc:
            self._logger.warning("Dropping malformed lock channel message: {}", exc)

    def _on_ready_read(self) -> None:
        while self._socket.canReadLine():
            self.handle_line(bytes(self._socket.readLine().data()))

    def _on_connected(self) -> None:
        self._connect_timer.stop()
        self._connecting = False
        self._was_connected = True
        self._logger.info("Connected to lock channel {}", self._server_name)

    def _on_disconnected(self) -> None:
        if self._was_connected:
            self._was_connected = False
            self._logger.info("Control process closed the lock channel.")
            self.connectionLost.emit()

    def _on_error(self, error: QLocalSocket.LocalSocketError) -> None:
        self._logger.debug("Lock channel socket error: {}", error)
        if self._connecting:
            self._fail_connect(self._socket.errorString())

    def _on_connect_timeout(self) -> None:
        if self._connecting:
            self._fail_connect("timed out")

    def _fail_connect(self, reason: str) -> None:
        self._connect_timer.stop()
        self._connecting = False
        self._logger.error("Lock channel {} unreachable: {}", self._server_name, reason)
        self._socket.abort()
        self.connectionLost.emit()
