"""
Overlay process lifecycle and the control side of the lock channel.

The overlay runs as its own process. It is launched with its initial state on
the command line and then connects back to a local socket server owned by the
control process. Messages in both directions are JSON lines (see
``shared.lock_protocol``).
"""

from __future__ import annotations

import os
import sys
from typing import Callable, List, Optional, Tuple

from PySide6.QtCore import QObject, QProcess, QTimer, Signal
from PySide6.QtNetwork import QLocalServer, QLocalSocket

from shared import logger as app_logger
from shared.lock_protocol import (
    MSG_ACTION,
    MSG_BROADCAST,
    MSG_CLOSE,
    OVERLAY_ACTIONS,
    LaunchParams,
    LockBroadcastPayload,
    ProtocolError,
    decode_message,
    encode_message,
)

OVERLAY_MODULE = "eye_rest_core.overlay_main"
KILL_GRACE_MS = 2000

CommandFactory = Callable[[str, LaunchParams], Tuple[str, List[str]]]


def default_overlay_command(server_name: str, params: LaunchParams) -> Tuple[str, List[str]]:
    """Program and arguments used to launch the overlay process."""
    return sys.executable, [
        "-m",
        OVERLAY_MODULE,
        "--server",
        server_name,
        "--params",
        params.to_query(),
    ]


class OverlayHost(QObject):
    """
    Implements the show-overlay, hide-overlay and broadcast-update commands and
    surfaces overlay-action messages as ``actionReceived``.
    """

    actionReceived = Signal(str)
    overlayLost = Signal()

    def __init__(
        self,
        *,
        server_name: Optional[str] = None,
        command_factory: Optional[CommandFactory] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._logger = app_logger.get_logger()
        self.server_name = server_name or f"eye-rest-lock-{os.getpid()}"
        self._command_factory = command_factory or default_overlay_command

        self._server = QLocalServer(self)
        self._server.newConnection.connect(self._on_new_connection)  # type: ignore[arg-type]
        self._sockets: List[QLocalSocket] = []
        self._process: Optional[QProcess] = None
        self._closing: Optional[QProcess] = None
        self._last_payload: Optional[LockBroadcastPayload] = None

        self._kill_timer = QTimer(self)
        self._kill_timer.setSingleShot(True)
        self._kill_timer.setInterval(KILL_GRACE_MS)
        self._kill_timer.timeout.connect(self._kill_overlay)  # type: ignore[arg-type]

    @property
    def overlay_running(self) -> bool:
        return self._process is not None and self._process.state() != QProcess.ProcessState.NotRunning

    @property
    def connected_overlays(self) -> int:
        return len(self._sockets)

    @property
    def last_payload(self) -> Optional[LockBroadcastPayload]:
        return self._last_payload

    def start(self) -> bool:
        """Open the local channel. Returns False when the server cannot listen."""
        if self._server.isListening():
            return True
        QLocalServer.removeServer(self.server_name)
        if not self._server.listen(self.server_name):
            self._logger.error(
                "Lock channel could not listen on {}: {}", self.server_name, self._server.errorString()
            )
            return False
        self._logger.info("Lock channel listening on {}", self.server_name)
        return True

    def stop(self) -> None:
        self._kill_timer.stop()
        # Cleared first so the finished handler does not report a lost overlay.
        processes = (self._process, self._closing)
        self._process = None
        self._closing = None
        for process in processes:
            if process is not None and process.state() != QProcess.ProcessState.NotRunning:
                process.kill()
                process.waitForFinished(1000)
        for socket in list(self._sockets):
            socket.abort()
        self._sockets.clear()
        self._server.close()

    def show_overlay(self, params: LaunchParams) -> None:
        if self.overlay_running:
            self._logger.debug("Overlay already running; keeping the existing process.")
            return
        self._last_payload = None
        program, arguments = self._command_factory(self.server_name, params)
        process = QProcess(self)
        process.setProcessChannelMode(QProcess.ProcessChannelMode.ForwardedChannels)
        process.errorOccurred.connect(self._on_process_error)  # type: ignore[arg-type]
        process.finished.connect(self._on_process_finished)  # type: ignore[arg-type]
        self._process = process
        self._logger.info("Launching lock overlay ({})", params.to_query())
        process.start(program, arguments)

    def hide_overlay(self) -> None:
        self._last_payload = None
        if not self.overlay_running:
            self._process = None
            return
        self._logger.info("Closing lock overlay.")
        self._send_all(encode_message(MSG_CLOSE))
        self._kill_overlay()
        self._closing, self._process = self._process, None
        self._kill_timer.start()

    def broadcast(self, payload: LockBroadcastPayload) -> None:
        """Push a payload to every connected overlay and keep it for late joiners."""
        self._last_payload = payload
        self._send_all(encode_message(MSG_BROADCAST, payload=payload.to_wire()))

    def _send_all(self, data: bytes) -> None:
        for socket in list(self._sockets):
            self._send(socket, data)

    def _send(self, socket: QLocalSocket, data: bytes) -> None:
        if socket.state() != QLocalSocket.LocalSocketState.ConnectedState:
            return
        if socket.write(data) < 0:
            self._logger.warning("Lock channel write failed: {}", socket.errorString())
            return
        socket.flush()

    def _on_new_connection(self) -> None:
        while self._server.hasPendingConnections():
            socket = self._server.nextPendingConnection()
            if socket is None:
                break
            self._sockets.append(socket)
            socket.readyRead.connect(lambda s=socket: self._read_socket(s))  # type: ignore[arg-type]
            socket.disconnected.connect(lambda s=socket: self._on_socket_disconnected(s))  # type: ignore[arg-type]
            self._logger.debug("Overlay connected to lock channel ({} total).", len(self._sockets))
            if self._last_payload is not None:
                self._send(socket, encode_message(MSG_BROADCAST, payload=self._last_payload.to_wire()))

    def _read_socket(self, socket: QLocalSocket) -> None:
        while socket.canReadLine():
            line = bytes(socket.readLine().data())
            self.handle_line(line)

    def handle_line(self, line: bytes) -> None:
        """Decode one line from the overlay and emit the action it carries."""
        if not line.strip():
            return
        try:
            message = decode_message(line)
        except ProtocolError as exc:
            self._logger.warning("Dropping malformed overlay message: {}", exc)
            return
        if message["type"] != MSG_ACTION:
            self._logger.warning("Unexpected overlay message type '{}'", message["type"])
            return
        action = message.get("action")
        if action not in OVERLAY_ACTIONS:
            self._logger.warning("Unknown overlay action '{}'", action)
            return
        self._logger.info("Overlay action received: {}", action)
        self.actionReceived.emit(action)

    def _on_socket_disconnected(self, socket: QLocalSocket) -> None:
        if socket in self._sockets:
            self._sockets.remove(socket)
        socket.deleteLater()

    def _kill_overlay(self) -> None:
        process = self._closing
        if process is not None and process.state() != QProcess.ProcessState.NotRunning:
            self._logger.warning("Lock overlay ignored close request; killing process.")
            process.kill()

    def _on_process_error(self, error: QProcess.ProcessError) -> None:
        self._logger.error("Lock overlay process error: {}", error)
        # A process that never started emits no finished signal.
        sender = self.sender()
        if error == QProcess.ProcessError.FailedToStart and sender is self._process:
            self._process = None
            sender.deleteLater()
            self.overlayLost.emit()

    def _on_process_finished(self, exit_code: int, exit_status: QProcess.ExitStatus) -> None:
        self._logger.info("Lock overlay exited (code={}, status={}).", exit_code, exit_status)
        sender = self.sender()
        if sender is self._closing:
            self._kill_timer.stop()
            self._closing = None
        elif sender is self._process:
            self._logger.warning("Lock overlay exited while a break is still active.")
            self._process = None
            sender.deleteLater()
            self.overlayLost.emit()
            return
        if isinstance(sender, QProcess):
            sender.deleteLater()
