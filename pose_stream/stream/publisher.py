"""
Socket.IO publisher for predicted poses.

Delivery is best-effort and at-most-once: no acknowledgment, no resend, and
payloads are dropped while no server is connected. The connection itself
can be re-established in the background.
"""

import logging
import threading
from typing import Optional

import socketio
from socketio.exceptions import ConnectionError as SocketIOConnectionError

from pose_stream.stream.payload import format_payload
from pose_stream.types import InferenceResult

logger = logging.getLogger(__name__)


class SocketIOPublisher:
    """Emits one text event per inference result."""

    def __init__(
        self,
        url: str,
        event: str = "animation_data",
        connect_timeout: float = 5.0,
        client: Optional[socketio.Client] = None,
        reconnect: bool = False,
        reconnect_delay: float = 2.0,
    ):
        """
        Initialize publisher.

        Args:
            url: Socket.IO server URL
            event: Event name used for every payload
            connect_timeout: Seconds to wait for the namespace connection
            client: Socket.IO client to use instead of a new one
            reconnect: Keep retrying in the background if the first connect fails
            reconnect_delay: Seconds between background connection attempts
        """
        self.url = url
        self.event = event
        self.connect_timeout = connect_timeout
        self.client = client if client is not None else socketio.Client()
        self.reconnect = reconnect
        self.reconnect_delay = reconnect_delay

        self.sent = 0
        self.dropped = 0

        self._stop_event = threading.Event()
        self._reconnect_thread: Optional[threading.Thread] = None

        self.client.on("connect", self._on_connect)
        self.client.on("disconnect", self._on_disconnect)

    def _on_connect(self):
        logger.info(f"Connected to Socket.IO server {self.url}")

    def _on_disconnect(self, *args):
        logger.warning(f"Disconnected from Socket.IO server {self.url}")

    def _attempt_connect(self) -> Optional[Exception]:
        try:
            self.client.connect(self.url, wait_timeout=self.connect_timeout)
        except (SocketIOConnectionError, ValueError) as e:
            return e
        return None

    def connect(self) -> bool:
        """
        Connect to the server.

        Failures are logged and not raised; the loop runs without a peer.
        With reconnect enabled, a background thread keeps trying until the
        server is reachable or the publisher is closed.
        """
        error = self._attempt_connect()
        if error is None:
            return True

        logger.error(f"Failed to connect to Socket.IO server {self.url}: {error}")
        if self.reconnect:
            logger.info(f"Retrying every {self.reconnect_delay:.1f}s in the background")
            self._start_reconnect()
        return False

    def _start_reconnect(self) -> None:
        if self._reconnect_thread is not None and self._reconnect_thread.is_alive():
            return
        self._stop_event.clear()
        self._reconnect_thread = threading.Thread(
            target=self._reconnect_loop, name="SocketIOReconnect", daemon=True
        )
        self._reconnect_thread.start()

    def _reconnect_loop(self) -> None:
        attempt = 0
        while not self._stop_event.wait(self.reconnect_delay):
            attempt += 1
            error = self._attempt_connect()
            if error is None:
                logger.info(f"Reconnected after {attempt} attempt(s)")
                return
            logger.debug(f"Reconnect attempt {attempt} failed: {error}")

    @property
    def connected(self) -> bool:
        return bool(self.client.connected)

    def publish(self, result: InferenceResult) -> bool:
        """
        Emit a result.

        Returns:
            True if the payload was handed to the transport
        """
        payload = format_payload(result.pose, result.tran)

        if not self.connected:
            self.dropped += 1
            logger.debug(f"Not connected, dropped step {result.index}")
            return False

        self.client.emit(self.event, payload)
        self.sent += 1
        logger.debug(f"Sent data: {payload}")
        return True

    def close(self) -> None:
        """Stop reconnecting and disconnect from the server."""
        self._stop_event.set()
        if self._reconnect_thread is not None:
            self._reconnect_thread.join(timeout=self.connect_timeout + 1.0)
        if self.connected:
            self.client.disconnect()


class LogPublisher:
    """Publisher used when streaming is disabled; payloads only go to the log."""

    def __init__(self):
        self.sent = 0
        self.dropped = 0

    def connect(self) -> bool:
        return True

    @property
    def connected(self) -> bool:
        return True

    def publish(self, result: InferenceResult) -> bool:
        payload = format_payload(result.pose, result.tran)
        logger.debug(f"Step {result.index}: {payload}")
        self.sent += 1
        return True

    def close(self) -> None:
        pass
