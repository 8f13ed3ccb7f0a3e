"""
Console status display.

Status text is handed to a render thread through a bounded queue so the
streaming loop never waits on terminal output. When the terminal falls
behind, the oldest pending lines are dropped.
"""

import threading
from queue import Empty, Full, Queue
from typing import Optional

from rich.console import Console


class NullStatus:
    """Discards status text."""

    def post(self, text: str) -> None:
        pass

    def close(self) -> None:
        pass


class ConsoleStatus:
    """Renders status text on a dedicated thread."""

    def __init__(
        self, console: Optional[Console] = None, style: str = "cyan", max_pending: int = 256
    ):
        self.console = console or Console()
        self.style = style
        self.dropped = 0
        self._queue: Queue = Queue(maxsize=max_pending)
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._render_loop, name="StatusRender", daemon=True
        )
        self._thread.start()

    def post(self, text: str) -> None:
        """Hand off text for rendering; never blocks. Drops the oldest pending text when full."""
        if self._stop_event.is_set():
            return
        while True:
            try:
                self._queue.put_nowait(text)
                return
            except Full:
                try:
                    self._queue.get_nowait()
                    self.dropped += 1
                except Empty:
                    pass

    def _render_loop(self) -> None:
        while not (self._stop_event.is_set() and self._queue.empty()):
            try:
                text = self._queue.get(timeout=0.1)
            except Empty:
                continue
            self.console.print(text, style=self.style, markup=False, highlight=False)

    def close(self, timeout: float = 2.0) -> None:
        """Render what is pending and stop the render thread."""
        self._stop_event.set()
        self._thread.join(timeout=timeout)
