"""Viewer channel: one connected viewer and its outbound queue.

The fanout never writes to a socket directly. It offers serialized
messages to a channel, and the channel's own writer task drains them
onto the transport, so a slow or broken viewer only ever delays itself.
"""

import asyncio
import contextlib
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Protocol

from signal_monitor.viewers.config import DEFAULT_VIEWER_CONFIG, ConnectionState

logger = logging.getLogger(__name__)


class ViewerTransport(Protocol):
    """The subset of a WebSocket a channel writes to."""

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000, reason: Optional[str] = None) -> None: ...


class ViewerChannel:
    """A push-capable connection to one viewer.

    Lifecycle: CONNECTING → open() → CONNECTED → close()/detach() →
    DISCONNECTED. Only CONNECTED channels accept messages.

    offer() may be called from any thread; the message is handed to
    the event loop that opened the channel.
    """

    def __init__(
        self,
        transport: ViewerTransport,
        client: str = "",
        outbox_size: int = DEFAULT_VIEWER_CONFIG.outbox_size,
        connection_id: Optional[str] = None,
    ):
        self.connection_id = connection_id or uuid.uuid4().hex[:16]
        self.client = client
        self.state = ConnectionState.CONNECTING
        self.connected_at = datetime.now(timezone.utc)
        self.messages_sent = 0
        self.messages_dropped = 0

        self._transport = transport
        self._outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=max(1, outbox_size))
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._writer: Optional[asyncio.Task] = None

    @property
    def is_open(self) -> bool:
        return self.state == ConnectionState.CONNECTED

    @property
    def pending(self) -> int:
        """Messages queued but not yet written."""
        return self._outbox.qsize()

    def open(self) -> None:
        """Start the writer task. Must be called from the serving event loop."""
        if self.state != ConnectionState.CONNECTING:
            return
        self._loop = asyncio.get_running_loop()
        self._writer = self._loop.create_task(
            self._drain(), name=f"viewer-writer-{self.connection_id}"
        )
        self.state = ConnectionState.CONNECTED

    def offer(self, message: str) -> bool:
        """Queue a message for delivery without waiting on the network.

        Returns:
            False if the channel is not open, True otherwise.
        """
        if not self.is_open or self._loop is None:
            return False

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            self._enqueue(message)
            return True

        try:
            self._loop.call_soon_threadsafe(self._enqueue, message)
        except RuntimeError:
            # Serving loop already closed
            self.state = ConnectionState.DISCONNECTED
            return False
        return True

    async def flush(self) -> None:
        """Wait until every queued message has been written or discarded."""
        await self._outbox.join()

    async def close(self, code: int = 1000, reason: str = "", flush_timeout: float = 1.0) -> None:
        """Close the channel from the server side.

        Snapshots already queued get up to flush_timeout seconds to go
        out before the socket is closed; new offers are refused.
        """
        if self.state in (ConnectionState.DISCONNECTING, ConnectionState.DISCONNECTED):
            return
        self.state = ConnectionState.DISCONNECTING
        if flush_timeout > 0 and self._loop is asyncio.get_running_loop():
            try:
                await asyncio.wait_for(self.flush(), timeout=flush_timeout)
            except asyncio.TimeoutError:
                logger.debug(f"Viewer {self.connection_id} still had {self.pending} queued on close")
        await self._stop_writer()
        try:
            await self._transport.close(code=code, reason=reason)
        except Exception as exc:
            logger.debug(f"Close of viewer {self.connection_id} failed: {exc}")
        self.state = ConnectionState.DISCONNECTED

    def detach(self) -> None:
        """Mark the channel closed after the peer went away."""
        self.state = ConnectionState.DISCONNECTED
        if self._writer is not None and not self._writer.done():
            self._writer.cancel()
        self._discard_pending()

    def to_dict(self) -> dict:
        return {
            "connection_id": self.connection_id,
            "client": self.client,
            "state": self.state.value,
            "connected_at": self.connected_at.isoformat(),
            "messages_sent": self.messages_sent,
            "messages_dropped": self.messages_dropped,
            "pending": self.pending,
        }

    def _enqueue(self, message: str) -> None:
        if not self.is_open:
            return
        if self._outbox.full():
            # A newer full snapshot supersedes the oldest queued one
            self._outbox.get_nowait()
            self._outbox.task_done()
            self.messages_dropped += 1
        self._outbox.put_nowait(message)

    async def _drain(self) -> None:
        while True:
            message = await self._outbox.get()
            try:
                await self._transport.send_text(message)
            except asyncio.CancelledError:
                self._outbox.task_done()
                raise
            except Exception as exc:
                logger.warning(
                    f"Send to viewer {self.connection_id} failed: {type(exc).__name__}: {exc}",
                    extra={"client": self.client},
                )
                self._outbox.task_done()
                self.state = ConnectionState.DISCONNECTED
                self._discard_pending()
                return
            self.messages_sent += 1
            self._outbox.task_done()

    async def _stop_writer(self) -> None:
        if self._writer is None:
            return
        if self._loop is not asyncio.get_running_loop():
            if not self._loop.is_closed():
                self._loop.call_soon_threadsafe(self._writer.cancel)
            return
        if not self._writer.done():
            self._writer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._writer
        self._discard_pending()

    def _discard_pending(self) -> None:
        while not self._outbox.empty():
            self._outbox.get_nowait()
            self._outbox.task_done()
