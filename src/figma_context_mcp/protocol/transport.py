"""
Transport layer for MCP protocol communication.

The dispatcher talks to a transport through exactly three operations:
``connect(on_message)``, ``send(frame)`` and ``disconnect()``. The stdio
transport exchanges newline-delimited JSON frames over stdin/stdout.
"""

import asyncio
import sys
from typing import AsyncIterator, Awaitable, Callable, Optional, Protocol, TextIO

import structlog

logger = structlog.get_logger(__name__)

MessageHandler = Callable[[str], Awaitable[None]]


class TransportError(Exception):
    """Base exception for transport errors."""

    pass


class Transport(Protocol):
    """Interface required by the dispatcher."""

    async def connect(self, on_message: MessageHandler) -> None: ...

    def send(self, frame: str) -> None: ...

    async def disconnect(self) -> None: ...


class StdioTransport:
    """
    Stdio transport for MCP communication.

    Reads one frame per line from stdin in a background task and writes
    one frame per line to stdout.
    """

    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None):
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._running = False
        self._connected = False
        self._on_message: Optional[MessageHandler] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._closed = asyncio.Event()

    async def connect(self, on_message: MessageHandler) -> None:
        """Start reading stdin and deliver each line to ``on_message``."""
        if self._running:
            raise TransportError("Transport is already running")

        self._on_message = on_message
        self._running = True
        self._connected = True
        self._closed.clear()
        self._reader_task = asyncio.create_task(self._run_transport_loop())
        logger.info("Starting stdio transport")

    def send(self, frame: str) -> None:
        """Write one frame to stdout."""
        if not self._connected:
            logger.debug("Dropping frame on disconnected transport")
            return
        try:
            self._stdout.write(frame + "\n")
            self._stdout.flush()
        except (OSError, ValueError) as e:
            logger.error("Failed to send frame", error=str(e))
            raise TransportError(f"Failed to send frame: {e}")

    async def disconnect(self) -> None:
        """Stop reading and release the message handler."""
        self._running = False
        self._connected = False
        self._on_message = None
        task = self._reader_task
        self._reader_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._closed.set()
        logger.info("Stdio transport stopped")

    async def wait_closed(self) -> None:
        """Wait until stdin reaches EOF or the transport is disconnected."""
        await self._closed.wait()

    @property
    def running(self) -> bool:
        return self._running

    async def _run_transport_loop(self) -> None:
        """Main transport loop for processing stdin lines."""
        try:
            async for line in self._read_stdin_lines():
                handler = self._on_message
                if not self._running or handler is None:
                    break
                try:
                    await handler(line)
                except Exception as e:
                    logger.error("Error processing line", error=str(e), line=line[:100])
        finally:
            self._running = False
            self._closed.set()

    async def _read_stdin_lines(self) -> AsyncIterator[str]:
        """Async generator for reading lines from stdin."""
        loop = asyncio.get_running_loop()

        while self._running:
            try:
                line = await loop.run_in_executor(None, self._stdin.readline)
            except (OSError, ValueError) as e:
                logger.error("Error reading from stdin", error=str(e))
                break

            if not line:
                logger.info("Received EOF on stdin")
                break

            line = line.strip()
            if line:
                yield line
