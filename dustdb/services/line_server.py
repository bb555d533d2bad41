"""Line Server: asyncio TCP listener serving one request per connection.

Invariants:
    - Connection state machine: await line -> dispatch -> respond and close
    - Exactly one response per connection; the socket is closed after the first
      successfully decoded line is answered, whatever else the peer sent
    - A line that is not UTF-8 or exceeds max_line_bytes is logged and skipped;
      the connection keeps waiting for the next line
    - At most settings.max_connections handlers run at once (semaphore)
    - Storage work runs in a worker thread so it never blocks other connections
    - Errors on one connection are logged and never propagate to the listener

Design Decisions:
    - asyncio.start_server + StreamReader.readuntil for newline framing;
      an over-long line is drained up to its newline before reading resumes
    - No read/write timeouts; a peer that disconnects ends its task silently
    - The slot is taken before the request line is read, so max_connections
      idle peers hold every slot and later clients wait until one disconnects
"""

import asyncio
import logging
from contextlib import suppress

from dustdb.config import Settings
from dustdb.core.responses import serialize_response
from dustdb.services.request_handler import RequestHandler

logger = logging.getLogger(__name__)

LINE_SEPARATOR = b"\n"


class LineServer:
    """Accepts connections and runs one bounded handler task per connection."""

    def __init__(self, settings: Settings, handler: RequestHandler):
        self._settings = settings
        self._handler = handler
        self._slots = asyncio.Semaphore(settings.max_connections)
        self._server: asyncio.AbstractServer | None = None

    @property
    def bound_address(self) -> tuple[str, int]:
        """(host, port) actually bound; resolves port 0 to the ephemeral port."""
        if not self._server or not self._server.sockets:
            raise RuntimeError("Server not started")
        host, port = self._server.sockets[0].getsockname()[:2]
        return host, port

    async def start(self) -> None:
        self._server = await asyncio.start_server(
            self.handle_connection,
            self._settings.host,
            self._settings.port,
            limit=self._settings.max_line_bytes,
        )
        host, port = self.bound_address
        logger.info(
            f"dustdb listening on {host}:{port}",
            extra={"address": f"{host}:{port}"},
        )

    async def serve_forever(self) -> None:
        if self._server is None:
            await self.start()
        async with self._server:
            await self._server.serve_forever()

    async def close(self) -> None:
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            logger.info("dustdb listener stopped")

    # ─── Per-connection task ─────────────────────────────────────

    async def handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter,
    ) -> None:
        peer = _format_peer(writer.get_extra_info("peername"))
        try:
            async with self._slots:
                line = await self._read_request_line(reader, peer)
                if line is None:
                    return
                response = await asyncio.to_thread(
                    self._handler.handle_line, line, peer,
                )
                writer.write(
                    serialize_response(response).encode("utf-8") + LINE_SEPARATOR
                )
                await writer.drain()
        except ConnectionError as e:
            logger.info(f"Connection from {peer} lost: {e}", extra={"peer": peer})
        except Exception as e:
            logger.error(
                f"Unexpected error on connection from {peer}: {e}",
                exc_info=True, extra={"peer": peer},
            )
        finally:
            writer.close()
            with suppress(ConnectionError):
                await writer.wait_closed()

    async def _read_request_line(
        self, reader: asyncio.StreamReader, peer: str,
    ) -> str | None:
        """Return the first decodable line, or None if the peer closed first."""
        discarding = False
        while True:
            try:
                raw = await reader.readuntil(LINE_SEPARATOR)
            except asyncio.IncompleteReadError as e:
                # EOF: a trailing unterminated line still counts as a request
                if not e.partial or discarding:
                    return None
                raw = e.partial
            except asyncio.LimitOverrunError as e:
                await reader.readexactly(e.consumed)
                if not discarding:
                    logger.warning(
                        f"Line from {peer} exceeds {self._settings.max_line_bytes} bytes, skipping",
                        extra={"peer": peer},
                    )
                discarding = True
                continue

            if discarding:
                discarding = False
                continue

            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                logger.warning(
                    f"Error decoding line from {peer}: {e}", extra={"peer": peer},
                )
                continue
            return _strip_terminator(text)


def _strip_terminator(text: str) -> str:
    if text.endswith("\n"):
        text = text[:-1]
    if text.endswith("\r"):
        text = text[:-1]
    return text


def _format_peer(peername) -> str:
    if isinstance(peername, tuple) and len(peername) >= 2:
        return f"{peername[0]}:{peername[1]}"
    return str(peername or "-")
