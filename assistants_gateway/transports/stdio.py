"""
Stdio transport
===============
Line-delimited JSON-RPC over stdin/stdout for a long-lived gateway process.

Framing:
  - one JSON object per input line
  - an empty line is a client handshake and gets no reply
  - every output message is written as a single line; stdout carries nothing
    but protocol messages

The reader runs on the calling thread.  Requests are dispatched onto an
asyncio event loop running in a background thread, with a bounded number in
flight at once.  SIGINT and SIGTERM stop the reader; in-flight requests are
drained before the loop shuts down.

Faults outside a single dispatch (reading stdin, submitting to the loop,
callbacks on the loop, other threads) are answered with an InternalError
message instead of ending the process; the reader gives up only after
``MAX_CONSECUTIVE_FAULTS`` failures in a row.
"""

import asyncio
import concurrent.futures
import json
import logging
import signal
import sys
import threading
from typing import Any, Awaitable, BinaryIO, Callable, Dict, Optional, Set, TextIO

from assistants_gateway.config import DEFAULT_STDIO_MAX_IN_FLIGHT
from assistants_gateway.errors import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    PARSE_ERROR,
    McpError,
    create_error_response,
)
from assistants_gateway.mcp.protocol import JSONRPC_VERSION

from .base import TransportAdapter

logger = logging.getLogger("Gateway.transports.stdio")

RequestHandler = Callable[[Dict[str, Any]], Awaitable[Optional[Dict[str, Any]]]]

DRAIN_TIMEOUT_SECONDS = 30.0
MAX_CONSECUTIVE_FAULTS = 5


class StdioTransportAdapter(TransportAdapter):
    name = "stdio"

    def preprocess_request(self, request: Dict[str, Any]) -> Dict[str, Any]:
        if request.get("jsonrpc") != JSONRPC_VERSION:
            raise McpError(
                INVALID_REQUEST,
                "Invalid JSON-RPC version",
                {"expected": JSONRPC_VERSION, "received": request.get("jsonrpc")},
            )
        return request


class _ShutdownRequested(Exception):
    pass


class StdioServer:
    """
    Reads requests from a binary stream and writes responses to a text stream.

    ``handler`` is an async callable turning one request envelope into one
    response envelope (``ProtocolDispatcher.handle_request`` or a proxy).
    """

    def __init__(
        self,
        handler: Optional[RequestHandler] = None,
        *,
        output: Optional[TextIO] = None,
        max_in_flight: int = DEFAULT_STDIO_MAX_IN_FLIGHT,
    ):
        self.handler = handler
        self.output = output
        self.max_in_flight = max(1, max_in_flight)

        self.stopped = threading.Event()
        self.transport_closed = threading.Event()
        self.write_lock = threading.Lock()
        self._slots = threading.BoundedSemaphore(self.max_in_flight)
        self._pending: Set[concurrent.futures.Future] = set()
        self._pending_lock = threading.Lock()

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._loop_thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Event loop
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._loop is not None:
            return
        self._loop = asyncio.new_event_loop()
        self._loop.set_exception_handler(self._on_loop_exception)
        self._loop_thread = threading.Thread(
            target=self._loop.run_forever,
            name="gateway-stdio-dispatch",
            daemon=True,
        )
        self._loop_thread.start()

    def call(self, coro: Awaitable[Any], timeout: Optional[float] = None) -> Any:
        """Run ``coro`` on the dispatch loop and wait for its result."""
        self.start()
        return asyncio.run_coroutine_threadsafe(coro, self._loop).result(timeout)

    def close(self) -> None:
        if self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        if self._loop_thread is not None:
            self._loop_thread.join(timeout=5.0)
        self._loop.close()
        self._loop = None
        self._loop_thread = None

    def stop(self) -> None:
        self.stopped.set()

    # ------------------------------------------------------------------
    # Fault guards
    # ------------------------------------------------------------------

    def report_fault(self, where: str, exc: Optional[BaseException] = None, msg_id: Any = None) -> None:
        """Log an uncaught fault and surface it to the client as an InternalError."""
        logger.error("Uncaught fault in %s", where, exc_info=exc)
        data = {"where": where}
        if exc is not None:
            data["errorType"] = type(exc).__name__
        self.send_error(msg_id, INTERNAL_ERROR, "Internal error in stdio transport", data)

    def _on_loop_exception(self, loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        self.report_fault("dispatch loop", context.get("exception"))

    def _on_thread_exception(self, args: Any) -> None:
        if issubclass(args.exc_type, SystemExit):
            return
        name = args.thread.name if args.thread is not None else "unknown"
        self.report_fault(f"thread {name}", args.exc_value)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def send_rpc(self, message: Dict[str, Any]) -> None:
        """Serialize and write one message as a single line."""
        if self.transport_closed.is_set():
            return
        serialized = json.dumps(message, default=str)
        stream = self.output or sys.stdout
        with self.write_lock:
            if self.transport_closed.is_set():
                return
            try:
                stream.write(serialized + "\n")
                stream.flush()
            except (BrokenPipeError, OSError) as exc:
                self.transport_closed.set()
                logger.warning("Stdio transport closed while sending: %s", exc)

    def send_error(self, msg_id: Any, code: int, message: str, data: Any = None) -> None:
        self.send_rpc(create_error_response(msg_id, code, message, data))

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def read_message(self, stream: BinaryIO) -> Optional[Dict[str, Any]]:
        """
        Read the next request object, or ``None`` at end of input.

        Blank lines are skipped.  Lines that are not JSON objects are answered
        with an error and skipped.
        """
        while True:
            line = stream.readline()
            if not line:
                return None
            if not line.strip():
                logger.debug("Handshake line received")
                continue
            try:
                msg = json.loads(line.decode("utf-8"))
            except (ValueError, UnicodeDecodeError):
                logger.warning("Discarding unparseable input line (%d bytes)", len(line))
                self.send_error(None, PARSE_ERROR, "Parse error")
                continue
            if not isinstance(msg, dict):
                self.send_error(None, INVALID_REQUEST, "Invalid Request", {"hint": "Expected a JSON object"})
                continue
            return msg

    def submit_dispatch(self, msg: Dict[str, Any]) -> bool:
        """Hand ``msg`` to the dispatch loop, waiting for a free slot."""
        while not self._slots.acquire(timeout=0.25):
            if self.stopped.is_set():
                return False
        try:
            future = asyncio.run_coroutine_threadsafe(self._dispatch_guarded(msg), self._loop)
        except Exception:
            self._slots.release()
            raise
        with self._pending_lock:
            self._pending.add(future)
        future.add_done_callback(self._release_slot)
        return True

    def _release_slot(self, future: concurrent.futures.Future) -> None:
        with self._pending_lock:
            self._pending.discard(future)
        self._slots.release()

    async def _dispatch_guarded(self, msg: Dict[str, Any]) -> None:
        msg_id = msg.get("id")
        try:
            response = await self.handler(msg)
        except Exception:
            logger.exception("Unexpected error during RPC dispatch")
            response = create_error_response(msg_id, INTERNAL_ERROR, "Internal error during request dispatch")
        if "id" not in msg or response is None:
            return
        self.send_rpc(response)

    def drain(self, timeout: float = DRAIN_TIMEOUT_SECONDS) -> None:
        with self._pending_lock:
            pending = list(self._pending)
        if pending:
            logger.info("Waiting for %d in-flight request(s)", len(pending))
            concurrent.futures.wait(pending, timeout=timeout)

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def _install_signal_handlers(self) -> Dict[int, Any]:
        def _on_signal(signum, frame):
            logger.info("Received signal %s; shutting down", signum)
            self.stop()
            raise _ShutdownRequested()

        previous = {}
        for sig in (signal.SIGINT, signal.SIGTERM):
            previous[sig] = signal.signal(sig, _on_signal)
        return previous

    def serve(self, stream: Optional[BinaryIO] = None, *, install_signal_handlers: bool = True) -> None:
        """Read and dispatch until end of input or a stop signal, then drain."""
        if self.handler is None:
            raise RuntimeError("StdioServer.serve() called without a request handler")
        self.start()
        stream = stream or sys.stdin.buffer
        previous_handlers = {}
        if install_signal_handlers and threading.current_thread() is threading.main_thread():
            previous_handlers = self._install_signal_handlers()
        previous_excepthook = threading.excepthook
        threading.excepthook = self._on_thread_exception

        logger.info("Stdio transport serving (max_in_flight=%d)", self.max_in_flight)
        faults = 0
        try:
            while not self.stopped.is_set() and not self.transport_closed.is_set():
                msg = None
                try:
                    msg = self.read_message(stream)
                    if msg is None:
                        break
                    if not self.submit_dispatch(msg):
                        break
                    faults = 0
                except _ShutdownRequested:
                    raise
                except Exception as exc:
                    faults += 1
                    msg_id = msg.get("id") if isinstance(msg, dict) else None
                    self.report_fault("request loop", exc, msg_id)
                    if faults >= MAX_CONSECUTIVE_FAULTS:
                        logger.error("Stopping after %d consecutive transport faults", faults)
                        break
        except _ShutdownRequested:
            pass
        finally:
            for sig, handler in previous_handlers.items():
                signal.signal(sig, handler)
            self.drain()
            threading.excepthook = previous_excepthook
            logger.info("Stdio transport stopped")
