"""TCP listener counting pings sent by instrumented programs."""
from __future__ import annotations

import logging
import socket
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Tuple

READ_BUFFER_BYTES = 512
ACCEPT_TIMEOUT_SECONDS = 0.2


class PingCounter:
    """Thread-safe monotonically increasing counter."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._count = 0

    def increment(self) -> int:
        with self._lock:
            self._count += 1
            return self._count

    @property
    def value(self) -> int:
        with self._lock:
            return self._count


class PingListener:
    """Accepts connections and counts one ping per connection.

    Handlers run on a bounded worker pool; the accept loop blocks while every
    worker slot is busy.
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 7910,
        *,
        max_workers: int = 32,
        counter: Optional[PingCounter] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.counter = counter or PingCounter()
        self.logger = logger or logging.getLogger(__name__)
        self.max_workers = max(1, max_workers)
        self._slots = threading.BoundedSemaphore(self.max_workers)
        self._stop = threading.Event()
        self._socket = socket.create_server((host, port))
        self._socket.settimeout(ACCEPT_TIMEOUT_SECONDS)

    @property
    def address(self) -> Tuple[str, int]:
        host, port = self._socket.getsockname()[:2]
        return host, port

    def serve_forever(self, stop_event: Optional[threading.Event] = None) -> None:
        stop = stop_event or self._stop
        self.logger.info("Listening on %s:%d", *self.address)
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="ping") as pool:
            while not (stop.is_set() or self._stop.is_set()):
                try:
                    conn, _addr = self._socket.accept()
                except socket.timeout:
                    continue
                except OSError:
                    if self._stop.is_set():
                        break
                    raise
                self._slots.acquire()
                pool.submit(self._handle, conn)

    def shutdown(self) -> None:
        self._stop.set()
        self._socket.close()

    def _handle(self, conn: socket.socket) -> None:
        try:
            with conn:
                conn.settimeout(ACCEPT_TIMEOUT_SECONDS * 10)
                try:
                    conn.recv(READ_BUFFER_BYTES)
                except OSError as exc:
                    self.logger.debug("Read failed: %s", exc)
                count = self.counter.increment()
                self.logger.info("count: %d", count)
        finally:
            self._slots.release()
