from __future__ import annotations

import socket
import threading
import time

from core.listener import PingCounter, PingListener


def test_counter_is_thread_safe() -> None:
    counter = PingCounter()
    threads = [threading.Thread(target=lambda: [counter.increment() for _ in range(500)]) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert counter.value == 2000


def test_listener_counts_one_ping_per_connection() -> None:
    listener = PingListener("127.0.0.1", 0, max_workers=2)
    host, port = listener.address
    server = threading.Thread(target=listener.serve_forever, daemon=True)
    server.start()
    try:
        for _ in range(3):
            with socket.create_connection((host, port), timeout=2) as conn:
                conn.sendall(b"\x01")
        deadline = time.monotonic() + 5
        while listener.counter.value < 3 and time.monotonic() < deadline:
            time.sleep(0.02)
    finally:
        listener.shutdown()
        server.join(timeout=5)

    assert listener.counter.value == 3
    assert not server.is_alive()
