"""UDP echo client that sends whole datagrams and checks whole-datagram replies.

Each request carries its NUL terminator, and a reply is taken as a whole
datagram rather than being cut to a fixed receive buffer.
"""

from __future__ import annotations

import socket
import threading
from typing import Callable, List, Optional, Tuple

from rtosdemo.echo_clients import (
    ECHO_SERVER,
    LOOP_DELAY,
    MAX_LOOP_COUNT,
    RECEIVE_TIMEOUT,
    EchoStats,
    run_echo_client,
)

ZERO_COPY_MESSAGE_PREFIX = "Zero copy message number"

# Large enough for any UDP datagram.
ZERO_COPY_RECEIVE_BUFFER_SIZE = 65535

DATA_SENT = "[Zero Copy] Data sent..."
DATA_CORRECT = "[Zero Copy] Data was received correctly."
DATA_ERRONEOUS = "[Zero Copy] Data received was erroneous."
DATA_NOT_RECEIVED = "[Zero Copy] Data was not received"

Output = Callable[[str], object]
Address = Tuple[str, int]


def format_zero_copy_echo_message(count: int) -> str:
    """Return the text of request number ``count``; a NUL byte follows it on the wire."""
    return f"{ZERO_COPY_MESSAGE_PREFIX} {count & 0xFFFFFFFF}\r\n"


def _wait(stop: Optional[threading.Event], delay: float) -> None:
    if stop is None:
        threading.Event().wait(delay)
    else:
        stop.wait(delay)


def _round(
    sock: socket.socket, server: Address, message: str, timeout: float
) -> Tuple[bool, Optional[str]]:
    payload = message.encode("utf-8") + b"\0"
    try:
        sock.sendto(payload, server)
        sent = True
    except OSError:
        sent = False

    sock.settimeout(timeout)
    try:
        data, _source = sock.recvfrom(ZERO_COPY_RECEIVE_BUFFER_SIZE)
    except OSError:
        return sent, None
    if not data:
        return sent, None
    return sent, data.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def run_zero_copy_echo_client(
    server: Address = ECHO_SERVER,
    stats: Optional[EchoStats] = None,
    output: Output = print,
    stop: Optional[threading.Event] = None,
    loop_count: int = MAX_LOOP_COUNT,
    loop_delay: float = LOOP_DELAY,
    timeout: float = RECEIVE_TIMEOUT,
) -> EchoStats:
    """Repeatedly open a socket, run a batch of echo requests on it and close it.

    Starts after half a loop delay so it runs out of step with the other
    echo client. Message numbers carry on from ``stats.tx_count``. Runs
    until ``stop`` is set (forever when it is None) and returns the statistics.
    """
    if loop_count < 1:
        raise ValueError("loop_count must be at least 1")
    if stats is None:
        stats = EchoStats()

    _wait(stop, loop_delay / 2)

    while stop is None or not stop.is_set():
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            for _ in range(loop_count):
                if stop is not None and stop.is_set():
                    break
                message = format_zero_copy_echo_message(stats.tx_count)
                sent, reply = _round(sock, server, message, timeout)
                if sent:
                    output(DATA_SENT)
                stats.tx_count += 1

                if reply is None:
                    output(DATA_NOT_RECEIVED)
                elif reply == message:
                    stats.rx_count += 1
                    output(DATA_CORRECT)
                else:
                    output(DATA_ERRONEOUS)

            _wait(stop, loop_delay)
    return stats


def start_echo_client_tasks(
    server: Address = ECHO_SERVER,
    output: Output = print,
    stop: Optional[threading.Event] = None,
) -> List[threading.Thread]:
    """Start the standard echo client ("Echo0") and the zero-copy one ("Echo1").

    Returns the two started threads.
    """
    threads = [
        threading.Thread(
            target=run_echo_client,
            kwargs={"server": server, "output": output, "stop": stop},
            name="Echo0",
            daemon=True,
        ),
        threading.Thread(
            target=run_zero_copy_echo_client,
            kwargs={"server": server, "output": output, "stop": stop},
            name="Echo1",
            daemon=True,
        ),
    ]
    for thread in threads:
        thread.start()
    return threads