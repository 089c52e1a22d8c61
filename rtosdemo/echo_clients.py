"""UDP echo client that sends numbered messages and checks the replies."""

from __future__ import annotations

import socket
import threading
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

ECHO_SERVER_ADDRESS = "172.19.195.36"
ECHO_PORT = 8080
ECHO_SERVER = (ECHO_SERVER_ADDRESS, ECHO_PORT)

MAX_LOOP_COUNT = 50
LOOP_DELAY = 0.15
RECEIVE_TIMEOUT = 1.0

# Size of the buffer a reply is received into, terminator included.
RECEIVE_BUFFER_SIZE = 25

MESSAGE_PREFIX = "Message number "

DATA_SENT = "[Echo Client] Data sent..."
DATA_CORRECT = "[Echo Client] Data was received correctly."
DATA_ERRONEOUS = "[Echo Client] Data received was erroneous."
DATA_NOT_RECEIVED = "[Echo Client] Data was not received"

Output = Callable[[str], object]
Address = Tuple[str, int]


@dataclass
class EchoStats:
    """Running counts of echo requests sent and correct replies received."""

    tx_count: int = 0
    rx_count: int = 0


def format_echo_message(count: int) -> str:
    """Return the text of echo request number ``count``; a NUL byte follows it on the wire."""
    return f"{MESSAGE_PREFIX}{count & 0xFFFFFFFF}\r\n"


def echo_round(
    sock: socket.socket,
    server: Address,
    message: str,
    timeout: float = RECEIVE_TIMEOUT,
) -> Tuple[bool, Optional[str]]:
    """Send ``message`` with its NUL terminator and wait for the reply.

    Returns whether the send succeeded and the reply text up to its first
    NUL byte, or None when nothing was received within ``timeout``.
    """
    payload = message.encode("utf-8") + b"\0"
    try:
        sock.sendto(payload, server)
        sent = True
    except OSError:
        sent = False

    sock.settimeout(timeout)
    try:
        data, _source = sock.recvfrom(RECEIVE_BUFFER_SIZE)
    except OSError:
        return sent, None
    if not data:
        return sent, None
    return sent, data.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def _wait(stop: Optional[threading.Event], delay: float) -> None:
    if stop is None:
        threading.Event().wait(delay)
    else:
        stop.wait(delay)


def run_echo_client(
    server: Address = ECHO_SERVER,
    stats: Optional[EchoStats] = None,
    output: Output = print,
    stop: Optional[threading.Event] = None,
    loop_count: int = MAX_LOOP_COUNT,
    loop_delay: float = LOOP_DELAY,
    timeout: float = RECEIVE_TIMEOUT,
) -> EchoStats:
    """Repeatedly open a socket, run a batch of echo requests on it and close it.

    Message numbers carry on from ``stats.tx_count``. Runs until ``stop`` is
    set (forever when it is None) and returns the statistics.
    """
    if loop_count < 1:
        raise ValueError("loop_count must be at least 1")
    if stats is None:
        stats = EchoStats()

    while stop is None or not stop.is_set():
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            for _ in range(loop_count):
                if stop is not None and stop.is_set():
                    break
                message = format_echo_message(stats.tx_count)
                sent, reply = echo_round(sock, server, message, timeout)
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