import socket
import threading
from contextlib import contextmanager
from typing import Callable, List, Optional

import pytest

from rtosdemo.echo_clients import (
    DATA_CORRECT,
    DATA_ERRONEOUS,
    DATA_NOT_RECEIVED,
    DATA_SENT,
    EchoStats,
    echo_round,
    format_echo_message,
    run_echo_client,
)


@contextmanager
def udp_server(reply: Callable[[bytes], Optional[bytes]]):
    """Local UDP server answering each datagram with reply(data), if not None."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(0.05)
    received: List[bytes] = []
    done = threading.Event()

    def serve() -> None:
        while not done.is_set():
            try:
                data, client = sock.recvfrom(65535)
            except OSError:
                continue
            received.append(data)
            answer = reply(data)
            if answer is not None:
                sock.sendto(answer, client)

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    try:
        yield sock.getsockname(), received
    finally:
        done.set()
        thread.join(2)
        sock.close()


def _stopping_output(lines: List[str], target: str, count: int, stop: threading.Event):
    def output(line: str) -> None:
        lines.append(line)
        if lines.count(target) >= count:
            stop.set()

    return output


def test_format_echo_message():
    assert format_echo_message(3) == "Message number 3\r\n"


def test_format_echo_message_wraps_to_32_bits():
    assert format_echo_message(2**32 + 7) == format_echo_message(7)


def test_echo_round_with_echo_server():
    with udp_server(lambda data: data) as (address, received):
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            message = format_echo_message(0)
            sent, reply = echo_round(sock, address, message, 2.0)
    assert sent is True
    assert reply == message
    assert received == [b"Message number 0\r\n\0"]


def test_echo_round_returns_none_without_reply():
    with udp_server(lambda data: None) as (address, received):
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sent, reply = echo_round(sock, address, "hello", 0.1)
    assert sent is True
    assert reply is None


def test_echo_round_returns_reply_up_to_nul():
    with udp_server(lambda data: b"other\0tail") as (address, _received):
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sent, reply = echo_round(sock, address, "hello", 2.0)
    assert sent is True
    assert reply == "other"


def test_run_echo_client_counts_correct_replies():
    stop = threading.Event()
    lines: List[str] = []
    with udp_server(lambda data: data) as (address, received):
        stats = run_echo_client(
            address,
            None,
            _stopping_output(lines, DATA_CORRECT, 3, stop),
            stop,
            loop_count=3,
            loop_delay=0.01,
            timeout=2.0,
        )
    assert stats == EchoStats(tx_count=3, rx_count=3)
    assert lines.count(DATA_SENT) == 3
    assert received == [
        (format_echo_message(n) + "\0").encode("ascii") for n in range(3)
    ]


def test_run_echo_client_continues_numbering():
    stop = threading.Event()
    lines: List[str] = []
    stats = EchoStats(tx_count=5, rx_count=1)
    with udp_server(lambda data: data) as (address, received):
        result = run_echo_client(
            address,
            stats,
            _stopping_output(lines, DATA_CORRECT, 1, stop),
            stop,
            loop_count=1,
            loop_delay=0.01,
            timeout=2.0,
        )
    assert result is stats
    assert stats.tx_count == 6
    assert stats.rx_count == 2
    assert received[0] == (format_echo_message(5) + "\0").encode("ascii")


def test_run_echo_client_reports_erroneous_replies():
    stop = threading.Event()
    lines: List[str] = []
    with udp_server(lambda data: b"wrong\0") as (address, _received):
        stats = run_echo_client(
            address,
            None,
            _stopping_output(lines, DATA_ERRONEOUS, 2, stop),
            stop,
            loop_count=2,
            loop_delay=0.01,
            timeout=2.0,
        )
    assert stats.tx_count == 2
    assert stats.rx_count == 0
    assert DATA_CORRECT not in lines


def test_run_echo_client_reports_missing_replies():
    stop = threading.Event()
    lines: List[str] = []
    with udp_server(lambda data: None) as (address, _received):
        stats = run_echo_client(
            address,
            None,
            _stopping_output(lines, DATA_NOT_RECEIVED, 2, stop),
            stop,
            loop_count=2,
            loop_delay=0.01,
            timeout=0.05,
        )
    assert stats.tx_count == 2
    assert stats.rx_count == 0
    assert lines.count(DATA_NOT_RECEIVED) == 2


def test_run_echo_client_rejects_empty_batches():
    with pytest.raises(ValueError):
        run_echo_client(("127.0.0.1", 9), EchoStats(), print, threading.Event(), 0)


def test_run_echo_client_with_stop_already_set_sends_nothing():
    stop = threading.Event()
    stop.set()
    stats = run_echo_client(("127.0.0.1", 9), None, print, stop, 3, 0.01, 0.05)
    assert stats == EchoStats()