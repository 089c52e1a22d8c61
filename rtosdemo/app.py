"""Console application: reads lines from standard input and keeps a running average."""

from __future__ import annotations

import argparse
import queue
import re
import sys
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, TextIO

INPUT_BUFFER_SIZE = 100
QUEUE_LENGTH = 5
MUTEX_TIMEOUT = 1.0
STORE_INCREMENT = 10
AVERAGE_COMMAND = "avg"

_POLL_INTERVAL = 0.05
_C_WHITESPACE = " \t\n\v\f\r"

_DECIMAL = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_HEXADECIMAL = re.compile(
    r"[+-]?0[xX](?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)(?:[pP][+-]?[0-9]+)?"
)
_SPECIAL = re.compile(r"([+-]?)(?:(inf(?:inity)?)|nan(?:\([0-9A-Za-z_]*\))?)", re.IGNORECASE)


def string_to_float(text: str) -> float:
    """Return the sum of the text's byte values divided by ten."""
    return sum(text.encode("utf-8")) / 10.0


def _parse_number(text: str) -> Optional[float]:
    """Parse text as a float the way strtof does, or None if any of it is left over."""
    if text == "":
        return 0.0
    body = text.lstrip(_C_WHITESPACE)
    if _DECIMAL.fullmatch(body):
        return float(body)
    if _HEXADECIMAL.fullmatch(body):
        return float.fromhex(body)
    special = _SPECIAL.fullmatch(body)
    if special:
        sign = -1.0 if special.group(1) == "-" else 1.0
        magnitude = float("inf") if special.group(2) else float("nan")
        return sign * magnitude
    return None


def parse_value(text: str) -> float:
    """Read text as a number, falling back to string_to_float when it is not one."""
    number = _parse_number(text)
    return string_to_float(text) if number is None else number


@dataclass
class SharedState:
    """Values shared between tasks, guarded by a re-entrant lock."""

    float_sum: float = 0.0
    float_count: int = 0
    shared_var: int = 0
    lock: "threading.RLock" = field(default_factory=threading.RLock, repr=False, compare=False)

    def add_value(self, value: float) -> int:
        """Store a value, bump the shared variable by ten and return the new count."""
        with self.lock:
            self.float_sum += value
            self.float_count += 1
            self.shared_var += STORE_INCREMENT
            return self.float_count

    def average(self) -> Optional[float]:
        """Return the mean of the stored values, or None when there are none."""
        with self.lock:
            if self.float_count == 0:
                return None
            return self.float_sum / self.float_count

    def increment(self, amount: int) -> int:
        """Add to the shared variable and return its new value."""
        with self.lock:
            self.shared_var += amount
            return self.shared_var


class UartHandler:
    """Handles messages received on the simulated serial line."""

    def __init__(
        self,
        state: SharedState,
        output: Callable[[str], object] = print,
        timeout: float = MUTEX_TIMEOUT,
    ) -> None:
        self.state = state
        self.output = output
        self.timeout = timeout

    @contextmanager
    def _hold(self) -> Iterator[bool]:
        acquired = self.state.lock.acquire(timeout=self.timeout)
        try:
            yield acquired
        finally:
            if acquired:
                self.state.lock.release()

    def handle(self, message: str) -> List[str]:
        """Process one message and return the lines it wrote."""
        lines: List[str] = []

        def emit(line: str) -> None:
            lines.append(line)
            self.output(line)

        text = message.split("\n", 1)[0]
        emit(f"[UART] Received message: {text}")

        if text == AVERAGE_COMMAND:
            with self._hold() as acquired:
                if acquired:
                    mean = self.state.average()
                    if mean is None:
                        emit(">>> No inputs yet.")
                    else:
                        emit(f">>> Current average: {mean:.2f}")
            return lines

        value = _parse_number(text)
        if value is None:
            value = string_to_float(text)
            emit(f">>> Converted string to float: {value:.2f}")

        with self._hold() as acquired:
            if acquired:
                count = self.state.add_value(value)
                emit(f">>> Stored value: {value:.2f} | Total count: {count}")
        return lines

    def run(self, messages: "queue.Queue[str]", stop: threading.Event) -> None:
        """Handle queued messages until stop is set and the queue is empty."""
        while not (stop.is_set() and messages.empty()):
            try:
                message = messages.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue
            self.handle(message)


def uart_reader(stream: TextIO, messages: "queue.Queue[str]", stop: threading.Event) -> None:
    """Read lines of at most 99 characters from stream and queue them without newlines."""
    while not stop.is_set():
        chunk = stream.readline(INPUT_BUFFER_SIZE - 1)
        if not chunk:
            return
        message = chunk.split("\n", 1)[0]
        while not stop.is_set():
            try:
                messages.put(message, timeout=_POLL_INTERVAL)
                break
            except queue.Full:
                continue


def main(argv: Optional[List[str]] = None) -> int:
    """Run the serial-line handler on standard input until end of input."""
    parser = argparse.ArgumentParser(
        prog="rtosdemo",
        description="Read numbers from standard input; type 'avg' for their average.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=MUTEX_TIMEOUT,
        help="seconds to wait for the shared-state lock",
    )
    args = parser.parse_args(argv)

    state = SharedState()
    messages: "queue.Queue[str]" = queue.Queue(maxsize=QUEUE_LENGTH)
    stop = threading.Event()

    def read_input() -> None:
        try:
            uart_reader(sys.stdin, messages, stop)
        finally:
            stop.set()

    reader = threading.Thread(target=read_input, name="UARTSim", daemon=True)
    reader.start()

    handler = UartHandler(state, lambda line: print(line, flush=True), args.timeout)
    try:
        handler.run(messages, stop)
    except KeyboardInterrupt:
        stop.set()
    return 0