"""UDP front end for a line-based command interpreter."""

from __future__ import annotations

import socket
import threading
from typing import Iterable, Iterator, List, Optional, Protocol, Tuple, Union

MAX_INPUT_SIZE = 60
SOCKET_INPUT_BUFFER_SIZE = 60
SPACER = b"\r\n"

_POLL_INTERVAL = 0.1
_NEWLINE = 0x0A
_CARRIAGE_RETURN = 0x0D
_BACKSPACE = 0x08

Output = Union[str, bytes]


class Interpreter(Protocol):
    def process(self, command_line: str) -> Union[Output, Iterable[Output]]:
        ...


class LineAssembler:
    """Collects received bytes into command lines terminated by a newline.

    Carriage returns are ignored, backspace erases the last character, and
    characters beyond ``max_size`` are dropped.
    """

    def __init__(self, max_size: int = MAX_INPUT_SIZE) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self.max_size = max_size
        self._buffer = bytearray()

    def feed(self, data: bytes) -> List[str]:
        """Add received bytes and return the command lines they completed."""
        commands: List[str] = []
        for byte in data:
            if byte == _NEWLINE:
                commands.append(self._take())
            elif byte == _CARRIAGE_RETURN:
                continue
            elif byte == _BACKSPACE:
                if self._buffer:
                    self._buffer.pop()
            elif len(self._buffer) < self.max_size:
                self._buffer.append(byte)
        return commands

    def _take(self) -> str:
        raw = bytes(self._buffer).split(b"\0", 1)[0]
        self._buffer.clear()
        return raw.decode("utf-8", errors="replace")


def _chunks(result: Union[Output, Iterable[Output]]) -> Iterator[bytes]:
    if isinstance(result, (str, bytes)):
        result = [result]
    for chunk in result:
        yield chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk)


def _send(sock: socket.socket, data: bytes, address: Tuple) -> None:
    try:
        sock.sendto(data, address)
    except OSError:
        # A failed send is not fatal to the server.
        pass


def open_udp_server_socket(port: int, host: str = "") -> socket.socket:
    """Create a UDP socket bound to the given port; raises OSError on failure."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.bind((host, port & 0xFFFF))
    except OSError:
        sock.close()
        raise
    return sock


def serve_udp_commands(sock: socket.socket, interpreter: Interpreter, stop: threading.Event) -> None:
    """Run received command lines through the interpreter and send back its output.

    Every output chunk goes back as its own datagram to the sender of the
    latest datagram, followed by a CR LF spacer once the command is done.
    """
    assembler = LineAssembler()
    sock.settimeout(_POLL_INTERVAL)
    while not stop.is_set():
        try:
            data, client = sock.recvfrom(SOCKET_INPUT_BUFFER_SIZE)
        except TimeoutError:
            continue
        except OSError:
            if sock.fileno() == -1:
                return
            continue
        for command in assembler.feed(data):
            for chunk in _chunks(interpreter.process(command)):
                _send(sock, chunk, client)
            _send(sock, SPACER, client)


def start_udp_command_interpreter_task(
    port: int,
    interpreter: Interpreter,
    stop: Optional[threading.Event] = None,
    host: str = "",
) -> Tuple[threading.Thread, Tuple[str, int]]:
    """Open the server socket and serve commands on a background thread.

    Returns the thread and the address the socket is bound to. The socket is
    closed when the thread finishes.
    """
    sock = open_udp_server_socket(port, host)
    address = sock.getsockname()
    if stop is None:
        stop = threading.Event()

    def task() -> None:
        with sock:
            serve_udp_commands(sock, interpreter, stop)

    thread = threading.Thread(target=task, name="CLI", daemon=True)
    thread.start()
    return thread, address