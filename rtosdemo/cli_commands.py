"""Network, diagnostic and trace commands for the command interpreter."""

from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass
from functools import partial
from typing import Callable, Iterable, Iterator, Optional, Protocol, Tuple, Union

from rtosdemo.cli_interpreter import (
    ANY_PARAMETERS,
    CommandDefinition,
    CommandInterpreter,
    TextSource,
    echo_parameters_command,
    echo_three_parameters_command,
    get_parameter,
    run_time_stats_command,
    task_stats_command,
)

AddressLike = Union[str, int, ipaddress.IPv4Address, None]
Resolver = Callable[[str], AddressLike]
PingSender = Callable[[str, int], int]
DebugEntries = Union[Iterable[Tuple[str, int]], Callable[[], Iterable[Tuple[str, int]]]]

DEFAULT_BYTES_TO_PING = 8

IP_CONFIG_HELP = "ip-config:\r\n Displays IP address configuration\r\n\r\n"
IP_DEBUG_STATS_HELP = (
    "ip-debug-stats:\r\n Shows some IP stack stats useful for debug - an example only.\r\n\r\n"
)
RUN_TIME_STATS_HELP = (
    "run-time-stats:\r\n Displays a table showing how much processing time "
    "each FreeRTOS task has used\r\n\r\n"
)
TASK_STATS_HELP = "task-stats:\r\n Displays a table showing the state of each FreeRTOS task\r\n\r\n"
THREE_PARAMETER_ECHO_HELP = (
    "echo-3-parameters <param1> <param2> <param3>:\r\n Expects three parameters, "
    "echos each in turn\r\n\r\n"
)
PARAMETER_ECHO_HELP = (
    "echo-parameters <...>:\r\n Take variable number of parameters, echos each in turn\r\n\r\n"
)
PING_HELP = (
    "ping <ipaddress> <optional:bytes to send>:\r\n for example, ping 192.168.0.3 8, "
    "or ping www.example.com\r\n\r\n"
)
TRACE_HELP = (
    "trace [start | stop]:\r\n Starts or stops a trace recording for viewing in "
    "FreeRTOS+Trace\r\n\r\n"
)

PING_FAILED = "Could not send ping request\r\n"
TRACE_STARTED = "Trace recording (re)started.\r\n"
TRACE_STOPPED = "Stopping trace recording.\r\n"
TRACE_USAGE = "Valid parameters are 'start' and 'stop'.\r\n"

_ATOL = re.compile(r"[ \t\n\v\f\r]*([+-]?[0-9]+)")


class TraceRecorder(Protocol):
    def start(self) -> object: ...

    def stop(self) -> object: ...

    def clear(self) -> object: ...


def _to_address(value: AddressLike) -> ipaddress.IPv4Address:
    if value is None:
        return ipaddress.IPv4Address(0)
    return ipaddress.IPv4Address(value)


@dataclass(frozen=True)
class NetworkConfig:
    """The node's IPv4 address configuration; an all-zero address is unset."""

    ip_address: AddressLike = 0
    net_mask: AddressLike = 0
    gateway_address: AddressLike = 0
    dns_server_address: AddressLike = 0

    def __post_init__(self) -> None:
        for name in ("ip_address", "net_mask", "gateway_address", "dns_server_address"):
            object.__setattr__(self, name, _to_address(getattr(self, name)))


def ip_config_command(command_line: str, config: NetworkConfig) -> Iterator[str]:
    """Yield one chunk per configured address, then a closing blank line."""
    rows = (
        ("IP address", config.ip_address),
        ("Net mask", config.net_mask),
        ("Gateway address", config.gateway_address),
        ("DNS server address", config.dns_server_address),
    )
    for label, address in rows:
        text = f"\r\n{label} "
        if int(address) != 0:
            text += str(address)
        yield text
    yield "\r\n\r\n"


def ip_debug_stats_command(command_line: str, entries: DebugEntries) -> Iterator[str]:
    """Yield each debug statistic as 'description value', then an empty chunk."""
    if callable(entries):
        entries = entries()
    for description, value in entries:
        yield f"{description} {int(value)}\r\n"
    yield ""


def _atol(text: str) -> int:
    match = _ATOL.match(text)
    return int(match.group(1)) if match else 0


def _parse_dotted(text: str) -> ipaddress.IPv4Address:
    try:
        return ipaddress.IPv4Address(text)
    except ValueError:
        return ipaddress.IPv4Address(0)


def ping_command(command_line: str, resolver: Optional[Resolver], sender: PingSender) -> str:
    """Send a ping to an address or host name, optionally with a payload size.

    ``sender`` receives the dotted address and the payload size and returns
    the request identifier, or 0 when the request could not be sent.
    """
    size_text = get_parameter(command_line, 2)
    size = DEFAULT_BYTES_TO_PING if size_text is None else _atol(size_text)

    target = get_parameter(command_line, 1)
    if target is None:
        raise ValueError("ping needs an address or host name")

    if target[0].isdigit() and target[0].isascii():
        address = _parse_dotted(target)
    elif resolver is not None:
        try:
            address = _to_address(resolver(target))
        except ValueError:
            address = ipaddress.IPv4Address(0)
    else:
        address = ipaddress.IPv4Address(0)

    identifier = sender(str(address), size & 0xFFFF) if int(address) != 0 else 0
    if not identifier:
        return PING_FAILED
    return f"Ping sent to {address} with identifier {int(identifier)}\r\n"


def trace_command(command_line: str, recorder: TraceRecorder) -> str:
    """Start (restarting) or stop a trace recording."""
    parameter = get_parameter(command_line, 1)
    if parameter is None:
        raise ValueError("trace needs a parameter")
    if parameter.startswith("start"):
        recorder.stop()
        recorder.clear()
        recorder.start()
        return TRACE_STARTED
    if parameter.startswith("stop"):
        recorder.stop()
        return TRACE_STOPPED
    return TRACE_USAGE


def register_cli_commands(
    interpreter: CommandInterpreter,
    config: Optional[NetworkConfig] = None,
    tasks: Optional[TextSource] = None,
    stats: Optional[TextSource] = None,
    resolver: Optional[Resolver] = None,
    sender: Optional[PingSender] = None,
    debug_entries: Optional[DebugEntries] = None,
    recorder: Optional[TraceRecorder] = None,
) -> None:
    """Register the demo commands; optional ones only when their backing is given."""
    if config is None:
        config = NetworkConfig()
    if tasks is None:
        tasks = lambda: ""  # noqa: E731

    interpreter.register(
        CommandDefinition("task-stats", TASK_STATS_HELP, partial(task_stats_command, tasks=tasks), 0)
    )
    interpreter.register(
        CommandDefinition(
            "run-time-stats", RUN_TIME_STATS_HELP, partial(run_time_stats_command, stats=stats), 0
        )
    )
    interpreter.register(
        CommandDefinition(
            "echo-3-parameters", THREE_PARAMETER_ECHO_HELP, echo_three_parameters_command, 3
        )
    )
    interpreter.register(
        CommandDefinition(
            "echo-parameters", PARAMETER_ECHO_HELP, echo_parameters_command, ANY_PARAMETERS
        )
    )
    interpreter.register(
        CommandDefinition("ip-config", IP_CONFIG_HELP, partial(ip_config_command, config=config), 0)
    )
    if debug_entries is not None:
        interpreter.register(
            CommandDefinition(
                "ip-debug-stats",
                IP_DEBUG_STATS_HELP,
                partial(ip_debug_stats_command, entries=debug_entries),
                0,
            )
        )
    if sender is not None:
        interpreter.register(
            CommandDefinition(
                "ping",
                PING_HELP,
                partial(ping_command, resolver=resolver, sender=sender),
                ANY_PARAMETERS,
            )
        )
    if recorder is not None:
        interpreter.register(
            CommandDefinition("trace", TRACE_HELP, partial(trace_command, recorder=recorder), 1)
        )