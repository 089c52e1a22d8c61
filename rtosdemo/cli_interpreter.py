"""Line-based command interpreter and the generic demo commands it runs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Union

HandlerResult = Union[str, Iterable[str]]
Handler = Callable[[str], HandlerResult]
TextSource = Callable[[], str]

ANY_PARAMETERS = -1

TASK_STATS_HEADER = (
    "Task          State  Priority  Stack\t#\r\n"
    "************************************************\r\n"
)
RUN_TIME_STATS_HEADER = (
    "Task            Abs Time      % Time\r\n"
    "****************************************\r\n"
)
THREE_PARAMETERS_HEADER = "The three parameters were:\r\n"
PARAMETERS_HEADER = "The parameters were:\r\n"

HELP_COMMAND = "help"
HELP_TEXT = "help:\r\n Lists all the registered commands\r\n\r\n"


@dataclass(frozen=True)
class CommandDefinition:
    """A command name, its help text, its handler and how many parameters it takes.

    ``expected_parameters`` of -1 lets the handler take any number of them.
    The handler receives the whole command line and returns one string or an
    iterable of output chunks.
    """

    command: str
    help_text: str
    handler: Handler
    expected_parameters: int = 0

    def __post_init__(self) -> None:
        if not self.command or any(ch.isspace() for ch in self.command):
            raise ValueError(f"invalid command name {self.command!r}")
        if self.expected_parameters < ANY_PARAMETERS:
            raise ValueError("expected_parameters must be -1 or more")


def _tokens(command_line: str) -> List[str]:
    return command_line.split()


def get_parameter(command_line: str, index: int) -> Optional[str]:
    """Return the index-th parameter (counting from 1) after the command, or None."""
    if index < 1:
        raise ValueError("parameter index starts at 1")
    tokens = _tokens(command_line)
    return tokens[index] if index < len(tokens) else None


def count_parameters(command_line: str) -> int:
    """Return how many parameters follow the command name."""
    return max(len(_tokens(command_line)) - 1, 0)


class CommandInterpreter:
    """Dispatches command lines to registered commands, with a built-in help."""

    def __init__(self) -> None:
        self._commands: Dict[str, CommandDefinition] = {}
        self.register(
            CommandDefinition(HELP_COMMAND, HELP_TEXT, self._help, 0)
        )

    @property
    def commands(self) -> List[CommandDefinition]:
        """Registered commands in registration order."""
        return list(self._commands.values())

    def register(self, definition: CommandDefinition) -> None:
        """Add a command; a name may be registered only once."""
        if definition.command in self._commands:
            raise ValueError(f"command {definition.command!r} is already registered")
        self._commands[definition.command] = definition

    def _help(self, command_line: str) -> Iterator[str]:
        for definition in self._commands.values():
            yield definition.help_text

    def process(self, command_line: str) -> List[str]:
        """Run one command line and return the output chunks it produced."""
        tokens = _tokens(command_line)
        name = tokens[0] if tokens else ""
        definition = self._commands.get(name)
        if definition is None:
            return [
                f"Unknown command '{name}'. "
                f"Enter '{HELP_COMMAND}' to list the available commands.\r\n\r\n"
            ]
        expected = definition.expected_parameters
        if expected != ANY_PARAMETERS and count_parameters(command_line) != expected:
            return [
                f"Incorrect number of parameters for '{name}'. "
                f"Enter '{HELP_COMMAND}' to list the available commands.\r\n\r\n"
            ]
        result = definition.handler(command_line)
        if isinstance(result, str):
            return [result]
        return list(result)


def task_stats_command(command_line: str, tasks: TextSource) -> str:
    """Return the task table: a header followed by what ``tasks`` reports."""
    return TASK_STATS_HEADER + tasks()


def run_time_stats_command(command_line: str, stats: Optional[TextSource]) -> str:
    """Return the run-time table; only the header when no statistics are gathered."""
    return RUN_TIME_STATS_HEADER + (stats() if stats is not None else "")


def echo_three_parameters_command(command_line: str) -> Iterator[str]:
    """Yield a header and then each of exactly three parameters, numbered."""
    yield THREE_PARAMETERS_HEADER
    for number in range(1, 4):
        parameter = get_parameter(command_line, number)
        if parameter is None:
            raise ValueError(f"parameter {number} of three is missing")
        yield f"{number}: {parameter}\r\n"


def echo_parameters_command(command_line: str) -> Iterator[str]:
    """Yield a header, each parameter numbered, and a final empty chunk."""
    yield PARAMETERS_HEADER
    number = 1
    while (parameter := get_parameter(command_line, number)) is not None:
        yield f"{number}: {parameter}\r\n"
        number += 1
    yield ""