# rtosdemo

A small collection of concurrent demo programs built on threads, queues and
UDP sockets:

- an interactive console that reads values line by line, keeps a running
  average and reports it on request (`rtosdemo.app`);
- a line-oriented command interpreter (`rtosdemo.cli_interpreter`) with demo
  commands (`rtosdemo.cli_commands`), which can be served over UDP
  (`rtosdemo.command_server`);
- two UDP echo clients that send numbered messages and count correct replies
  (`rtosdemo.echo_clients` and `rtosdemo.zero_copy_echo`);
- a run-time counter that scales a high-resolution clock to hundredths of a
  millisecond (`rtosdemo.runtime_stats`).

The package has no dependencies beyond the standard library.

## Installation

```
pip install .
```

To install with the test dependencies:

```
pip install .[test]
```

## The console

```
rtosdemo
```

A reader thread takes lines from standard input (at most 99 characters at a
time, newline removed) and queues them; a handler takes them off the queue.
For every line it prints `[UART] Received message: ...` and then:

- `avg` prints `>>> Current average: X.XX`, or `>>> No inputs yet.` when
  nothing has been stored.
- A number is stored as it is. Numbers are read as C's `strtof` reads them:
  decimal, hexadecimal (`0x1p3`), `inf` and `nan` are accepted, leading
  whitespace is skipped, and an empty line counts as `0`.
- Any other text is turned into a number, the sum of its UTF-8 byte values
  divided by ten, and reported as `>>> Converted string to float: X.XX`.
  For example, `abc` becomes `29.40`.

Each stored value is reported as `>>> Stored value: X.XX | Total count: N`.
The program ends at end of input or on Ctrl-C.

Option:

- `--timeout SECONDS`: how long to wait for the shared-state lock
  (default `1.0`); when the lock cannot be taken the line is received but
  nothing is stored or reported.

The same pieces can be used directly: `string_to_float(text)`,
`parse_value(text)`, `SharedState` (with `add_value`, `average` and
`increment`), `UartHandler(state, output, timeout)` whose `handle(message)`
returns the lines it wrote, `UartHandler.run(messages, stop)` and
`uart_reader(stream, messages, stop)`.

## The command interpreter

```python
from rtosdemo.cli_interpreter import CommandInterpreter
from rtosdemo.cli_commands import NetworkConfig, register_cli_commands

interpreter = CommandInterpreter()
register_cli_commands(interpreter, config=NetworkConfig(ip_address="192.168.0.10"))

for chunk in interpreter.process("echo-parameters a b c"):
    print(chunk, end="")
```

`CommandInterpreter.process(command_line)` runs one line and returns the list
of output chunks it produced. Every interpreter has a built-in `help`
command that lists the help text of all registered commands. An unknown
command, or a wrong number of parameters for a command that expects a fixed
number, produces a one-chunk message pointing at `help`.

New commands are added with `register(CommandDefinition(command, help_text,
handler, expected_parameters))`; an `expected_parameters` of `-1` accepts any
number. A handler receives the whole command line and returns a string or an
iterable of strings. `get_parameter(command_line, index)` (counting from 1)
and `count_parameters(command_line)` help with parsing.

`register_cli_commands(interpreter, config, tasks, stats, resolver, sender,
debug_entries, recorder)` always registers:

- `task-stats`: a table header followed by the text returned by `tasks()`;
- `run-time-stats`: a table header followed by the text returned by
  `stats()`, or only the header when no `stats` is given;
- `echo-3-parameters <p1> <p2> <p3>`: echoes exactly three parameters;
- `echo-parameters <...>`: echoes any number of parameters;
- `ip-config`: the addresses in the `NetworkConfig`; unset (zero) addresses
  are left blank.

and, only when their backing is given:

- `ping <address-or-host> [bytes]` when `sender` is given: `sender(address,
  size)` returns a request identifier, or 0 on failure; names not starting
  with a digit go through `resolver`. The default size is 8 bytes.
- `ip-debug-stats` when `debug_entries` (pairs of description and value, or a
  callable returning them) is given;
- `trace start|stop` when `recorder` (an object with `start`, `stop` and
  `clear`) is given.

## Serving commands over UDP

```python
import threading
from rtosdemo.command_server import start_udp_command_interpreter_task

stop = threading.Event()
thread, address = start_udp_command_interpreter_task(5001, interpreter, stop)
```

Received bytes are gathered into lines by `LineAssembler`: carriage returns
are ignored, backspace removes the last character, characters beyond 60 are
dropped, and a newline completes a command. Each output chunk is sent back as
its own datagram to the sender, followed by a `\r\n` spacer once the command
is done. `open_udp_server_socket(port, host)` and
`serve_udp_commands(sock, interpreter, stop)` are available for running the
loop yourself. Setting `stop` ends the server thread and closes its socket.

## Echo clients

`run_echo_client` and `run_zero_copy_echo_client` repeatedly open a UDP
socket, send a batch of numbered messages (`Message number N\r\n` and
`Zero copy message number N\r\n`, each followed by a NUL byte) to an echo
server, and count the replies that match in an `EchoStats` (`tx_count`,
`rx_count`). The first client reads replies into a 25-byte buffer; the
second takes whole datagrams and starts half a loop delay later.
`start_echo_client_tasks(server, output, stop)` starts both on threads named
`Echo0` and `Echo1`. The default server is `172.19.195.36`, port `8080`.
`echo_round(sock, server, message, timeout)` performs a single exchange.

## Run-time counter

`RunTimeCounter(clock, frequency)` takes a reference reading in `configure()`;
`value()` then returns the time since that reading in 1/100 ms units,
wrapped to 32 bits. Calling `value()` before `configure()` raises
`RuntimeError`; a frequency too low to measure 1/100 ms raises `ValueError`.

## What this package does not do

- There is no echo server: the echo clients need one running elsewhere.
- There is no UDP client/server pair that sends messages to itself; only the
  echo clients and the command server use the network.
- There is no task scheduler: `task-stats` and `run-time-stats` only show
  the text supplied by the callables you pass in, and only the console is
  available as a command.

## Running the tests

```
pytest
```