import pytest

from rtosdemo.cli_commands import (
    DEFAULT_BYTES_TO_PING,
    PING_FAILED,
    TRACE_STARTED,
    TRACE_STOPPED,
    TRACE_USAGE,
    NetworkConfig,
    ip_config_command,
    ip_debug_stats_command,
    ping_command,
    register_cli_commands,
    trace_command,
)
from rtosdemo.cli_interpreter import (
    RUN_TIME_STATS_HEADER,
    TASK_STATS_HEADER,
    CommandInterpreter,
)


class FakeSender:
    def __init__(self, result=7):
        self.result = result
        self.calls = []

    def __call__(self, address, size):
        self.calls.append((address, size))
        return self.result


class FakeRecorder:
    def __init__(self):
        self.calls = []

    def start(self):
        self.calls.append("start")

    def stop(self):
        self.calls.append("stop")

    def clear(self):
        self.calls.append("clear")


def test_ip_config_lists_addresses():
    config = NetworkConfig("192.168.0.2", "255.255.255.0", "192.168.0.1", "192.168.0.1")
    assert list(ip_config_command("ip-config", config)) == [
        "\r\nIP address 192.168.0.2",
        "\r\nNet mask 255.255.255.0",
        "\r\nGateway address 192.168.0.1",
        "\r\nDNS server address 192.168.0.1",
        "\r\n\r\n",
    ]


def test_ip_config_omits_unset_addresses():
    chunks = list(ip_config_command("ip-config", NetworkConfig()))
    assert chunks[0] == "\r\nIP address "
    assert chunks[-1] == "\r\n\r\n"
    assert len(chunks) == 5


def test_network_config_rejects_invalid_address():
    with pytest.raises(ValueError):
        NetworkConfig(ip_address="not.an.address")


def test_debug_stats_lists_entries_then_empty():
    chunks = list(ip_debug_stats_command("ip-debug-stats", [("rx", 3), ("tx", 4)]))
    assert chunks == ["rx 3\r\n", "tx 4\r\n", ""]


def test_debug_stats_accepts_callable():
    chunks = list(ip_debug_stats_command("ip-debug-stats", lambda: [("drops", 2)]))
    assert chunks == ["drops 2\r\n", ""]


def test_ping_numeric_address_uses_default_size():
    sender = FakeSender(7)
    assert ping_command("ping 10.0.0.1", None, sender) == "Ping sent to 10.0.0.1 with identifier 7\r\n"
    assert sender.calls == [("10.0.0.1", DEFAULT_BYTES_TO_PING)]


def test_ping_with_explicit_size():
    sender = FakeSender(1)
    ping_command("ping 10.0.0.1 32", None, sender)
    assert sender.calls == [("10.0.0.1", 32)]


def test_ping_resolves_host_name():
    sender = FakeSender(5)
    resolved = []

    def resolver(name):
        resolved.append(name)
        return "10.1.2.3"

    result = ping_command("ping www.example.com", resolver, sender)
    assert resolved == ["www.example.com"]
    assert result == "Ping sent to 10.1.2.3 with identifier 5\r\n"


def test_ping_unresolved_host_fails_without_sending():
    sender = FakeSender()
    assert ping_command("ping www.example.com", lambda name: None, sender) == PING_FAILED
    assert sender.calls == []


def test_ping_invalid_numeric_address_fails():
    sender = FakeSender()
    assert ping_command("ping 1.2.3", None, sender) == PING_FAILED
    assert sender.calls == []


def test_ping_send_failure():
    assert ping_command("ping 10.0.0.1", None, FakeSender(0)) == PING_FAILED


def test_ping_without_target_raises():
    with pytest.raises(ValueError):
        ping_command("ping", None, FakeSender())


def test_trace_start_restarts_recording():
    recorder = FakeRecorder()
    assert trace_command("trace start", recorder) == TRACE_STARTED
    assert recorder.calls == ["stop", "clear", "start"]


def test_trace_stop():
    recorder = FakeRecorder()
    assert trace_command("trace stop", recorder) == TRACE_STOPPED
    assert recorder.calls == ["stop"]


def test_trace_invalid_parameter():
    recorder = FakeRecorder()
    assert trace_command("trace pause", recorder) == TRACE_USAGE
    assert recorder.calls == []


def test_register_default_commands_in_order():
    interpreter = CommandInterpreter()
    register_cli_commands(interpreter)
    names = [definition.command for definition in interpreter.commands]
    assert names == [
        "help",
        "task-stats",
        "run-time-stats",
        "echo-3-parameters",
        "echo-parameters",
        "ip-config",
    ]


def test_register_optional_commands():
    interpreter = CommandInterpreter()
    register_cli_commands(
        interpreter,
        sender=FakeSender(),
        debug_entries=[("rx", 1)],
        recorder=FakeRecorder(),
    )
    names = [definition.command for definition in interpreter.commands]
    assert {"ping", "trace", "ip-debug-stats"} <= set(names)


def test_registered_commands_run_through_interpreter():
    interpreter = CommandInterpreter()
    recorder = FakeRecorder()
    register_cli_commands(
        interpreter,
        config=NetworkConfig(ip_address="10.0.0.9"),
        tasks=lambda: "idle\r\n",
        stats=lambda: "busy\r\n",
        sender=FakeSender(3),
        recorder=recorder,
    )
    assert interpreter.process("task-stats") == [TASK_STATS_HEADER + "idle\r\n"]
    assert interpreter.process("run-time-stats") == [RUN_TIME_STATS_HEADER + "busy\r\n"]
    assert interpreter.process("ip-config")[0] == "\r\nIP address 10.0.0.9"
    assert interpreter.process("ping 10.0.0.9") == ["Ping sent to 10.0.0.9 with identifier 3\r\n"]
    assert interpreter.process("trace stop") == [TRACE_STOPPED]
    assert recorder.calls == ["stop"]


def test_registering_twice_raises():
    interpreter = CommandInterpreter()
    register_cli_commands(interpreter)
    with pytest.raises(ValueError):
        register_cli_commands(interpreter)