"""
Test RemoteConnection — SSH tunnel handling.

paramiko.SSHClient is mocked, so no network access is needed.
"""

from __future__ import annotations

import json
import socket

import paramiko
import pytest

from remotebox.box import Box
from remotebox.config import ALIVE_CHECK, BUFFER_SIZE, config
from remotebox.errors import CommandExecutionFailed, ConnectionUnavailable
from remotebox.remote import RemoteConnection


def test_tunnel_is_lazy(ssh_client):
    RemoteConnection("deploy@web1")
    ssh_client.factory.assert_not_called()


def test_ensure_tunnel_connects_once(ssh_client):
    connection = RemoteConnection("deploy@web1:2222")
    connection.ensure_tunnel()
    connection.ensure_tunnel()
    connection.ensure_tunnel(timeout=60)

    ssh_client.factory.assert_called_once_with()
    ssh_client.connect.assert_called_once()
    kwargs = ssh_client.connect.call_args.kwargs
    assert kwargs["hostname"] == "web1"
    assert kwargs["port"] == 2222
    assert kwargs["username"] == "deploy"
    assert kwargs["timeout"] == 10.0


def test_box_establish_connection_is_idempotent(ssh_client):
    box = Box("web1")
    box.establish_connection(timeout="infinite")
    box.establish_connection()

    ssh_client.connect.assert_called_once()
    assert ssh_client.connect.call_args.kwargs["timeout"] is None
    assert ssh_client.connect.call_args.kwargs["username"] == "local-user"


def test_connect_applies_config(ssh_client, monkeypatch):
    monkeypatch.setattr(config, "SSH_VERIFY_HOST_KEY", False)
    monkeypatch.setattr(config, "SSH_KEY_PATH", "/keys/id_ed25519")
    monkeypatch.setattr(config, "SSH_KEY_PASSPHRASE", "secret")

    RemoteConnection("web1").ensure_tunnel()

    ssh_client.set_missing_host_key_policy.assert_called_once()
    ssh_client.load_system_host_keys.assert_not_called()
    kwargs = ssh_client.connect.call_args.kwargs
    assert kwargs["key_filename"] == "/keys/id_ed25519"
    assert kwargs["passphrase"] == "secret"


def test_connect_failure_raises_connection_unavailable(ssh_client):
    ssh_client.connect.side_effect = paramiko.AuthenticationException("denied")
    connection = RemoteConnection("web1")

    with pytest.raises(ConnectionUnavailable) as excinfo:
        connection.ensure_tunnel()
    assert excinfo.value.host == "web1"
    assert "denied" in excinfo.value.reason
    ssh_client.close.assert_called()


def test_dropped_transport_reconnects(ssh_client):
    connection = RemoteConnection("web1")
    connection.ensure_tunnel()
    ssh_client.get_transport.return_value.is_active.return_value = False
    connection.ensure_tunnel()

    assert ssh_client.connect.call_count == 2


def test_bash_feeds_command_on_stdin(ssh_client):
    ssh_client.channel.stdout = b"hi\n"
    connection = RemoteConnection("web1")

    assert connection.bash("echo hi") == "hi\n"
    ssh_client.exec_command.assert_called_once_with("bash")
    stdin = ssh_client.exec_command.return_value[0]
    stdin.write.assert_called_once_with("echo hi")
    stdin.channel.shutdown_write.assert_called_once()


def test_bash_as_user_uses_sudo(ssh_client):
    RemoteConnection("web1").bash("id", user="deploy")
    ssh_client.exec_command.assert_called_once_with("sudo -H -u deploy bash")


def test_sudo_user_is_shell_quoted(ssh_client):
    RemoteConnection("web1").bash("id", user="evil; rm -rf /")
    ssh_client.exec_command.assert_called_once_with("sudo -H -u 'evil; rm -rf /' bash")


def test_stderr_is_drained_alongside_stdout(ssh_client):
    noise = b"warning: something\n" * 2000
    ssh_client.channel.stderr = noise
    ssh_client.channel.stdout = b"x" * (BUFFER_SIZE * 3) + b"\n"
    ssh_client.channel.stderr_first = True

    output = RemoteConnection("web1").bash("noisy-job")
    assert len(noise) > BUFFER_SIZE
    assert output == "x" * (BUFFER_SIZE * 3) + "\n"


def test_non_utf8_remote_output_is_replaced(ssh_client):
    ssh_client.channel.stdout = b"ok\xff\n"
    assert RemoteConnection("web1").bash("printf 'ok\\377\\n'") == "ok\ufffd\n"


def test_ipv6_hosts(ssh_client):
    bracketed = Box("deploy@[2001:db8::1]:2222").connection
    assert (bracketed.user, bracketed.hostname, bracketed.port) == ("deploy", "2001:db8::1", 2222)

    bare = Box("fe80::1").connection
    assert (bare.user, bare.hostname, bare.port) == ("local-user", "fe80::1", config.SSH_PORT)
    assert Box("fe80::1").alive() is True
    assert ssh_client.connect.call_args.kwargs["hostname"] == "fe80::1"


def test_bash_non_zero_exit(ssh_client):
    ssh_client.channel.exit_status = 127
    ssh_client.channel.stderr = b"bash: nope: command not found\n"

    with pytest.raises(CommandExecutionFailed) as excinfo:
        RemoteConnection("web1").bash("nope")
    assert excinfo.value.exit_status == 127
    assert "command not found" in excinfo.value.stderr


def test_transport_error_during_exec(ssh_client):
    ssh_client.exec_command.side_effect = socket.error("connection reset")
    connection = RemoteConnection("web1")

    with pytest.raises(ConnectionUnavailable):
        connection.bash("uptime")
    assert connection.is_dead
    assert "connection reset" in connection.death_reason


def test_alive_is_false_instead_of_raising(ssh_client):
    ssh_client.connect.side_effect = socket.timeout("timed out")
    assert RemoteConnection("web1").alive() is False
    assert Box("web1").alive() is False


def test_alive_runs_echo_round_trip(ssh_client):
    ssh_client.channel.stdout = b"alive\n"
    assert RemoteConnection("web1").alive() is True
    stdin = ssh_client.exec_command.return_value[0]
    stdin.write.assert_called_once_with(ALIVE_CHECK)


def test_processes_over_ssh(ssh_client):
    ssh_client.channel.stdout = b"  1  0  0  100  0 /sbin/init\n"
    records = RemoteConnection("web1").processes()
    assert records == [{
        "pid": 1, "uid": 0, "parent_pid": 0, "mem": 100, "cpu": 0,
        "cmdline": "/sbin/init", "command": "init",
    }]


def test_close_then_reconnect(ssh_client):
    connection = RemoteConnection("web1")
    connection.ensure_tunnel()
    connection.close()
    assert connection.client is None

    connection.ensure_tunnel()
    assert ssh_client.connect.call_count == 2


def test_events_are_logged_when_log_dir_set(ssh_client, monkeypatch, tmp_path):
    monkeypatch.setattr(config, "LOG_DIR", str(tmp_path))
    connection = RemoteConnection("deploy@web1")
    connection.ensure_tunnel()
    connection.close()

    with open(tmp_path / "deploy_web1.log", encoding="utf-8") as handle:
        events = [json.loads(line)["event"] for line in handle]
    assert events == ["connected", "closed"]
