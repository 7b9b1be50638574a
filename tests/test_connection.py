"""Tests for the connection manager."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from chaussettes.core.connection import ConnectionManager, ConnectionResult
from chaussettes.core.models import Server
from chaussettes.core.network import InterfaceLocator
from chaussettes.core.proxy import ProxyController
from chaussettes.core.tunnel import TunnelSupervisor


@pytest.fixture
def supervisor():
    mock = MagicMock(spec=TunnelSupervisor)
    mock.connect.return_value = True
    mock.disconnect.return_value = True
    mock.is_connected.return_value = True
    return mock


@pytest.fixture
def proxy():
    mock = MagicMock(spec=ProxyController)
    mock.interface = "Wi-Fi"
    mock.enable.return_value = True
    mock.disable.return_value = True
    return mock


@pytest.fixture
def manager(supervisor, proxy):
    return ConnectionManager(supervisor=supervisor, proxy=proxy)


def test_interface_detected_once_when_no_controller_given(supervisor):
    locator = MagicMock(spec=InterfaceLocator)
    locator.detect.return_value = "LAN"

    manager = ConnectionManager(supervisor=supervisor, locator=locator)

    assert manager.interface == "LAN"
    locator.detect.assert_called_once()


def test_connect_success(manager, supervisor, proxy, server):
    result = manager.connect(server)

    assert result == ConnectionResult(True, "Connected to test@example.com")
    supervisor.connect.assert_called_once_with(server)
    proxy.enable.assert_called_once_with(7070)
    assert manager.current_connection is server
    assert manager.is_connected() is True


def test_tunnel_started_before_proxy(manager, supervisor, proxy, server):
    order = []
    supervisor.connect.side_effect = lambda s: order.append("tunnel") or True
    proxy.enable.side_effect = lambda port: order.append("proxy") or True

    manager.connect(server)

    assert order == ["tunnel", "proxy"]


def test_invalid_record_spawns_nothing(manager, supervisor, proxy):
    result = manager.connect(Server(host="", user="test"))

    assert result.success is False
    assert "Host is required" in result.message
    supervisor.connect.assert_not_called()
    proxy.enable.assert_not_called()
    assert manager.current_connection is None


def test_tunnel_failure_leaves_proxy_alone(manager, supervisor, proxy, server):
    supervisor.connect.return_value = False

    result = manager.connect(server)

    assert result == ConnectionResult(False, "Failed to connect to test@example.com")
    proxy.enable.assert_not_called()
    assert manager.current_connection is None


def test_proxy_failure_still_marks_connection_current(manager, proxy, server):
    proxy.enable.return_value = False

    result = manager.connect(server)

    assert result.success is True
    assert "system proxy not applied" in result.message
    assert manager.current_connection is server


def test_connect_while_connected_is_rejected(manager, supervisor, server):
    manager.connect(server)
    other = Server(host="other.com", user="test", alias_name="Other")

    result = manager.connect(other)

    assert result == ConnectionResult(False, "Already connected to test@example.com")
    assert supervisor.connect.call_count == 1
    assert manager.current_connection is server


def test_disconnect_when_idle_is_noop(manager, supervisor, proxy):
    result = manager.disconnect()

    assert result == ConnectionResult(False, "Not connected")
    assert not result
    supervisor.disconnect.assert_not_called()
    proxy.disable.assert_not_called()


def test_disconnect(manager, supervisor, proxy, server):
    order = []
    supervisor.disconnect.side_effect = lambda: order.append("tunnel") or True
    proxy.disable.side_effect = lambda: order.append("proxy") or True
    manager.connect(server)

    result = manager.disconnect()

    assert result == ConnectionResult(True, "Disconnected")
    assert order == ["tunnel", "proxy"]
    assert manager.current_connection is None


def test_disconnect_is_best_effort(manager, supervisor, proxy, server):
    manager.connect(server)
    supervisor.disconnect.side_effect = RuntimeError("boom")
    proxy.disable.return_value = False

    result = manager.disconnect()

    assert result.success is True
    proxy.disable.assert_called_once()
    assert manager.current_connection is None


def test_interrupted_disconnect_still_disables_proxy(manager, supervisor, proxy, server):
    manager.connect(server)
    supervisor.disconnect.side_effect = KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        manager.disconnect()

    proxy.disable.assert_called_once()
    assert manager.current_connection is None


def test_is_connected_delegates_to_supervisor(manager, supervisor, server):
    manager.connect(server)
    supervisor.is_connected.return_value = False

    assert manager.is_connected() is False
    assert manager.current_connection is server


def test_full_cycle_with_forced_termination(make_runner, fake_process, server):
    runner = make_runner(
        {
            ("networksetup", "-setsocksfirewallproxy", "LAN", "127.0.0.1", "7070"): "",
            ("networksetup", "-setsocksfirewallproxystate", "LAN", "on"): "",
            ("networksetup", "-setsocksfirewallproxystate", "LAN", "off"): "",
        }
    )
    manager = ConnectionManager(
        supervisor=TunnelSupervisor(grace_period=0),
        proxy=ProxyController("LAN", runner),
    )
    fake_process.wait.side_effect = [subprocess.TimeoutExpired("ssh", 5), 0]

    with (
        patch("chaussettes.core.tunnel.subprocess.Popen", return_value=fake_process),
        patch("chaussettes.core.tunnel.process_alive", return_value=True),
    ):
        assert manager.connect(server).success is True
        assert manager.is_connected() is True
        assert manager.current_connection is server
        assert manager.supervisor.pid == 4242

        assert manager.disconnect().success is True

    fake_process.kill.assert_called_once()
    assert manager.is_connected() is False
    assert manager.current_connection is None
    assert runner.calls[-1] == ["networksetup", "-setsocksfirewallproxystate", "LAN", "off"]
