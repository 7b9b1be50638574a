"""Tests for the connection status panel."""

from unittest.mock import MagicMock, patch

from rich.console import Console

from chaussettes.core.connection import ConnectionManager
from chaussettes.core.models import Server
from chaussettes.core.utils.prompt import TunnelStatusUI, server_table


def render(renderable) -> str:
    console = Console(width=120, record=True)
    console.print(renderable)
    return console.export_text()


def make_manager(server=None):
    manager = MagicMock(spec=ConnectionManager)
    manager.current_connection = server
    manager.interface = "Wi-Fi"
    manager.proxy = MagicMock()
    manager.proxy.is_enabled.return_value = True
    return manager


def test_panel_shows_connection_details(server):
    text = render(TunnelStatusUI(make_manager(server))._generate_display())

    assert "127.0.0.1:7070" in text
    assert "Wi-Fi" in text
    assert "enabled" in text
    assert "test@example.com" in text


def test_proxy_state_is_cached(server):
    manager = make_manager(server)
    ui = TunnelStatusUI(manager)

    ui._generate_table()
    ui._generate_table()

    manager.proxy.is_enabled.assert_called_once()


def test_panel_when_idle():
    assert "Not connected" in render(TunnelStatusUI(make_manager())._generate_display())


def test_run_stops_when_tunnel_dies(server):
    manager = make_manager(server)
    manager.is_connected.side_effect = [True, False]

    with patch("chaussettes.core.utils.prompt.status_ui.time.sleep"):
        TunnelStatusUI(manager).run()

    assert manager.is_connected.call_count == 2


def test_server_table_marks_connected_row():
    one = Server(host="one.example.com", user="test", alias_name="one")
    two = Server(host="two.example.com", user="test")

    text = render(server_table([one, two], current=one))

    assert "● Connected" in text
    assert "○ Disconnected" in text
    assert "test@two.example.com" in text


def test_server_table_marks_dead_tunnel():
    one = Server(host="one.example.com", user="test", alias_name="one")

    text = render(server_table([one], current=one, tunnel_alive=False))

    assert "Tunnel down" in text
    assert "● Connected" not in text
