"""Tests for server records."""

import os

import pytest

from chaussettes.core.models import DEFAULT_KEY_PATH, Server, is_valid_port


def test_defaults():
    server = Server(host="example.com", user="test")

    assert server.ssh_port == 22
    assert server.socks_port == 7070
    assert server.key_path == os.path.expanduser("~/.ssh/id_rsa")
    assert server.key_path == DEFAULT_KEY_PATH
    assert server.alias_name == ""
    assert server.id


def test_ids_are_unique():
    assert Server(host="a", user="b").id != Server(host="a", user="b").id


def test_id_cannot_be_reassigned():
    server = Server(host="example.com", user="test")
    with pytest.raises(AttributeError):
        server.id = "other"


def test_valid_record_has_no_errors():
    server = Server(host="example.com", user="test")
    assert server.is_valid()
    assert server.errors() == []


def test_missing_host_and_user():
    errors = Server().errors()
    assert "Host is required" in errors
    assert "User is required" in errors


@pytest.mark.parametrize(
    "field,value,message",
    [
        ("ssh_port", 99_999, "SSH port must be between 1 and 65535"),
        ("ssh_port", 0, "SSH port must be between 1 and 65535"),
        ("socks_port", 0, "SOCKS port must be between 1 and 65535"),
        ("socks_port", "7070", "SOCKS port must be between 1 and 65535"),
    ],
)
def test_invalid_ports(field, value, message):
    server = Server(host="example.com", user="test", **{field: value})
    assert not server.is_valid()
    assert server.errors() == [message]


def test_validation_does_not_mutate():
    server = Server(host="", user="test", ssh_port=0)
    before = server.to_dict()
    server.errors()
    server.is_valid()
    assert server.to_dict() == before


def test_bool_is_not_a_port():
    assert not is_valid_port(True)
    assert is_valid_port(1)
    assert is_valid_port(65535)


def test_display_name():
    assert Server(host="example.com", user="test", alias_name="My Server").display_name == "My Server"
    assert Server(host="example.com", user="test").display_name == "test@example.com"


def test_dict_form_carries_every_field():
    server = Server(host="example.com", user="test", alias_name="Test Server")
    data = server.to_dict()

    assert set(data) == {"id", "alias_name", "host", "user", "ssh_port", "socks_port", "key_path"}
    assert Server.from_dict(data) == server


def test_from_dict_accepts_legacy_keys():
    server = Server.from_dict(
        {"id": "abc123", "host": "example.com", "user": "admin", "port": 2222, "alias": "Old", "extra": 1}
    )

    assert server.id == "abc123"
    assert server.ssh_port == 2222
    assert server.alias_name == "Old"


def test_from_dict_generates_missing_id():
    assert Server.from_dict({"host": "example.com", "user": "test", "id": ""}).id
