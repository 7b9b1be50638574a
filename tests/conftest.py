"""Shared fixtures for the chaussettes test suite."""

from unittest.mock import MagicMock

import pytest

from chaussettes.core.exceptions import CommandError
from chaussettes.core.models import Server


class FakeRunner:
    """Stand-in for ``run_command`` answering from a canned table.

    Keys are command tuples; a value that is an exception instance is raised.
    Commands missing from the table fail like a non-zero exit.
    """

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    def __call__(self, args):
        self.calls.append(list(args))
        response = self.responses.get(tuple(args))
        if response is None:
            raise CommandError(list(args), "exit status 1")
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def server():
    return Server(
        host="example.com",
        user="test",
        ssh_port=22,
        socks_port=7070,
        key_path="/nonexistent/id_rsa",
    )


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def fake_process():
    """A Popen double that is running until told otherwise."""
    process = MagicMock()
    process.pid = 4242
    process.returncode = None
    process.poll.return_value = None
    return process


@pytest.fixture
def make_runner():
    """Build a ``FakeRunner`` from a ``{command tuple: output}`` table."""
    return FakeRunner
