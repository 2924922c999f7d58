"""Fixtures for secret provider tests."""

import pytest

from cookiebridge.keystore.process import CommandResult


class FakeRunner:
    """Records commands and answers from a queue or a per-program table."""

    def __init__(self, responses=None, by_program=None) -> None:
        self.calls = []
        self._responses = list(responses or [])
        self._by_program = dict(by_program or {})

    def __call__(self, args, timeout=None) -> CommandResult:
        self.calls.append((list(args), timeout))
        if args[0] in self._by_program:
            return self._by_program[args[0]]
        if self._responses:
            return self._responses.pop(0)
        return CommandResult(1, "", "unexpected call")


@pytest.fixture
def fake_runner():
    """Factory for FakeRunner instances."""
    return FakeRunner
