"""Pytest configuration for the Lox interpreter test suite."""

import io
import sys
from pathlib import Path

import pytest

# Modules live at the repository root
sys.path.insert(0, str(Path(__file__).parent.parent))

from lox import Lox, Success  # noqa: E402
from source_map import reset_source_map  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_source_map():
    reset_source_map()
    yield


class Session:
    """A Lox instance whose print output is captured."""

    def __init__(self, max_call_depth=None):
        self.output = io.StringIO()
        if max_call_depth is None:
            self.lox = Lox(output=self.output)
        else:
            self.lox = Lox(output=self.output, max_call_depth=max_call_depth)

    def run(self, source: str):
        return self.lox.run(source, "<test>")

    def lines(self) -> list[str]:
        return self.output.getvalue().splitlines()


@pytest.fixture
def session():
    return Session()


@pytest.fixture
def run_lines():
    """Callable running source in a fresh session; returns printed lines and
    fails the test on any error."""

    def run(source: str) -> list[str]:
        s = Session()
        result = s.run(source)
        assert isinstance(result, Success), result
        return s.lines()

    return run


@pytest.fixture
def make_session():
    """Factory for sessions with non-default settings."""
    return Session
