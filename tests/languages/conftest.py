"""Shared fixtures for Rust syntax conversion tests."""

import pytest

from inlayhints.languages.rust import parse_rust


@pytest.fixture
def parse():
    """Parse a snippet wrapped in ``fn main() { ... }`` and return the tree."""

    def _parse(body: str, *, wrap: bool = True):
        return parse_rust(f"fn main() {{ {body} }}" if wrap else body)

    return _parse
