"""Pytest configuration and fixtures for test suite."""

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# Add src directory to path for imports
SRC_PATH = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_PATH))

from erchain.models import Record  # noqa: E402


@pytest.fixture
def make_record() -> Callable[..., Record]:
    """Factory for test records: ``make_record("a", name="Ada")``."""

    def _factory(rid: str = "rid_001", **fields: Any) -> Record:
        return Record(rid=rid, fields=fields)

    return _factory


@pytest.fixture
def people(make_record: Callable[..., Record]) -> list[Record]:
    """Small people table with two obvious duplicate pairs."""
    return [
        make_record("p1", name="Ada Lovelace", city="London"),
        make_record("p2", name="ada lovelace", city="London"),
        make_record("p3", name="Charles Babbage", city="London"),
        make_record("p4", name="Charles  Babbage", city="Teignmouth"),
        make_record("p5", name="Grace Hopper", city="New York"),
    ]
