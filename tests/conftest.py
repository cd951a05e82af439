import os
import sys
from pathlib import Path
from typing import List

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from influx_output.model import Query, Result, Server  # noqa: E402


@pytest.fixture(autouse=True)
def restore_env():
    before = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(before)


class DummyInfluxDB:
    def __init__(self) -> None:
        self.batches: List = []
        self.databases: List[str] = []

    def write(self, batch) -> None:
        self.batches.append(batch)

    def create_database(self, name: str) -> None:
        self.databases.append(name)


@pytest.fixture
def dummy_influx():
    return DummyInfluxDB()


@pytest.fixture
def server():
    return Server(host="localhost", port="123")


@pytest.fixture
def query():
    return Query(obj="test")


@pytest.fixture
def result():
    return Result(2, "attributeName", "className", "objDomain", "keyAlias", "typeName", {"key": 1})
