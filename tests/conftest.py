import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).parent.parent))

from app import app
from lazy import LazyStream


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def numbers():
    """The 1..10 source used throughout the showcase"""
    return LazyStream(range(1, 11))


@pytest.fixture
def names():
    return LazyStream(["John", "Jane", "Jack", "Doe"])


@pytest.fixture
def text_file(tmp_path):
    path = tmp_path / "example.txt"
    path.write_text(
        "Java 8 introduced streams\n"
        "Python has generators\n"
        "Lambdas arrived in Java too\n",
        encoding="utf-8"
    )
    return path
