"""
Configuration file for pytest test suite.
"""

import os
import sys
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

# Add the project root to the path so we can import the app
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from main import app


@pytest.fixture(scope="module")
def test_client() -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def marp_document() -> str:
    return (
        "---\n"
        "marp: true\n"
        "paginate: true\n"
        "---\n"
        "<style>\n"
        "section { font-size: 24px; }\n"
        "</style>\n"
        "\n"
        "# Deck Title\n"
        "Intro line\n"
        "\n"
        "---\n"
        "\n"
        "## Agenda\n"
        "- one\n"
        "- two\n"
        "\n"
        "---\n"
        "\n"
        "Plain slide\n"
        "with text\n"
    )
