"""Shared fixtures for pipeline tests."""

import pytest

from fakes import FakeDownloader, FakeStore


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def downloader():
    return FakeDownloader()
