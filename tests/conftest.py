"""Shared fixtures for unit and integration tests."""

import pytest

from tests.fakes import FakeApplicationRepository, FakePdfRenderer


@pytest.fixture
def repository() -> FakeApplicationRepository:
    return FakeApplicationRepository()


@pytest.fixture
def renderer() -> FakePdfRenderer:
    return FakePdfRenderer()
