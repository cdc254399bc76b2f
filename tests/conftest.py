"""Shared fixtures."""

import pytest

from tests.helpers import FakeClock, RecordingSleep


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
