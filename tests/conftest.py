"""Shared fakes for the inhibitor tests."""

import pytest

from caffeine8.inhibitors import AcquireResult, InhibitorSet
from caffeine8.status import StatusPublisher


class FakeScreenSaver:
    """Stands in for ScreenSaverClient, counting every call."""

    def __init__(self, error=None):
        self.error = error
        self.cookie = 0
        self.acquire_calls = 0
        self.release_calls = 0
        self.close_calls = 0

    def acquire(self):
        self.acquire_calls += 1
        if self.error:
            return AcquireResult(error=self.error)
        self.cookie = 42
        return AcquireResult(grant=self.cookie)

    def release(self):
        self.release_calls += 1
        self.cookie = 0

    def close(self):
        self.close_calls += 1


class FakePower:
    """Stands in for Login1Client; ``errors`` maps a kind to its failure."""

    def __init__(self, errors=None):
        self.errors = errors or {}
        self.held = {}
        self.acquire_calls = []
        self.release_calls = []
        self.close_calls = 0

    def acquire(self, what):
        self.acquire_calls.append(what)
        if what in self.errors:
            return AcquireResult(error=self.errors[what])
        self.held[what] = 100 + len(self.acquire_calls)
        return AcquireResult(grant=self.held[what])

    def release(self, what):
        self.release_calls.append(what)
        self.held.pop(what, None)

    def close(self):
        self.close_calls += 1


@pytest.fixture
def status_file(tmp_path):
    return tmp_path / "caffeine8.status"


@pytest.fixture
def make_inhibitors(status_file):
    def make(screensaver_error=None, power_errors=None, debug=False):
        screensaver = FakeScreenSaver(error=screensaver_error)
        power = FakePower(errors=power_errors)
        publisher = StatusPublisher(status_file, debug=debug)
        return InhibitorSet(screensaver, power, publisher), screensaver, power

    return make
