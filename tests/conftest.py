"""Shared fakes for the location permission tests."""

import pytest

from location_permission import AuthorizationStatus, LifecycleNotifier, LocationService, PermissionCoordinator


class FakeLocationService(LocationService):
    """Records every call the coordinator makes."""

    def __init__(self, status=AuthorizationStatus.NOT_DETERMINED, enabled=True):
        self.status = status
        self.enabled = enabled
        self.listener = None
        self.calls = []

    def set_listener(self, listener):
        self.listener = listener
        self.calls.append("set_listener")

    def request_when_in_use_authorization(self):
        self.calls.append("request")

    def start_updating_location(self):
        self.calls.append("start")

    def stop_updating_location(self):
        self.calls.append("stop")

    def location_services_enabled(self):
        return self.enabled

    def authorization_status(self):
        return self.status

    def count(self, name):
        return self.calls.count(name)


class RecordingPresenter:
    def __init__(self):
        self.alerts = []

    def present_alert(self, title, message, on_confirm=None):
        self.alerts.append((title, message, on_confirm))


class Harness:
    def __init__(self, status=AuthorizationStatus.NOT_DETERMINED, enabled=True):
        self.service = FakeLocationService(status, enabled)
        self.presenter = RecordingPresenter()
        self.settings_opened = 0
        self.lines = []
        self.fixes = []
        self.errors = []
        self.notifier = LifecycleNotifier()
        self.coordinator = PermissionCoordinator(
            self.service,
            self.presenter,
            self.open_settings,
            output=self.lines.append,
            fix_callback=self.fixes.append,
            error_callback=self.errors.append,
        )

    def open_settings(self):
        self.settings_opened += 1


@pytest.fixture
def harness():
    return Harness()


@pytest.fixture
def make_harness():
    return Harness
