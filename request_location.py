#!/usr/bin/env python3
import objc
from objc import NSObject

import sys
import time
from contextlib import contextmanager

import convert_logs
from alert import ConsoleAlertPresenter, SETTINGS_URL, open_location_settings
from fix_log import FixLog
from location_config import load_config, log_dir_path
from location_permission import (
    AuthorizationStatus,
    Coordinate,
    LifecycleNotifier,
    LocationError,
    LocationService,
    PermissionCoordinator,
    WILL_ENTER_FOREGROUND,
)

# Load Foundation framework
try:
    objc.loadBundle('Foundation', bundle_path='/System/Library/Frameworks/Foundation.framework', module_globals=globals())
except ImportError:
    print("Failed to load Foundation framework.")
    sys.exit(1)

# Load CoreLocation framework
try:
    objc.loadBundle('CoreLocation', bundle_path='/System/Library/Frameworks/CoreLocation.framework', module_globals=globals())
except ImportError:
    print("Failed to load CoreLocation framework.")
    sys.exit(1)

# Load AppKit framework (NSWorkspace wake notifications)
try:
    objc.loadBundle('AppKit', bundle_path='/System/Library/Frameworks/AppKit.framework', module_globals=globals())
except ImportError:
    print("Failed to load AppKit framework.")
    sys.exit(1)

# Notification names are NSString constants equal to their own names
WORKSPACE_DID_WAKE = "NSWorkspaceDidWakeNotification"


class LocationDelegate(NSObject):
    def initWithListener_(self, listener):
        self = objc.super(LocationDelegate, self).init()
        if self is None:
            return None
        self.listener = listener
        return self

    # New Delegate (macOS 11+)
    def locationManagerDidChangeAuthorization_(self, manager):
        status = AuthorizationStatus.from_raw(manager.authorizationStatus())
        self.listener.on_authorization_changed(status)

    # Old Delegate, only used where the new one is not available
    def locationManager_didChangeAuthorizationStatus_(self, manager, status):
        if manager.respondsToSelector_("authorizationStatus"):
            return
        self.listener.on_authorization_changed(AuthorizationStatus.from_raw(status))

    def locationManager_didUpdateLocations_(self, manager, locations):
        locations = list(locations or [])
        if not locations and manager.location() is not None:
            locations = [manager.location()]

        coordinates = []
        for location in locations:
            coord = location.coordinate()
            coordinates.append(Coordinate(float(coord.latitude), float(coord.longitude)))
        self.listener.on_location_update(coordinates)

    def locationManager_didFailWithError_(self, manager, error):
        self.listener.on_error(LocationError(str(error.domain()), int(error.code())))


class CoreLocationService(LocationService):
    """LocationService backed by a CLLocationManager."""

    def __init__(self):
        self.manager = CLLocationManager.alloc().init()  # noqa: F821
        # The manager holds its delegate weakly
        self._delegate = None

    @property
    def desired_accuracy(self):
        return self.manager.desiredAccuracy()

    @desired_accuracy.setter
    def desired_accuracy(self, meters):
        self.manager.setDesiredAccuracy_(meters)

    @property
    def distance_filter(self):
        return self.manager.distanceFilter()

    @distance_filter.setter
    def distance_filter(self, meters):
        self.manager.setDistanceFilter_(meters)

    def set_listener(self, listener):
        if self._delegate is None or self._delegate.listener is not listener:
            self._delegate = LocationDelegate.alloc().initWithListener_(listener)
        self.manager.setDelegate_(self._delegate)

    def request_when_in_use_authorization(self):
        self.manager.requestWhenInUseAuthorization()

    def start_updating_location(self):
        self.manager.startUpdatingLocation()

    def stop_updating_location(self):
        self.manager.stopUpdatingLocation()

    def location_services_enabled(self):
        return bool(CLLocationManager.locationServicesEnabled())  # noqa: F821

    def authorization_status(self):
        if self.manager.respondsToSelector_("authorizationStatus"):
            raw = self.manager.authorizationStatus()
        else:
            raw = CLLocationManager.authorizationStatus()  # noqa: F821
        return AuthorizationStatus.from_raw(raw)


class ForegroundObserver(NSObject):
    def initWithNotifier_(self, notifier):
        self = objc.super(ForegroundObserver, self).init()
        if self is None:
            return None
        self.notifier = notifier
        return self

    def workspaceDidWake_(self, notification):
        self.notifier.post(WILL_ENTER_FOREGROUND)


@contextmanager
def workspace_wake_events(notifier):
    """Forward system wake notifications to notifier as WILL_ENTER_FOREGROUND."""
    center = NSWorkspace.sharedWorkspace().notificationCenter()  # noqa: F821
    observer = ForegroundObserver.alloc().initWithNotifier_(notifier)
    center.addObserver_selector_name_object_(observer, "workspaceDidWake:", WORKSPACE_DID_WAKE, None)
    try:
        yield observer
    finally:
        center.removeObserver_name_object_(observer, WORKSPACE_DID_WAKE, None)


def print_settings_url():
    print(f"Open {SETTINGS_URL} to change location permissions.")


def run_loop_until(done, timeout_s):
    run_loop = NSRunLoop.currentRunLoop()  # noqa: F821
    start_time = time.time()
    while not done() and time.time() - start_time < timeout_s:
        # Run for small slices
        run_loop.runUntilDate_(NSDate.dateWithTimeIntervalSinceNow_(0.1))  # noqa: F821
    return done()


def main():
    config = load_config()
    print(f"--- macOS Location Request v{config['script_version']} ---")

    fixes = []

    # Callbacks only fire from the run loop, after fix_log exists
    def on_fix(coordinate):
        fix_log.record_fix(coordinate)
        fixes.append(coordinate)

    def on_error(error):
        fix_log.record_error(error)

    coordinator = PermissionCoordinator(
        CoreLocationService(),
        ConsoleAlertPresenter(),
        open_location_settings if config.get("open_settings_on_ok", True) else print_settings_url,
        desired_accuracy=config["desired_accuracy"],
        distance_filter=config["distance_filter_m"],
        fix_callback=on_fix,
        error_callback=on_error,
    )

    timeout_s = config["timeout_s"]
    notifier = LifecycleNotifier()
    fix_log = FixLog(log_dir_path(config))
    try:
        print("Requesting Authorization... (Look for a popup!)")
        coordinator.load()

        print(f"Waiting for a location fix (up to {timeout_s}s)...")
        with workspace_wake_events(notifier), coordinator.visible(notifier):
            got_fix = run_loop_until(lambda: bool(fixes), timeout_s)
    except KeyboardInterrupt:
        got_fix = bool(fixes)
        print("\n--- Stopped ---")
    finally:
        coordinator.stop()
        log_path = fix_log.close()

    if not got_fix:
        print("Timed out.")
    print(f"Log saved to: {log_path}")

    if config.get("export_logs", False):
        print("Exporting logs...")
        convert_logs.convert_log(log_path)

    return 0 if got_fix else 1


if __name__ == "__main__":
    sys.exit(main())
