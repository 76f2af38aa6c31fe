"""Location permission flow: watches authorization, fetches one fix, or tells the user what to fix."""
from collections import namedtuple
from contextlib import contextmanager
from enum import IntEnum

# --- Model ---

class AuthorizationStatus(IntEnum):
    # Raw values match CLAuthorizationStatus
    NOT_DETERMINED = 0
    RESTRICTED = 1
    DENIED = 2
    AUTHORIZED_ALWAYS = 3
    AUTHORIZED_WHEN_IN_USE = 4

    @classmethod
    def from_raw(cls, value):
        """Map a raw platform value to a member, or None if the value is unknown."""
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return None


AUTHORIZED = (AuthorizationStatus.AUTHORIZED_ALWAYS, AuthorizationStatus.AUTHORIZED_WHEN_IN_USE)

Coordinate = namedtuple("Coordinate", ["latitude", "longitude"])

Alert = namedtuple("Alert", ["title", "message"])

SERVICES_OFF_ALERT = Alert(
    "Turn on Location Services",
    "You can turn it on in Settings > Privacy > Location Services.",
)
PERMISSION_DENIED_ALERT = Alert(
    "Turn on Location Services for this app",
    "Press OK to open Settings.",
)
RESTRICTED_ALERT = Alert(
    "Location Services are not allowed",
    "Some restriction is in place.",
)

# Desired accuracy tiers in meters (kCLLocationAccuracy* values)
ACCURACY_METERS = {
    "best": -1.0,
    "ten_meters": 10.0,
    "hundred_meters": 100.0,
    "kilometer": 1000.0,
    "three_kilometers": 3000.0,
}

WILL_ENTER_FOREGROUND = "willEnterForeground"

# kCLErrorDenied: access was refused and updates have ended
ERROR_DENIED = 1


class LocationError(Exception):
    def __init__(self, domain, code=0):
        super().__init__(domain)
        self.domain = domain
        self.code = code

    def __str__(self):
        return str(self.domain)


# --- Interfaces ---

class LocationListener:
    """Receives events from a LocationService."""

    def on_authorization_changed(self, status):
        pass

    def on_location_update(self, coordinates):
        pass

    def on_error(self, error):
        pass


class LocationService:
    """What the coordinator needs from the platform location manager."""

    desired_accuracy = ACCURACY_METERS["best"]
    distance_filter = 0.0

    def set_listener(self, listener):
        raise NotImplementedError

    def request_when_in_use_authorization(self):
        raise NotImplementedError

    def start_updating_location(self):
        raise NotImplementedError

    def stop_updating_location(self):
        raise NotImplementedError

    def location_services_enabled(self):
        raise NotImplementedError

    def authorization_status(self):
        raise NotImplementedError


class LifecycleNotifier:
    """In-process notification center keyed by (callback, event name)."""

    def __init__(self):
        self._observers = {}

    def add_observer(self, callback, name):
        observers = self._observers.setdefault(name, [])
        if callback not in observers:
            observers.append(callback)

    def remove_observer(self, callback, name):
        observers = self._observers.get(name, [])
        if callback in observers:
            observers.remove(callback)

    def observers(self, name):
        return list(self._observers.get(name, []))

    def post(self, name):
        # Snapshot so an observer may unsubscribe while being notified
        for callback in self.observers(name):
            callback()


# --- Coordinator ---

class PermissionCoordinator(LocationListener):
    """
    Drives the permission screen.

    Every authorization change and every return to the foreground goes through
    evaluate(), which either starts location updates, asks for permission, or
    presents one of the three alerts. Updates stop after the first fix.
    """

    def __init__(self, service, presenter, open_settings, output=print,
                 desired_accuracy="kilometer", distance_filter=5.0,
                 fix_callback=None, error_callback=None):
        if desired_accuracy not in ACCURACY_METERS:
            raise ValueError(f"Unknown accuracy tier: {desired_accuracy!r}")

        self.service = service
        self.presenter = presenter
        self.open_settings = open_settings
        self.output = output
        self.fix_callback = fix_callback
        self.error_callback = error_callback
        self.receiving = False

        service.desired_accuracy = ACCURACY_METERS[desired_accuracy]
        service.distance_filter = float(distance_filter)
        service.set_listener(self)

    def load(self):
        """First display: ask for when-in-use permission (no-op once decided)."""
        self.service.request_when_in_use_authorization()
        self.service.set_listener(self)

    @contextmanager
    def visible(self, notifier):
        """Hold the foreground subscription for exactly as long as the screen is visible."""
        notifier.add_observer(self.on_foreground, WILL_ENTER_FOREGROUND)
        try:
            yield self
        finally:
            notifier.remove_observer(self.on_foreground, WILL_ENTER_FOREGROUND)

    # --- Entry points ---

    def on_foreground(self):
        self.evaluate(self.service.authorization_status(),
                      self.service.location_services_enabled())

    def on_authorization_changed(self, status):
        self.evaluate(status, self.service.location_services_enabled())

    def evaluate(self, status, service_enabled):
        if not service_enabled:
            self.stop()
            self._present(SERVICES_OFF_ALERT)
            return

        if status in AUTHORIZED:
            self._start_updates()
        elif status == AuthorizationStatus.NOT_DETERMINED:
            self.stop()
            # Answer arrives later as another on_authorization_changed
            self.service.request_when_in_use_authorization()
        elif status == AuthorizationStatus.DENIED:
            self.stop()
            self._present(PERMISSION_DENIED_ALERT, on_confirm=self.open_settings)
        elif status == AuthorizationStatus.RESTRICTED:
            self.stop()
            self._present(RESTRICTED_ALERT)

    # --- Location callbacks ---

    def on_location_update(self, coordinates):
        if not coordinates:
            return
        latest = coordinates[-1]

        # One fix is enough
        self.receiving = False
        self.service.stop_updating_location()

        self.output(f"lat: {latest.latitude}, lng: {latest.longitude}")
        self._notify(self.fix_callback, latest)

    def on_error(self, error):
        # Reported only; no retry
        if getattr(error, "code", None) == ERROR_DENIED:
            # The manager has already stopped itself
            self.stop()
        self.output(str(getattr(error, "domain", error)))
        self._notify(self.error_callback, error)

    def stop(self):
        """Drop an outstanding update subscription, e.g. when the screen goes away."""
        if self.receiving:
            self.receiving = False
            self.service.stop_updating_location()

    # --- Helpers ---

    def _start_updates(self):
        if self.receiving:
            return
        self.receiving = True
        self.service.start_updating_location()

    def _notify(self, callback, value):
        if callback is None:
            return
        try:
            callback(value)
        except Exception as e:
            self.output(f"Callback failed: {e}")

    def _present(self, alert, on_confirm=None):
        self.presenter.present_alert(alert.title, alert.message, on_confirm)
