"""Console stand-in for a modal OK alert, plus the jump to Location Services settings."""
import subprocess
import sys

SETTINGS_URL = "x-apple.systempreferences:com.apple.preference.security?Privacy_LocationServices"


class ConsoleAlertPresenter:
    def __init__(self, prompt=input, out=print):
        self.prompt = prompt
        self.out = out

    def present_alert(self, title, message, on_confirm=None):
        self.out("-" * 60)
        self.out(title)
        self.out(message)
        self.out("-" * 60)

        if on_confirm is None:
            return

        try:
            self.prompt("Press Enter for OK > ")
        except (EOFError, KeyboardInterrupt):
            self.out("")
            return
        on_confirm()


def open_location_settings():
    if sys.platform != "darwin":
        print(f"Open {SETTINGS_URL} to change location permissions.")
        return

    try:
        subprocess.run(["open", SETTINGS_URL], check=True)
    except (OSError, subprocess.CalledProcessError) as e:
        print(f"Could not open Settings: {e}")
