import logging
import os
import shlex
import subprocess
import sys

log = logging.getLogger(__name__)

# Plain text viewer used when the platform has no default handler for a file.
TEXT_VIEWER_COMMANDS = {
    "win32": ["notepad.exe"],
    "darwin": ["open", "-t"],
}
DEFAULT_TEXT_VIEWER = ["xdg-open"]

# Overrides TEXT_VIEWER_COMMANDS, e.g. FINDGREP_TEXT_VIEWER="gedit --new-window"
TEXT_VIEWER_ENV = "FINDGREP_TEXT_VIEWER"

def text_viewer_command() -> list[str]:
    override = os.environ.get(TEXT_VIEWER_ENV, "").strip()
    if override:
        return shlex.split(override)

    return list(TEXT_VIEWER_COMMANDS.get(sys.platform, DEFAULT_TEXT_VIEWER))

def open_with_default_app(path: str) -> bool:
    # QtGui needs a display stack; only load it when a file is actually opened.
    from PyQt6.QtCore import QUrl
    from PyQt6.QtGui import QDesktopServices

    return QDesktopServices.openUrl(QUrl.fromLocalFile(path))

def open_file(path: str) -> bool:
    """
    Open `path` with the default application, or with a text viewer when
    that fails. Returns False when neither could be started.
    """
    if open_with_default_app(path):
        return True

    command = text_viewer_command() + [path]
    log.debug("No default handler for %s, running %s", path, command)
    try:
        subprocess.Popen(command)
    except OSError as e:
        log.warning("Could not open %s: %s", path, e)
        return False

    return True
