# region Docstring
"""
clipservices.clipboard
Access to the operating system clipboard.
Overview:
- ClipboardBackend is the seam the capture poller reads through. Tests inject a
    fake; the application uses SystemClipboard.
- SystemClipboard reads images with Pillow's ImageGrab.grabclipboard() and text
    with pyperclip. Writing an image back shells out to the platform clipboard tool.
- read_image()/read_text() wrap every backend call in a ClipboardRead result so
    callers never see backend exceptions.
"""
# endregion
# region Imports
import os
import subprocess
import sys
from pathlib import Path
from typing import Optional, Protocol

import pyperclip
from PIL import Image, ImageGrab

from .errors import ClipboardUnavailableError
from .models import ClipboardRead


# endregion
# region Backends
class ClipboardBackend(Protocol):
    def read_image(self) -> Optional[Image.Image]: ...

    def read_text(self) -> Optional[str]: ...

    def write_text(self, text: str) -> None: ...

    def write_image(self, path: Path) -> None: ...


class SystemClipboard:
    """Clipboard of the running desktop session."""

    def read_image(self) -> Optional[Image.Image]:
        data = ImageGrab.grabclipboard()
        # Windows returns a list of paths when files are copied
        if isinstance(data, Image.Image):
            return data
        return None

    def read_text(self) -> Optional[str]:
        return pyperclip.paste()

    def write_text(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise ClipboardUnavailableError(str(e)) from e

    def write_image(self, path: Path) -> None:
        """
        Place the PNG at ``path`` on the clipboard.

        Raises:
            ClipboardUnavailableError: If no clipboard tool is available or it fails.
        """
        path = path.resolve()
        if sys.platform == "win32":
            script = (
                "Add-Type -AssemblyName System.Windows.Forms;"
                "Add-Type -AssemblyName System.Drawing;"
                f"[Windows.Forms.Clipboard]::SetImage([Drawing.Image]::FromFile('{path}'))"
            )
            cmd = ["powershell", "-NoProfile", "-STA", "-Command", script]
        elif sys.platform == "darwin":
            script = f'set the clipboard to (read (POSIX file "{path}") as «class PNGf»)'
            cmd = ["osascript", "-e", script]
        elif os.getenv("WAYLAND_DISPLAY"):
            cmd = ["wl-copy", "--type", "image/png"]
        else:
            cmd = ["xclip", "-selection", "clipboard", "-t", "image/png", "-i", str(path)]

        try:
            if cmd[0] == "wl-copy":
                with path.open("rb") as f:
                    subprocess.run(cmd, stdin=f, check=True, capture_output=True)
            else:
                subprocess.run(cmd, check=True, capture_output=True)
        except (OSError, subprocess.CalledProcessError) as e:
            raise ClipboardUnavailableError(f"Cannot copy image {path}: {e}") from e


# endregion
# region Safe Reads
def read_image(backend: ClipboardBackend) -> ClipboardRead:
    """Read an image from ``backend``; empty (0x0) images count as no image."""
    try:
        image = backend.read_image()
    except Exception as e:
        return ClipboardRead.failed(e)
    if image is not None and (image.width == 0 or image.height == 0):
        image = None
    return ClipboardRead(image=image)


def read_text(backend: ClipboardBackend) -> ClipboardRead:
    """Read text from ``backend``."""
    try:
        text = backend.read_text()
    except Exception as e:
        return ClipboardRead.failed(e)
    return ClipboardRead(text=text or None)


# endregion
__all__ = [
    "ClipboardBackend",
    "SystemClipboard",
    "read_image",
    "read_text",
]
