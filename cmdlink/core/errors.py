# cmdlink/core/errors.py
from __future__ import annotations


class CmdLinkError(Exception):
    """
    Base class for all expected operational errors in cmdlink.
    """

    #: Stable machine-readable identifier (for CLI exit mapping, logs, etc.)
    code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Configuration / wiring errors (design-time, no I/O involved)
# ---------------------------------------------------------------------------

class ConfigError(CmdLinkError):
    """
    Link configuration is invalid.

    Examples:
      - transmit interval not shorter than the device watchdog timeout
      - non-positive timeout or settle delay
    """
    code = "config_error"


class FrameEncodeError(CmdLinkError):
    """
    A (name, value) pair cannot be represented on the wire.

    Examples:
      - empty or too long command name
      - name containing characters outside [A-Za-z0-9_]
      - value outside the signed 16-bit range
    """
    code = "frame_encode_error"


class UnknownCommandError(CmdLinkError):
    """
    A command name was used that was never registered.

    Raised for host-side updates only; unknown names arriving on the wire
    are ignored by the device.
    """
    code = "unknown_command"


class DuplicateCommandError(CmdLinkError):
    """The same command name was registered twice."""
    code = "duplicate_command"


class RegistrationClosedError(CmdLinkError):
    """Registration attempted after the registry was sealed (loop started / link opened)."""
    code = "registration_closed"


# ---------------------------------------------------------------------------
# Connection lifecycle errors
# ---------------------------------------------------------------------------

class DeviceConnectError(CmdLinkError):
    """
    Transport could not be opened.

    Examples:
      - port not found
      - permission denied
      - device already in use
    """
    code = "device_connect_error"


class DeviceDisconnectedError(CmdLinkError):
    """
    Device was connected but the stream failed.

    Examples:
      - USB cable removed
      - OS-level I/O error during write
    """
    code = "device_disconnected"


class LinkClosedError(CmdLinkError):
    """Write attempted on a connection that is not open."""
    code = "link_closed"
