# cmdlink/device/registry.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from cmdlink.core.errors import (
    DuplicateCommandError,
    FrameEncodeError,
    RegistrationClosedError,
    UnknownCommandError,
)
from cmdlink.protocol import Frame, FrameKind
from cmdlink.protocol.defs import NAME_MAX_LEN, is_valid_name

from .handlers import InitHandler, InitLike, UpdateHandler, UpdateLike, as_init_handler, as_update_handler


@dataclass
class CommandEntry:
    name: str
    init: InitHandler
    update: Optional[UpdateHandler] = None
    init_value: Optional[int] = None
    current_value: Optional[int] = None


class CommandRegistry:
    """
    Device-side command table: name -> (init handler, update handler).

    Built once before the device loop starts and sealed by start(). Every
    handler runs synchronously on the loop thread and must not block.

    Hooks:
      - emit(frame): called with an INIT frame per command at start() and an
        UPDATE frame whenever an update handler accepts a value.
      - on_dispatch(): called after every successful dispatch (watchdog reset).
    """

    def __init__(
        self,
        *,
        emit: Optional[Callable[[Frame], None]] = None,
        on_dispatch: Optional[Callable[[], None]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._entries: Dict[str, CommandEntry] = {}
        self._sealed = False
        self.emit = emit
        self.on_dispatch = on_dispatch
        self._log = logger or logging.getLogger(__name__)

    # ---------------- Registration ----------------
    def register_init(self, name: str, handler: InitLike) -> None:
        self._check_open(name)
        if not is_valid_name(name):
            raise FrameEncodeError(
                f"Invalid command name {name!r}.",
                hint=f"Use 1..{NAME_MAX_LEN} characters from [A-Za-z0-9_].",
                details={"name": name},
            )
        if name in self._entries:
            raise DuplicateCommandError(
                f"Command '{name}' already has an init handler.",
                details={"name": name},
            )
        self._entries[name] = CommandEntry(name=name, init=as_init_handler(handler))

    def register_update(self, name: str, handler: UpdateLike) -> None:
        self._check_open(name)
        entry = self._entries.get(name)
        if entry is None:
            raise UnknownCommandError(
                f"Command '{name}' has no init handler.",
                hint="Call register_init() before register_update().",
                details={"name": name},
            )
        if entry.update is not None:
            raise DuplicateCommandError(
                f"Command '{name}' already has an update handler.",
                details={"name": name},
            )
        entry.update = as_update_handler(handler)

    def register(self, name: str, init: InitLike, update: Optional[UpdateLike] = None) -> None:
        """Shorthand for register_init() followed by register_update()."""
        self.register_init(name, init)
        if update is not None:
            self.register_update(name, update)

    def _check_open(self, name: str) -> None:
        if self._sealed:
            raise RegistrationClosedError(
                f"Cannot register '{name}': the device loop has already started.",
                details={"name": name},
            )

    # ---------------- Lifecycle ----------------
    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        self._sealed = True

    def start(self) -> None:
        """Seal the registry, run every init handler in order and announce init values."""
        if self._sealed:
            return
        self.seal()

        for entry in self._entries.values():
            value = entry.init()
            entry.init_value = value
            entry.current_value = value
            self._emit(Frame(entry.name, value, FrameKind.INIT))

        self._log.info("REGISTRY_STARTED commands=%s", ",".join(self._entries))

    # ---------------- Runtime ----------------
    def dispatch(self, name: str, value: int) -> bool:
        """
        Deliver a value to the command's update handler.

        Returns True when the handler accepted it. Unknown names, commands
        without an update handler and failing handlers are ignored (False).
        """
        entry = self._entries.get(name)
        if entry is None or entry.update is None:
            self._log.debug("DISPATCH_IGNORED name=%s value=%d", name, value)
            return False

        if not self._apply(entry, value):
            return False

        if self.on_dispatch is not None:
            self.on_dispatch()
        return True

    def reinitialize_all(self) -> None:
        """Drive every update handler back to its init value, in registration order."""
        for entry in self._entries.values():
            if entry.update is None or entry.init_value is None:
                continue
            self._apply(entry, entry.init_value)
            # the handler may clamp; the safe state is the init value itself
            entry.current_value = entry.init_value

        self._log.info("REGISTRY_REINITIALIZED count=%d", len(self._entries))

    def _apply(self, entry: CommandEntry, value: int) -> bool:
        try:
            accepted = entry.update(value)  # type: ignore[misc]
        except Exception:
            self._log.exception("UPDATE_HANDLER_FAILED name=%s value=%d", entry.name, value)
            return False

        entry.current_value = accepted
        self._emit(Frame(entry.name, accepted, FrameKind.UPDATE))
        return True

    def _emit(self, frame: Frame) -> None:
        if self.emit is None:
            return
        try:
            self.emit(frame)
        except Exception:
            self._log.exception("EMIT_FAILED name=%s", frame.name)

    # ---------------- Read access ----------------
    def names(self) -> List[str]:
        return list(self._entries)

    def has_update(self, name: str) -> bool:
        entry = self._entries.get(name)
        return entry is not None and entry.update is not None

    def init_value(self, name: str) -> Optional[int]:
        return self._entry(name).init_value

    def current_value(self, name: str) -> Optional[int]:
        return self._entry(name).current_value

    def _entry(self, name: str) -> CommandEntry:
        try:
            return self._entries[name]
        except KeyError:
            raise UnknownCommandError(f"Unknown command '{name}'.", details={"name": name}) from None

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)
