# cmdlink/host/config.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from cmdlink.core.errors import ConfigError


@dataclass(frozen=True)
class LinkConfig:
    """
    Host-side link settings.

    transmit_interval_s must stay strictly below device_timeout_s, otherwise a
    healthy host would still trip the device watchdog between two cycles.
    """
    port: Optional[str] = None
    baudrate: int = 9600
    read_timeout_s: float = 0.05
    settle_s: float = 2.0
    transmit_interval_s: float = 0.25
    device_timeout_s: float = 1.0

    def validate(self) -> "LinkConfig":
        if self.baudrate <= 0:
            raise ConfigError(f"Invalid baudrate {self.baudrate}.", details={"baudrate": self.baudrate})
        if self.settle_s < 0:
            raise ConfigError(f"settle_s must be >= 0, got {self.settle_s}.", details={"settle_s": self.settle_s})
        if self.read_timeout_s < 0:
            raise ConfigError(
                f"read_timeout_s must be >= 0, got {self.read_timeout_s}.",
                details={"read_timeout_s": self.read_timeout_s},
            )
        if not self.device_timeout_s > 0:
            raise ConfigError(
                f"device_timeout_s must be > 0, got {self.device_timeout_s}.",
                details={"device_timeout_s": self.device_timeout_s},
            )
        if not (0 < self.transmit_interval_s < self.device_timeout_s):
            raise ConfigError(
                f"transmit_interval_s={self.transmit_interval_s} must be in (0, device_timeout_s={self.device_timeout_s}).",
                hint="Transmit at least a few times per device watchdog period.",
                details={
                    "transmit_interval_s": self.transmit_interval_s,
                    "device_timeout_s": self.device_timeout_s,
                },
            )
        return self
