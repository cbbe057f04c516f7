"""
Runtime status of the reader service, surfaced in the tray tooltip.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ServiceStatus:
    status: str = "Initializing"
    is_scanning: bool = False
    device_name: str = ""
    device_index: int = 0
    available_devices: List[str] = field(default_factory=list)
    last_card_output: Optional[str] = None
    last_error: Optional[str] = None

    @property
    def summary(self) -> str:
        """One-line description for tooltips and console output."""
        parts = [self.status]
        if self.device_name:
            parts.append(f"[{self.device_index}] {self.device_name}")
        if self.last_card_output:
            parts.append(f"last: {self.last_card_output.strip()}")
        return " | ".join(parts)
