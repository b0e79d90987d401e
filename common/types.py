from dataclasses import dataclass
from datetime import datetime
from typing import Callable

Clock = Callable[[], datetime]


@dataclass
class SweepResult:
    processed: int = 0
    changed: int = 0
    failed: int = 0

    def as_dict(self) -> dict:
        return {"processed": self.processed, "changed": self.changed, "failed": self.failed}
