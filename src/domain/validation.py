from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ValidationError:
    """Validation error with actionable message."""

    field: str
    code: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "code": self.code, "message": self.message}
