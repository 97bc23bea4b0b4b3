"""
Preflight models.

The preflight record is the audit trail of every check a run performed, in
order. Entries are only ever appended.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True)
class PreflightEntry:
    """One check: which step ran it, what kind, and the values it computed."""
    step: str
    check: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"step": self.step, "check": self.check, **self.data}


class PreflightRecord:
    """Append-only ordered log of preflight entries."""

    def __init__(self):
        self._entries: List[PreflightEntry] = []

    def append(self, step: str, check: str, **data: Any) -> PreflightEntry:
        entry = PreflightEntry(step=step, check=check, data=dict(data))
        self._entries.append(entry)
        return entry

    @property
    def entries(self) -> Tuple[PreflightEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def to_list(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self._entries]
