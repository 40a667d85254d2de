"""Round-robin assignment of imported leads across a team roster."""
from __future__ import annotations

import enum
import threading
from typing import Dict, List, Optional, Sequence


class DistributionMode(enum.Enum):
    AUTO = "auto"
    FIXED = "fixed"
    NONE = "none"


class DistributionAssigner:
    """Hands out assignees for a run.

    In ``AUTO`` mode the cursor advances by exactly one per call, so by the end
    of a run no member holds more than one lead above any other. A member is
    only credited in :meth:`counts` once the caller confirms the assignment
    was stored.
    """

    def __init__(
        self,
        mode: DistributionMode,
        *,
        member_ids: Sequence[str] = (),
        fixed_assignee_id: Optional[str] = None,
    ) -> None:
        if mode is DistributionMode.AUTO and not member_ids:
            raise ValueError("Automatic distribution requires at least one member")
        if mode is DistributionMode.FIXED and not fixed_assignee_id:
            raise ValueError("Fixed assignment requires an assignee id")
        self._mode = mode
        self._member_ids: List[str] = list(member_ids)
        self._fixed_assignee_id = fixed_assignee_id
        self._cursor = 0
        self._counts: Dict[str, int] = {member_id: 0 for member_id in self._member_ids}
        self._lock = threading.Lock()

    @classmethod
    def from_options(
        cls,
        auto_distribute: bool,
        member_ids: Optional[Sequence[str]] = None,
        fixed_assignee_id: Optional[str] = None,
    ) -> "DistributionAssigner":
        if auto_distribute:
            return cls(DistributionMode.AUTO, member_ids=member_ids or ())
        if fixed_assignee_id:
            return cls(DistributionMode.FIXED, fixed_assignee_id=fixed_assignee_id)
        return cls(DistributionMode.NONE)

    @property
    def mode(self) -> DistributionMode:
        return self._mode

    @property
    def cursor(self) -> int:
        return self._cursor

    def assign(self) -> Optional[str]:
        if self._mode is DistributionMode.NONE:
            return None
        if self._mode is DistributionMode.FIXED:
            return self._fixed_assignee_id
        with self._lock:
            member_id = self._member_ids[self._cursor % len(self._member_ids)]
            self._cursor += 1
        return member_id

    def confirm(self, assignee_id: Optional[str]) -> None:
        if self._mode is not DistributionMode.AUTO or assignee_id is None:
            return
        with self._lock:
            self._counts[assignee_id] += 1

    def counts(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)


__all__ = ["DistributionMode", "DistributionAssigner"]
