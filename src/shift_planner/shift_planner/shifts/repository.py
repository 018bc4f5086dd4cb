from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol, Sequence

from .model import ShiftRecord


class ShiftRecordRepository(Protocol):
    def list_range(
        self,
        *,
        start: date,
        end: date,
        team_ids: Optional[Iterable[int]] = None,
        user_id: Optional[int] = None,
    ) -> Sequence[ShiftRecord]:
        raise NotImplementedError
