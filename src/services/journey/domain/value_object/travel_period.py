from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


def _as_utc(value: datetime) -> datetime:
    """タイムゾーンなしは UTC とみなし、ありは UTC に変換する"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class TravelPeriod:
    """旅行期間（開始日時 + 終了日時）"""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", _as_utc(self.start))
        object.__setattr__(self, "end", _as_utc(self.end))

        if self.end <= self.start:
            raise ValueError("End date must be after start date")

    def has_ended_before(self, moment: datetime) -> bool:
        return self.end < moment

