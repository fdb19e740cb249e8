from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from services.journey.domain.entity import JourneySegment
from services.journey.domain.enum import SegmentType
from services.shared.domain import Money

ONE_DAY = timedelta(days=1)


@dataclass
class BookingGroup:
    """1件のサプライヤー予約で手配するセグメントの集まり（永続化しない）"""

    segment_type: SegmentType
    service_id: str | None
    total: Money
    check_in: datetime | None
    check_out: datetime | None
    segments: list[JourneySegment] = field(default_factory=list)

    @property
    def segment_ids(self) -> tuple[str, ...]:
        return tuple(str(s.id) for s in self.segments)

    @property
    def day_count(self) -> int:
        return len(self.segments)

    @property
    def is_accommodation(self) -> bool:
        return self.segment_type == SegmentType.ACCOMMODATION

    def extend(self, segment: JourneySegment) -> None:
        """連泊の宿泊セグメントを追加し、チェックアウトを延ばす"""
        self.segments.append(segment)
        self.total = self.total.add(segment.price)
        if segment.arrival_time is not None:
            self.check_out = segment.arrival_time + ONE_DAY

    @classmethod
    def start(cls, segment: JourneySegment) -> BookingGroup:
        check_out = segment.arrival_time
        if segment.segment_type == SegmentType.ACCOMMODATION and check_out is not None:
            check_out = check_out + ONE_DAY
        return cls(
            segment_type=segment.segment_type,
            service_id=segment.service_id,
            total=segment.price,
            check_in=segment.departure_time,
            check_out=check_out,
            segments=[segment],
        )


class BookingGrouper:
    """予約グループ化

    並び順に走査し、同じサービスが連続する宿泊セグメントは1つの予約にまとめる。
    それ以外のセグメントは常に1セグメント1予約。
    予約済み・取消済みのセグメントは対象外。
    """

    def group(self, segments: Iterable[JourneySegment]) -> list[BookingGroup]:
        groups: list[BookingGroup] = []
        open_stay: BookingGroup | None = None

        for segment in segments:
            if not segment.awaits_booking:
                continue

            if segment.segment_type == SegmentType.ACCOMMODATION:
                if open_stay is not None and open_stay.service_id == segment.service_id:
                    open_stay.extend(segment)
                    continue
                if open_stay is not None:
                    groups.append(open_stay)
                open_stay = BookingGroup.start(segment)
                continue

            if open_stay is not None:
                groups.append(open_stay)
                open_stay = None
            groups.append(BookingGroup.start(segment))

        if open_stay is not None:
            groups.append(open_stay)

        return groups
