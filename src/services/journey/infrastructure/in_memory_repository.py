from __future__ import annotations

import copy
import threading
from collections.abc import Iterator
from datetime import datetime

from services.journey.domain.entity import Journey, JourneySegment
from services.journey.domain.enum import JourneyStatus
from services.journey.domain.repository import JourneyRepository, SegmentRepository
from services.journey.domain.value_object import BookingId, JourneyId, SegmentId
from services.shared.domain import (
    DuplicateResourceException,
    OptimisticLockException,
    ResourceNotFoundException,
)


class InMemoryStore:
    """ジャーニーとセグメントを保持するプロセス内ストア（ローカル実行・テスト用）

    DynamoDB と同じく、読み書きのたびにコピーを渡して呼び出し元との参照共有を避ける。
    """

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.journeys: dict[JourneyId, Journey] = {}
        self.segments: dict[JourneyId, dict[SegmentId, JourneySegment]] = {}

    def put_journey(self, journey: Journey) -> None:
        snapshot = copy.deepcopy(journey)
        snapshot.flush_domain_events()
        self.journeys[journey.id] = snapshot

    def commit(self, journey: Journey) -> None:
        """version を確認してジャーニーを書き込み、version を進める"""
        stored = self.journeys.get(journey.id)
        if stored is None:
            raise ResourceNotFoundException(f"Journey with ID {journey.id} not found")
        if stored.version != journey.version:
            raise OptimisticLockException(
                f"Journey version conflict: expected {journey.version}, "
                f"journey_id={journey.id}"
            )
        journey.increment_version()
        self.put_journey(journey)


class InMemoryJourneyRepository(JourneyRepository):
    def __init__(self, store: InMemoryStore | None = None) -> None:
        self.store = store or InMemoryStore()

    def save(self, journey: Journey) -> None:
        with self.store.lock:
            if journey.id in self.store.journeys:
                raise DuplicateResourceException(
                    f"Journey already exists: {journey.id}"
                )
            self.store.put_journey(journey)
            self.store.segments[journey.id] = {}

    def save_if_below_limit(
        self, journey: Journey, statuses: set[JourneyStatus], limit: int
    ) -> bool:
        with self.store.lock:
            if self.count_by_user_id_and_status(journey.user_id, statuses) >= limit:
                return False
            self.save(journey)
            return True

    def find_by_id(self, journey_id: JourneyId) -> Journey | None:
        with self.store.lock:
            journey = self.store.journeys.get(journey_id)
            return copy.deepcopy(journey) if journey is not None else None

    def find_by_user_id(
        self, user_id: str, page: int = 1, limit: int = 20
    ) -> list[Journey]:
        with self.store.lock:
            owned = sorted(
                (j for j in self.store.journeys.values() if j.user_id == user_id),
                key=lambda j: j.created_at,
                reverse=True,
            )
            start = (page - 1) * limit
            return copy.deepcopy(owned[start : start + limit])

    def count_by_user_id_and_status(
        self, user_id: str, statuses: set[JourneyStatus]
    ) -> int:
        with self.store.lock:
            return sum(
                1
                for j in self.store.journeys.values()
                if j.user_id == user_id and j.status in statuses
            )

    def update(self, journey: Journey) -> None:
        with self.store.lock:
            self.store.commit(journey)

    def delete(self, journey: Journey) -> None:
        with self.store.lock:
            stored = self.store.journeys.get(journey.id)
            if stored is not None and stored.version != journey.version:
                raise OptimisticLockException(
                    f"Journey version conflict: expected {journey.version}, "
                    f"journey_id={journey.id}"
                )
            self.store.journeys.pop(journey.id, None)
            self.store.segments.pop(journey.id, None)

    def iter_user_ids(self) -> Iterator[str]:
        with self.store.lock:
            user_ids = sorted({j.user_id for j in self.store.journeys.values()})
        yield from user_ids

    def find_ending_before(
        self, moment: datetime, status: JourneyStatus
    ) -> Iterator[Journey]:
        with self.store.lock:
            matched = [
                copy.deepcopy(j)
                for j in self.store.journeys.values()
                if j.status == status and j.period.has_ended_before(moment)
            ]
        yield from matched


class InMemorySegmentRepository(SegmentRepository):
    def __init__(self, store: InMemoryStore | None = None) -> None:
        self.store = store or InMemoryStore()

    def list_by_journey(self, journey_id: JourneyId) -> list[JourneySegment]:
        with self.store.lock:
            return copy.deepcopy(self._ordered(journey_id))

    def find_by_id(
        self, journey_id: JourneyId, segment_id: SegmentId
    ) -> JourneySegment | None:
        with self.store.lock:
            segment = self.store.segments.get(journey_id, {}).get(segment_id)
            return copy.deepcopy(segment) if segment is not None else None

    def find_by_booking_id(self, booking_id: BookingId) -> list[JourneySegment]:
        with self.store.lock:
            return [
                copy.deepcopy(s)
                for segments in self.store.segments.values()
                for s in segments.values()
                if s.booking_id == booking_id
            ]

    def insert_at(
        self,
        journey: Journey,
        segment: JourneySegment,
        after_order: int | None = None,
    ) -> JourneySegment:
        with self.store.lock:
            current = self._ordered(journey.id)
            if after_order is None:
                order = len(current) + 1
                shifted = []
            else:
                order = after_order + 1
                shifted = [s for s in current if s.segment_order > after_order]

            self.store.commit(journey)
            for s in shifted:
                s.move_to(s.segment_order + 1)
            segment.move_to(order)
            self.store.segments[journey.id][segment.id] = copy.deepcopy(segment)
            return segment

    def delete(self, journey: Journey, segment: JourneySegment) -> None:
        with self.store.lock:
            current = self._ordered(journey.id)
            removed = self.store.segments[journey.id].get(segment.id)
            if removed is None:
                raise ResourceNotFoundException(f"Segment {segment.id} not found")

            self.store.commit(journey)
            del self.store.segments[journey.id][segment.id]
            for s in current:
                if s.segment_order > removed.segment_order:
                    s.move_to(s.segment_order - 1)

    def reorder(self, journey: Journey) -> list[JourneySegment]:
        with self.store.lock:
            current = self._ordered(journey.id)
            self.store.commit(journey)
            for i, s in enumerate(current, start=1):
                s.move_to(i)
            return copy.deepcopy(current)

    def save_all(self, journey: Journey, segments: list[JourneySegment]) -> None:
        with self.store.lock:
            self.store.commit(journey)
            stored = self.store.segments.setdefault(journey.id, {})
            for segment in segments:
                stored[segment.id] = copy.deepcopy(segment)

    def _ordered(self, journey_id: JourneyId) -> list[JourneySegment]:
        segments = self.store.segments.get(journey_id, {})
        return sorted(segments.values(), key=lambda s: s.segment_order)
