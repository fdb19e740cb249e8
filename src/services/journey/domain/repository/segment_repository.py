from abc import ABC, abstractmethod
from typing import Optional

from services.journey.domain.entity import Journey, JourneySegment
from services.journey.domain.value_object import BookingId, JourneyId, SegmentId


class SegmentRepository(ABC):
    """セグメントストア

    ジャーニー単位で順序付きセグメントを保持する。ポリシーは持たない。
    並び順やキャッシュ価格を変える書き込みは、ジャーニーの version を条件に
    1トランザクションで行い、成功時に journey.increment_version() する。
    """

    @abstractmethod
    def list_by_journey(self, journey_id: JourneyId) -> list[JourneySegment]:
        """segment_order 昇順で返す"""
        raise NotImplementedError

    @abstractmethod
    def find_by_id(
        self, journey_id: JourneyId, segment_id: SegmentId
    ) -> Optional[JourneySegment]:
        raise NotImplementedError

    @abstractmethod
    def find_by_booking_id(self, booking_id: BookingId) -> list[JourneySegment]:
        """予約を参照するセグメント（複数ジャーニーにまたがることはない）"""
        raise NotImplementedError

    @abstractmethod
    def insert_at(
        self,
        journey: Journey,
        segment: JourneySegment,
        after_order: int | None = None,
    ) -> JourneySegment:
        """セグメントを挿入する

        after_order 指定時はそれより大きい順番を +1 してから after_order + 1 に入れる。
        未指定なら末尾 (件数 + 1) に追加する。ジャーニーの合計金額も同時に書き込む。
        """
        raise NotImplementedError

    @abstractmethod
    def delete(self, journey: Journey, segment: JourneySegment) -> None:
        """セグメントを削除し、後続の順番を -1 する"""
        raise NotImplementedError

    @abstractmethod
    def reorder(self, journey: Journey) -> list[JourneySegment]:
        """順番を 1..N に詰め直す（修復用）"""
        raise NotImplementedError

    @abstractmethod
    def save_all(self, journey: Journey, segments: list[JourneySegment]) -> None:
        """セグメントとジャーニーをまとめて書き込む"""
        raise NotImplementedError
