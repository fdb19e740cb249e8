from services.journey.domain.entity import Journey, JourneySegment
from services.journey.domain.repository import JourneyRepository, SegmentRepository
from services.journey.domain.value_object import BookingId, JourneyId, SegmentId
from services.shared.domain import ResourceNotFoundException


def load_owned_journey(
    repository: JourneyRepository, journey_id: JourneyId, user_id: str
) -> Journey:
    """存在と所有者をチェックしてジャーニーを取得する

    Raises:
        ResourceNotFoundException: ジャーニーが存在しない
        AccessDeniedException: 他のユーザーのジャーニー
    """
    journey = repository.find_by_id(journey_id)
    if journey is None:
        raise ResourceNotFoundException(f"Journey with ID {journey_id} not found")
    journey.ensure_owned_by(user_id)
    return journey


def find_segment(
    segments: list[JourneySegment], segment_id: SegmentId
) -> JourneySegment:
    for segment in segments:
        if segment.id == segment_id:
            return segment
    raise ResourceNotFoundException(
        f"Segment with ID {segment_id} not found in this journey"
    )


def linked_booking_ids(segments: list[JourneySegment]) -> list[BookingId]:
    """セグメントが参照している予約IDを重複なく並び順で返す"""
    seen: dict[BookingId, None] = {}
    for segment in segments:
        if segment.booking_id is not None:
            seen.setdefault(segment.booking_id, None)
    return list(seen)
