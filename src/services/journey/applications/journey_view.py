from dataclasses import dataclass, field

from services.journey.domain.entity import Journey, JourneySegment


@dataclass(frozen=True)
class JourneyView:
    """ユースケースの戻り値（ジャーニーと並び順どおりのセグメント）"""

    journey: Journey
    segments: list[JourneySegment] = field(default_factory=list)

    @property
    def cancelled_segments(self) -> list[JourneySegment]:
        return [s for s in self.segments if s.is_cancelled]
