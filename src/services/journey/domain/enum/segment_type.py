from enum import Enum


class SegmentType(str, Enum):
    """セグメント種別"""

    AIRPORT_TRANSFER = "AIRPORT_TRANSFER"
    FERRY = "FERRY"
    TRANSPORT = "TRANSPORT"
    ACCOMMODATION = "ACCOMMODATION"
    ACTIVITY = "ACTIVITY"
    TOUR = "TOUR"
    EVENT = "EVENT"

    @property
    def is_per_person_priced(self) -> bool:
        """カタログ価格が1人あたりの種別か（旅行者数を掛けて保存する）"""
        return self in (SegmentType.TOUR, SegmentType.ACTIVITY)

    @property
    def is_transport(self) -> bool:
        return self in (
            SegmentType.AIRPORT_TRANSFER,
            SegmentType.FERRY,
            SegmentType.TRANSPORT,
        )

    def to_service_type(self) -> str:
        """カタログのサービス種別に変換する"""
        return _SERVICE_TYPES[self]


_SERVICE_TYPES: dict[SegmentType, str] = {
    SegmentType.AIRPORT_TRANSFER: "TRANSPORT",
    SegmentType.FERRY: "TRANSPORT",
    SegmentType.TRANSPORT: "TRANSPORT",
    SegmentType.ACCOMMODATION: "ACCOMMODATION",
    SegmentType.TOUR: "TOUR",
    SegmentType.ACTIVITY: "ACTIVITY",
    SegmentType.EVENT: "EVENT_TICKET",
}
