from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class DomainEvent:
    """ドメインイベント基底クラス

    集約に溜めておき、永続化のコミット後にまとめて発行する。
    """

    occurred_at: str = field(default_factory=_now, kw_only=True)

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"event_type": self.event_type, **asdict(self)}


@dataclass(frozen=True)
class SupplierBookingCreated(DomainEvent):
    """サプライヤー予約が作成された（サプライヤーへの通知対象）"""

    journey_id: str
    supplier_id: str
    booking_id: str
    booking_reference: str
    amount: str
    currency: str
    package_booking_id: str
