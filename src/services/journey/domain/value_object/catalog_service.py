from dataclasses import dataclass, field
from datetime import datetime

from services.shared.domain import Money


@dataclass(frozen=True)
class Location:
    """カタログ上の地点（空港・港・島・町など）"""

    id: str
    type: str
    parent_id: str | None = None
    name: str | None = None


@dataclass(frozen=True)
class CatalogService:
    """カタログ上のサービス

    種別ごとの属性（交通の発着地・時刻、宿泊の所在地、人数上限）は任意項目として持つ。
    """

    id: str
    type: str
    supplier_id: str
    price: Money
    name: str | None = None
    min_guests: int | None = None
    max_guests: int | None = None
    location_id: str | None = None
    departure_location_id: str | None = None
    arrival_location_id: str | None = None
    departure_time: datetime | None = None
    arrival_time: datetime | None = None
    duration: int | None = None
    attributes: dict = field(default_factory=dict, compare=False)

    @property
    def is_transport(self) -> bool:
        return self.departure_location_id is not None or self.type == "TRANSPORT"

    def accepts_guests(self, guests: int) -> bool:
        """人数がサービスの上下限に収まるか"""
        if self.min_guests is not None and guests < self.min_guests:
            return False
        if self.max_guests is not None and guests > self.max_guests:
            return False
        return True
