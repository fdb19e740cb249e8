from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from decimal import Decimal

from services.journey.domain.entity import Journey
from services.journey.domain.gateway import (
    BookingGateway,
    BookingRequest,
    CatalogGateway,
)
from services.journey.domain.service import BookingGroup
from services.journey.domain.value_object import BookingRef, PackageBookingId
from services.shared.domain import ResourceNotFoundException
from services.shared.utils import get_logger

from .exceptions import FailedBookingGroup

logger = get_logger("journey")

COMMISSION_RATE = Decimal("0.15")
DEFAULT_CONCURRENCY = 4


@dataclass
class DispatchResult:
    """グループごとの予約作成結果"""

    created: list[tuple[BookingGroup, BookingRef]] = field(default_factory=list)
    failed: list[FailedBookingGroup] = field(default_factory=list)

    @property
    def created_booking_ids(self) -> list[str]:
        return [str(ref.id) for _, ref in self.created]


class BookingDispatcher:
    """予約グループごとに予約サービスを呼び出す

    グループは別々のサプライヤー宛てなので並列に呼び出す。
    1グループの失敗は他のグループに影響しない。成功したグループはその場で
    セグメントに予約IDを紐付ける。
    """

    def __init__(
        self,
        bookings: BookingGateway,
        catalog: CatalogGateway,
        max_workers: int | None = None,
    ) -> None:
        self._bookings = bookings
        self._catalog = catalog
        self._max_workers = max_workers or int(
            os.getenv("BOOKING_CONCURRENCY", DEFAULT_CONCURRENCY)
        )

    def dispatch(
        self,
        journey: Journey,
        groups: list[BookingGroup],
        package_booking_id: PackageBookingId,
        notes: str | None = None,
        guest_details: dict | None = None,
    ) -> DispatchResult:
        result = DispatchResult()
        if not groups:
            return result

        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(groups))) as pool:
            futures = {
                pool.submit(
                    self._book_group,
                    journey,
                    group,
                    package_booking_id,
                    notes,
                    guest_details or {},
                ): group
                for group in groups
            }
            for future in as_completed(futures):
                group = futures[future]
                try:
                    ref, supplier_id = future.result()
                except Exception as e:
                    logger.warning(
                        "Booking group failed",
                        extra={
                            "journey_id": str(journey.id),
                            "service_id": group.service_id,
                            "segment_ids": list(group.segment_ids),
                            "error": str(e),
                        },
                    )
                    result.failed.append(
                        FailedBookingGroup(
                            segment_ids=group.segment_ids,
                            service_id=group.service_id,
                            reason=str(e),
                        )
                    )
                    continue

                for segment in group.segments:
                    segment.link_booking(ref.id)
                journey.record_booking_created(
                    ref, supplier_id, group.total, package_booking_id
                )
                result.created.append((group, ref))
                logger.info(
                    "Booking created",
                    extra={
                        "journey_id": str(journey.id),
                        "booking_id": str(ref.id),
                        "segment_ids": list(group.segment_ids),
                    },
                )

        # as_completed の順序に依存しないよう並び順に揃える
        order = {id(group): i for i, group in enumerate(groups)}
        result.created.sort(key=lambda created: order[id(created[0])])
        return result

    def _book_group(
        self,
        journey: Journey,
        group: BookingGroup,
        package_booking_id: PackageBookingId,
        notes: str | None,
        guest_details: dict,
    ) -> tuple[BookingRef, str]:
        if group.service_id is None:
            raise ResourceNotFoundException("Segment has no associated service")
        service = self._catalog.get_service(group.service_id)
        if service is None:
            raise ResourceNotFoundException(
                f"Service with ID {group.service_id} not found"
            )

        request = BookingRequest(
            journey_id=str(journey.id),
            user_id=journey.user_id,
            supplier_id=service.supplier_id,
            service_id=group.service_id,
            service_type=group.segment_type.to_service_type(),
            segment_ids=group.segment_ids,
            service_date=group.check_in or journey.period.start,
            check_in=group.check_in,
            check_out=group.check_out,
            day_count=group.day_count,
            travelers=journey.travelers,
            unit_price=group.total.divide(journey.travelers),
            total=group.total,
            commission=group.total.ratio(COMMISSION_RATE),
            package_booking_id=package_booking_id,
            notes=notes,
            guest_details=guest_details,
        )
        return self._bookings.create_booking(request), service.supplier_id
