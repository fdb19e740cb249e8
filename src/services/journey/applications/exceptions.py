from dataclasses import dataclass

from services.shared.domain import DomainException

from .journey_view import JourneyView


@dataclass(frozen=True)
class FailedBookingGroup:
    """予約作成に失敗したグループ"""

    segment_ids: tuple[str, ...]
    service_id: str | None
    reason: str


class PartialBookingFailureException(DomainException):
    """一部のグループの予約作成に失敗した

    作成済みの予約は取り消さない。ジャーニーは BOOKING（差し替え時は PENDING_CHANGES）のまま残り、
    ステータス再計算か bookJourney の再実行で回復する。
    """

    def __init__(
        self,
        view: JourneyView,
        created_booking_ids: list[str],
        failed: list[FailedBookingGroup],
    ) -> None:
        super().__init__(
            f"{len(failed)} booking group(s) failed for journey {view.journey.id}"
        )
        self.view = view
        self.created_booking_ids = created_booking_ids
        self.failed = failed
