from enum import Enum


class JourneyStatus(str, Enum):
    """ジャーニーのステータス

    PLANNING → READY → BOOKING → CONFIRMED → {PENDING_CHANGES ⇄ CONFIRMED} → COMPLETED
    COMPLETED / CANCELLED は予約操作に対して終端。
    """

    PLANNING = "PLANNING"
    READY = "READY"
    BOOKING = "BOOKING"
    CONFIRMED = "CONFIRMED"
    PENDING_CHANGES = "PENDING_CHANGES"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def counts_toward_planning_cap(self) -> bool:
        return self in (JourneyStatus.PLANNING, JourneyStatus.READY)

    @property
    def is_bookable(self) -> bool:
        return self in (
            JourneyStatus.PLANNING,
            JourneyStatus.READY,
            JourneyStatus.PENDING_CHANGES,
        )

    @property
    def locks_segments(self) -> bool:
        """セグメントの追加・変更・削除を禁止するステータスか"""
        return self in (JourneyStatus.CONFIRMED, JourneyStatus.COMPLETED)

    @property
    def is_terminal(self) -> bool:
        return self in (JourneyStatus.COMPLETED, JourneyStatus.CANCELLED)

    @property
    def is_pre_confirmation(self) -> bool:
        return self in (
            JourneyStatus.PLANNING,
            JourneyStatus.READY,
            JourneyStatus.BOOKING,
        )


# ゲストが updateJourney で直接指定できる遷移
GUEST_TRANSITIONS: dict[JourneyStatus, frozenset[JourneyStatus]] = {
    JourneyStatus.PLANNING: frozenset({JourneyStatus.READY, JourneyStatus.CANCELLED}),
    JourneyStatus.READY: frozenset({JourneyStatus.PLANNING, JourneyStatus.CANCELLED}),
    JourneyStatus.BOOKING: frozenset({JourneyStatus.CANCELLED}),
    JourneyStatus.CONFIRMED: frozenset(),
    JourneyStatus.PENDING_CHANGES: frozenset(),
    JourneyStatus.COMPLETED: frozenset(),
    JourneyStatus.CANCELLED: frozenset(),
}
