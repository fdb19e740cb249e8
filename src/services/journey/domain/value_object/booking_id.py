from dataclasses import dataclass


@dataclass(frozen=True)
class BookingId:
    """サプライヤー予約ID（予約サービスが採番する）

    セグメントは予約を所有せず、この値で参照するだけ。
    """

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("BookingId cannot be empty")

    def __str__(self) -> str:
        return self.value
