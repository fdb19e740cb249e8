from __future__ import annotations

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class JourneyId:
    """ジャーニーID

    Value Object として不変性を保証。
    同じ値を持つ JourneyId は同一とみなされる。
    """

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("JourneyId cannot be empty")

    def __str__(self) -> str:
        return self.value

    @classmethod
    def generate(cls) -> JourneyId:
        return cls(value=f"jrn_{uuid.uuid4().hex}")
