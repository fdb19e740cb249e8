from __future__ import annotations

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class SegmentId:
    """ジャーニーセグメントID"""

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("SegmentId cannot be empty")

    def __str__(self) -> str:
        return self.value

    @classmethod
    def generate(cls) -> SegmentId:
        return cls(value=f"seg_{uuid.uuid4().hex}")
