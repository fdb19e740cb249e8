from __future__ import annotations

import secrets
import time
from dataclasses import dataclass


@dataclass(frozen=True)
class PackageBookingId:
    """パッケージ予約タグ

    1回の bookJourney で作られる予約すべてに同じ値を付与し、
    キャンセル時に兄弟予約を突き合わせるために使う。
    """

    value: str

    def __str__(self) -> str:
        return self.value

    @classmethod
    def generate(cls) -> PackageBookingId:
        return cls(value=f"pkg_{int(time.time() * 1000)}_{secrets.token_hex(4)}")
