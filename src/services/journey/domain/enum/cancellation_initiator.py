from enum import Enum


class CancellationInitiator(str, Enum):
    """予約キャンセルの実行者"""

    SUPPLIER = "SUPPLIER"
    GUEST = "GUEST"
