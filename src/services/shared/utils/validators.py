from decimal import Decimal, InvalidOperation


def to_decimal(v: object) -> Decimal:
    """任意の値を Decimal に変換する

    Pydantic の field_validator (mode="before") から呼び出すことを想定。
    すでに Decimal の場合はそのまま返し、それ以外は str 経由で変換する。
    float を経由しないため 0.1 などの丸め誤差は入らない。
    """
    if isinstance(v, Decimal):
        return v
    if isinstance(v, bool):
        raise ValueError("Boolean is not a valid amount")
    try:
        return Decimal(str(v))
    except InvalidOperation as e:
        raise ValueError(f"Invalid decimal value: {v}") from e


def to_optional_decimal(v: object) -> Decimal | None:
    """None を許容する to_decimal"""
    if v is None:
        return None
    return to_decimal(v)
