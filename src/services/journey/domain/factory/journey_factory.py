from datetime import datetime
from typing import NotRequired, TypedDict

from services.journey.domain.entity import Journey
from services.journey.domain.enum import JourneyStatus
from services.journey.domain.value_object import JourneyId, TravelPeriod
from services.shared.domain import Currency, InvalidInputException

DEFAULT_JOURNEY_NAME = "My Journey"


class JourneyDetails(TypedDict):
    """ジャーニー作成の入力データ構造（TypedDict）"""

    origin_location_id: str
    destination_location_id: str
    start_date: datetime
    end_date: datetime
    travelers: int
    name: NotRequired[str | None]
    currency_code: NotRequired[str]
    preferences: NotRequired[dict | None]


class JourneyFactory:
    """ジャーニーファクトリ"""

    def create(self, user_id: str, details: JourneyDetails) -> Journey:
        """PLANNING 状態の空のジャーニーを生成する"""
        try:
            period = TravelPeriod(start=details["start_date"], end=details["end_date"])
            currency = Currency(details.get("currency_code") or "EUR")
        except ValueError as e:
            raise InvalidInputException(str(e)) from e

        return Journey(
            id=JourneyId.generate(),
            user_id=user_id,
            name=details.get("name") or DEFAULT_JOURNEY_NAME,
            origin_location_id=details["origin_location_id"],
            destination_location_id=details["destination_location_id"],
            period=period,
            travelers=details["travelers"],
            currency=currency,
            status=JourneyStatus.PLANNING,
            preferences=details.get("preferences"),
        )
