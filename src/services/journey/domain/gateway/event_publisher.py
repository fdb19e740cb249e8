from abc import ABC, abstractmethod

from services.journey.domain.event import DomainEvent


class EventPublisher(ABC):
    """ドメインイベントの発行先

    コミット後に呼び出される。発行の失敗を呼び出し元に伝えてはならない。
    """

    @abstractmethod
    def publish(self, events: list[DomainEvent]) -> None:
        raise NotImplementedError
