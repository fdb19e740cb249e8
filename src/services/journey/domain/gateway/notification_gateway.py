from abc import ABC, abstractmethod

from services.shared.domain import Money


class NotificationGateway(ABC):
    """通知サービス（外部）"""

    @abstractmethod
    def notify_supplier_new_booking(
        self, supplier_id: str, booking_id: str, reference: str, amount: Money
    ) -> None:
        raise NotImplementedError
