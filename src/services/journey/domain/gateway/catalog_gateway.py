from abc import ABC, abstractmethod

from services.journey.domain.value_object import CatalogService, Location


class CatalogGateway(ABC):
    """カタログ・地点サービス（外部）"""

    @abstractmethod
    def get_service(self, service_id: str) -> CatalogService | None:
        raise NotImplementedError

    @abstractmethod
    def get_location(self, location_id: str) -> Location | None:
        raise NotImplementedError

    @abstractmethod
    def search_services(
        self,
        service_type: str,
        departure_location_id: str | None = None,
        arrival_location_id: str | None = None,
        location_id: str | None = None,
    ) -> list[CatalogService]:
        """種別と地点が一致する有効なサービスを検索する"""
        raise NotImplementedError
