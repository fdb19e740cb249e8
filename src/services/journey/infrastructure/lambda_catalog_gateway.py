import os
from typing import Any

from services.journey.domain.gateway import CatalogGateway
from services.journey.domain.value_object import CatalogService, Location
from services.shared.utils import invoke_function
from services.shared.utils.lambda_invoke import lambda_client

from .payload_models import LocationPayload, ServiceListPayload, ServicePayload


class LambdaCatalogGateway(CatalogGateway):
    """カタログ・地点サービス Lambda を同期呼び出しする CatalogGateway"""

    def __init__(self, function_name: str | None = None, client: Any = None) -> None:
        self.function_name = function_name or os.getenv("CATALOG_SERVICE_FUNCTION")
        self.client = client or lambda_client()

    def get_service(self, service_id: str) -> CatalogService | None:
        result = invoke_function(
            self.client,
            self.function_name,
            {"action": "getService", "serviceId": service_id},
        )
        if not result:
            return None
        return ServicePayload.model_validate(result).to_service()

    def get_location(self, location_id: str) -> Location | None:
        result = invoke_function(
            self.client,
            self.function_name,
            {"action": "getLocation", "locationId": location_id},
        )
        if not result:
            return None
        return LocationPayload.model_validate(result).to_location()

    def search_services(
        self,
        service_type: str,
        departure_location_id: str | None = None,
        arrival_location_id: str | None = None,
        location_id: str | None = None,
    ) -> list[CatalogService]:
        filters = {
            "departureLocationId": departure_location_id,
            "arrivalLocationId": arrival_location_id,
            "locationId": location_id,
        }
        result = invoke_function(
            self.client,
            self.function_name,
            {
                "action": "searchServices",
                "type": service_type,
                "activeOnly": True,
                **{k: v for k, v in filters.items() if v is not None},
            },
        )
        return [
            p.to_service() for p in ServiceListPayload.model_validate(result or {}).services
        ]
