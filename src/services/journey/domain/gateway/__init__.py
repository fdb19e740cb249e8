from .booking_gateway import BookingGateway, BookingRequest
from .catalog_gateway import CatalogGateway
from .event_publisher import EventPublisher
from .notification_gateway import NotificationGateway

__all__ = [
    "BookingGateway",
    "BookingRequest",
    "CatalogGateway",
    "EventPublisher",
    "NotificationGateway",
]
