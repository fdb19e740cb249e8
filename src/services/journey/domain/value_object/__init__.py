from .booking_id import BookingId
from .booking_ref import BookingRef
from .catalog_service import CatalogService, Location
from .journey_id import JourneyId
from .package_booking_id import PackageBookingId
from .segment_id import SegmentId
from .travel_period import TravelPeriod

__all__ = [
    "BookingId",
    "BookingRef",
    "CatalogService",
    "JourneyId",
    "Location",
    "PackageBookingId",
    "SegmentId",
    "TravelPeriod",
]
