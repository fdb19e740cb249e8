from .enum import BookingStatus as BookingStatus
from .enum import CancellationInitiator as CancellationInitiator
from .enum import JourneyStatus as JourneyStatus
from .enum import SegmentType as SegmentType
from .value_object import BookingId as BookingId
from .value_object import BookingRef as BookingRef
from .value_object import CatalogService as CatalogService
from .value_object import JourneyId as JourneyId
from .value_object import Location as Location
from .value_object import PackageBookingId as PackageBookingId
from .value_object import SegmentId as SegmentId
from .value_object import TravelPeriod as TravelPeriod
from .event import SupplierBookingCreated as SupplierBookingCreated
from .entity import Journey as Journey
from .entity import JourneySegment as JourneySegment
from .factory import JourneyFactory as JourneyFactory
from .factory import SegmentFactory as SegmentFactory
from .repository import JourneyRepository as JourneyRepository
from .repository import SegmentRepository as SegmentRepository
