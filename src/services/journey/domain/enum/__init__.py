from .booking_status import BookingStatus
from .cancellation_initiator import CancellationInitiator
from .journey_status import JourneyStatus
from .segment_type import SegmentType

__all__ = ["BookingStatus", "CancellationInitiator", "JourneyStatus", "SegmentType"]
