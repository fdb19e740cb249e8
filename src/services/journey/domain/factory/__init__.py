from .journey_factory import JourneyDetails, JourneyFactory
from .segment_factory import SegmentDetails, SegmentFactory

__all__ = ["JourneyDetails", "JourneyFactory", "SegmentDetails", "SegmentFactory"]
