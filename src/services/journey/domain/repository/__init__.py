from .journey_repository import JourneyRepository
from .segment_repository import SegmentRepository

__all__ = ["JourneyRepository", "SegmentRepository"]
