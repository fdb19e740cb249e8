from .journey import Journey
from .journey_segment import JourneySegment

__all__ = ["Journey", "JourneySegment"]
