from .booking_grouper import BookingGroup, BookingGrouper
from .cancellation_policy import CancellationPolicy
from .status_reconciler import StatusReconciler

__all__ = ["BookingGroup", "BookingGrouper", "CancellationPolicy", "StatusReconciler"]
