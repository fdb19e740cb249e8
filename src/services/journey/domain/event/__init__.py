from .events import DomainEvent, SupplierBookingCreated

__all__ = ["DomainEvent", "SupplierBookingCreated"]
