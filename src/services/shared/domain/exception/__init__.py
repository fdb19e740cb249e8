from .exceptions import (
    AccessDeniedException,
    BusinessRuleViolationException,
    DomainException,
    DuplicateResourceException,
    InvalidInputException,
    InvalidStateException,
    LimitExceededException,
    OptimisticLockException,
    ResourceNotFoundException,
)

__all__ = [
    "DomainException",
    "ResourceNotFoundException",
    "AccessDeniedException",
    "BusinessRuleViolationException",
    "InvalidStateException",
    "InvalidInputException",
    "LimitExceededException",
    "DuplicateResourceException",
    "OptimisticLockException",
]
