from .lambda_invoke import invoke_function
from .logger import get_logger
from .validators import to_decimal, to_optional_decimal

__all__ = ["get_logger", "invoke_function", "to_decimal", "to_optional_decimal"]
