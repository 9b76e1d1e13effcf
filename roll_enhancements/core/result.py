"""
Success/failure values returned by the front ends.

The roll pipeline raises ``RollEnhancementError`` subclasses; the CLI and the
HTTP API turn those into a Result (``error.to_result()``) so callers always
see the same ``{'success', 'data' | 'error', 'error_code'}`` shape.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union


class ErrorCode(Enum):
    """Machine-readable failure reasons."""

    ITEM_NOT_FOUND = "item_not_found"
    UNSUPPORTED_ITEM = "unsupported_item"
    INVALID_FORMULA_GROUP = "invalid_formula_group"
    EMPTY_FORMULA_GROUP = "empty_formula_group"
    INVALID_DICE_NOTATION = "invalid_dice_notation"

    SCHEMA_VALIDATION_FAILED = "schema_validation_failed"
    INVALID_INPUT = "invalid_input"
    MISSING_REQUIRED_FIELD = "missing_required_field"

    STORAGE_ERROR = "storage_error"
    # The damage dialog was dismissed; not a fault
    CANCELLED = "cancelled"
    UNEXPECTED_ERROR = "unexpected_error"

    def __str__(self) -> str:
        return self.value


@dataclass
class Result:
    """
    Outcome of a front-end operation.

    Examples:
        >>> Result.ok({'total': 11}).to_dict()
        {'success': True, 'data': {'total': 11}}
        >>> Result.fail("Item abc not found", ErrorCode.ITEM_NOT_FOUND).error_code
        'item_not_found'
    """
    success: bool
    data: Any = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @staticmethod
    def ok(data: Any = None) -> 'Result':
        return Result(success=True, data=data)

    @staticmethod
    def fail(error: str, code: Union[ErrorCode, str, None] = None) -> 'Result':
        """Failed result; ``code`` may be an ErrorCode or its string value."""
        return Result(success=False, error=error, error_code=str(code) if code is not None else None)

    def to_dict(self) -> dict:
        if self.success:
            return {'success': True, 'data': self.data}
        return {'success': False, 'error': self.error, 'error_code': self.error_code}

    def __bool__(self) -> bool:
        return self.success
