"""
Errors raised by the roll pipeline.

Each error carries an ``ErrorCode`` so front ends can turn it into a
``Result`` with ``to_result()``.
"""

from .result import ErrorCode, Result


class RollEnhancementError(Exception):
    """Base class for fatal roll errors."""

    code = ErrorCode.UNEXPECTED_ERROR

    def to_result(self) -> Result:
        return Result.fail(str(self), self.code)


class ItemNotFoundError(RollEnhancementError):
    """No item with the requested ID exists."""
    code = ErrorCode.ITEM_NOT_FOUND


class UnsupportedItemError(RollEnhancementError):
    """The item has no damage structure at all."""
    code = ErrorCode.UNSUPPORTED_ITEM


class InvalidGroupError(RollEnhancementError):
    """The requested formula group index does not exist."""
    code = ErrorCode.INVALID_FORMULA_GROUP


class EmptyGroupError(RollEnhancementError):
    """Every slot referenced by the formula group is absent."""
    code = ErrorCode.EMPTY_FORMULA_GROUP


class InvalidInputError(RollEnhancementError):
    """A front-end request carries a value the roll cannot use."""
    code = ErrorCode.INVALID_INPUT
