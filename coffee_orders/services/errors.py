"""Order flow exceptions rendered as ``{"error", "code"}`` responses."""

from __future__ import annotations

from decimal import Decimal


class OrderFlowError(Exception):
    """Base class for expected order admission, pricing and stock failures."""

    status_code: int = 400
    code: str = "OrderError"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class OrderValidationError(OrderFlowError):
    """Malformed or missing input, detected before any write."""

    code = "ValidationError"


class StaffAccessRequiredError(OrderFlowError):
    status_code = 403
    code = "Forbidden"


class OrderNotFoundError(OrderFlowError):
    status_code = 404
    code = "OrderNotFound"

    def __init__(self, order_id: int) -> None:
        self.order_id = order_id
        super().__init__("Order not found")


class ItemUnavailableError(OrderFlowError):
    code = "ItemUnavailable"


class InvalidSupplementError(OrderFlowError):
    code = "InvalidSupplement"


class InvalidOptionError(OrderFlowError):
    code = "InvalidOption"


class MissingRequiredGroupError(OrderFlowError):
    code = "MissingRequiredGroup"

    def __init__(self, breakfast_id: int, group_titles: list[str]) -> None:
        self.breakfast_id = breakfast_id
        self.group_titles = group_titles
        super().__init__(
            f"Must select one option from each required option group for breakfast {breakfast_id}. "
            f"Missing groups: [{', '.join(group_titles)}]"
        )


class PriceMismatchError(OrderFlowError):
    code = "PriceMismatch"

    def __init__(self, label: str, expected: Decimal, provided: Decimal) -> None:
        self.label = label
        self.expected = expected
        self.provided = provided
        super().__init__(f"Invalid unit_price for {label}. Expected {expected:.2f}, got {provided:.2f}")


class TotalPriceMismatchError(OrderFlowError):
    code = "TotalPriceMismatch"

    def __init__(self, expected: Decimal, provided: Decimal) -> None:
        self.expected = expected
        self.provided = provided
        super().__init__(f"Total price mismatch. Expected {expected:.2f}, got {provided:.2f}")


class RateLimitExceededError(OrderFlowError):
    status_code = 429
    code = "RateLimitExceeded"


class DuplicateOrderError(OrderFlowError):
    status_code = 429
    code = "DuplicateOrder"

    def __init__(self) -> None:
        super().__init__("Duplicate order detected. Please wait a moment.")


class IngredientNotFoundError(OrderFlowError):
    code = "IngredientNotFound"

    def __init__(self, ingredient_id: int) -> None:
        self.ingredient_id = ingredient_id
        super().__init__(f"Ingredient ID {ingredient_id} not found")


class InsufficientStockError(OrderFlowError):
    code = "InsufficientStock"

    def __init__(self, ingredient_name: str, required: Decimal, available: Decimal) -> None:
        self.ingredient_name = ingredient_name
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient stock for {ingredient_name}. Required: {required.normalize():f}, "
            f"Available: {available.normalize():f}"
        )


class AlreadyApprovedError(OrderFlowError):
    code = "AlreadyApproved"

    def __init__(self) -> None:
        super().__init__("Order already approved and not cancelled")


class AlreadyDeductedError(OrderFlowError):
    code = "AlreadyDeducted"

    def __init__(self) -> None:
        super().__init__("Stock already deducted for this order")


class AlreadyCancelledError(OrderFlowError):
    code = "AlreadyCancelled"

    def __init__(self) -> None:
        super().__init__("Order already cancelled")


class AlreadyRestoredError(OrderFlowError):
    code = "AlreadyRestored"

    def __init__(self) -> None:
        super().__init__("Stock already restored for this order")


class InvalidStatusTransitionError(OrderFlowError):
    code = "InvalidStatusTransition"

    def __init__(self, current: str, new: str) -> None:
        self.current = current
        self.new = new
        super().__init__(f"Cannot change order status from {current} to {new}")


class ResourceNotFoundError(OrderFlowError):
    status_code = 404
    code = "NotFound"
