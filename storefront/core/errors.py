# storefront/core/errors.py
"""
Typed failures raised by services.

Every error is an HTTPException subclass so FastAPI maps it to the right
status code on its own; the handlers in `storefront.main` render it inside
the `{message, data}` envelope.
"""
from typing import Any

from fastapi import HTTPException, status


class StorefrontError(HTTPException):
    """Base class for all storefront errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Bad request"

    def __init__(self, message: str | None = None, data: Any = None):
        self.message = message or self.default_message
        self.data = data
        super().__init__(status_code=self.status_code, detail=self.message)


class ValidationError(StorefrontError):
    """Malformed or missing fields."""

    status_code = 422
    default_message = "Validation failed"


class Unauthorized(StorefrontError):
    """Missing, invalid or expired token, or bad credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"

    def __init__(self, message: str | None = None, data: Any = None):
        super().__init__(message, data)
        self.headers = {"WWW-Authenticate": "Bearer"}


class Forbidden(StorefrontError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFound(StorefrontError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class InvalidState(StorefrontError):
    """Operation not allowed in the order's current state."""

    default_message = "Operation not allowed in current state"


class InvalidTransition(StorefrontError):
    """Requested status change is not in the transition table."""

    def __init__(self, current: str, new: str, axis: str = "order_status"):
        self.current = current
        self.new = new
        self.axis = axis
        super().__init__(
            f"Invalid {axis} transition: {current} -> {new}",
            data={"field": axis, "from": current, "to": new},
        )


class ConflictError(StorefrontError):
    """Another writer changed the order status first."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Order was modified concurrently"


class InsufficientStock(StorefrontError):
    def __init__(self, product_name: str, available_quantity: int):
        self.available_quantity = available_quantity
        super().__init__(
            f"Product {product_name} only has {available_quantity} item(s) left",
            data={"availableQuantity": available_quantity},
        )


class DuplicateEmail(StorefrontError):
    status_code = 422

    def __init__(self, email: str):
        self.email = email
        super().__init__("Email already exists", data={"email": "Email already exists"})


class PaymentGatewayError(StorefrontError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Payment gateway error"


class AddressLookupError(StorefrontError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Address directory unavailable"
