"""
Typed service errors.

Business logic raises these; the FastAPI boundary in ``bakery_api.main``
turns each one into an HTTP status and an ``ErrorResponse`` body.
"""

from typing import Optional


class ServiceError(Exception):
    """Base class for failures that map to a client-facing HTTP error."""

    status_code: int = 500
    error: str = "Internal Server Error"
    message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


# =============================================================================
# VALIDATION (400)
# =============================================================================

class ValidationFailed(ServiceError):
    status_code = 400
    error = "Validation Error"
    message = "Invalid input"


class InvalidOrder(ValidationFailed):
    message = "Invalid order"


class InvalidStatus(ValidationFailed):
    message = "Invalid Status Value"


class NoPendingCode(ValidationFailed):
    message = "No OTP found. Please request a new OTP by signing up again."


class OtpExpired(ValidationFailed):
    message = "OTP has expired. Please signup again to receive a new OTP."


class OtpMismatch(ValidationFailed):
    message = "Invalid OTP"


class InvalidCredentials(ValidationFailed):
    error = "Invalid Credentials"
    message = "Invalid Credentials"


# =============================================================================
# AUTHENTICATION (401) / AUTHORIZATION (403)
# =============================================================================

class AuthenticationFailed(ServiceError):
    status_code = 401
    error = "Unauthorized"
    message = "Token verification failed"


class MissingToken(AuthenticationFailed):
    message = "No token, access denied"


class InvalidToken(AuthenticationFailed):
    error = "Invalid Token"
    message = "Token is not valid"


class TokenExpired(AuthenticationFailed):
    error = "Token Expired"
    message = "Token has expired. Please login again."


class AdminRequired(ServiceError):
    status_code = 403
    error = "Forbidden"
    message = "Access denied! Admins only."


# =============================================================================
# NOT FOUND (404)
# =============================================================================

class NotFound(ServiceError):
    status_code = 404
    error = "Not Found"
    message = "Resource not found"


class RegistrationNotFound(NotFound):
    message = "No signup found for this email. Please signup again."


class OrderNotFound(NotFound):
    message = "Order not found"


class ProductNotFound(NotFound):
    message = "Product not found"


# =============================================================================
# CONFLICT (409)
# =============================================================================

class Conflict(ServiceError):
    status_code = 409
    error = "Conflict"
    message = "Conflicting request"


class AlreadyRegistered(Conflict):
    message = "User already exists"


class AlreadyVerified(Conflict):
    message = "Email already verified. Please login."


class RegistrationConflict(Conflict):
    message = "A signup for this email is already in progress"


# =============================================================================
# UPSTREAM (502)
# =============================================================================

class DeliveryFailed(ServiceError):
    status_code = 502
    error = "Delivery Failed"
    message = "Failed to send verification email. Please try again."
