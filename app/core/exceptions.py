from fastapi import status


class CheckmateError(Exception):
    """Base class for domain errors surfaced to API callers."""
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str, status_code: int | None = None):
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class ValidationError(CheckmateError):
    """Missing or malformed required fields (phone number, scores, reports)."""
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidStateError(CheckmateError):
    """Action attempted on an order in the wrong lifecycle state."""
    status_code = status.HTTP_409_CONFLICT


class QuotaExceededError(CheckmateError):
    status_code = status.HTTP_403_FORBIDDEN


class InsufficientCreditsError(CheckmateError):
    status_code = status.HTTP_403_FORBIDDEN


class PaymentProviderError(CheckmateError):
    """The mobile-money provider call failed, was rejected or timed out."""
    status_code = status.HTTP_502_BAD_GATEWAY


class NotFoundError(CheckmateError):
    status_code = status.HTTP_404_NOT_FOUND


class AuthError(CheckmateError):
    """Missing/invalid credentials (401) or insufficient privilege (403)."""
    status_code = status.HTTP_401_UNAUTHORIZED
