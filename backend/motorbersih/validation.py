from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any


# Maximum single wash price in the smallest currency unit (Rp 99,999,999)
MAX_PRICE = 99_999_999

PAYMENT_METHODS = ("cash", "transfer", "qris", "ewallet")


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    FORBIDDEN = "forbidden"
    STORAGE = "storage"


class ServiceError(ValueError):
    """Base for errors raised by service-layer operations."""
    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ValidationError(ServiceError):
    """400-level input problem."""
    kind = ErrorKind.VALIDATION


class NotFoundError(ServiceError):
    """404-level missing operator, customer, transaction or ledger entries."""
    kind = ErrorKind.NOT_FOUND


class ConflictError(ServiceError):
    """409-level business rule conflict (e.g., duplicate plate, nothing to pay)."""
    kind = ErrorKind.CONFLICT


class PermissionDeniedError(ServiceError):
    """403-level: the caller may not act on this record (e.g., another operator's attendance)."""
    kind = ErrorKind.FORBIDDEN


class StorageError(ServiceError):
    """Database failure; the enclosing unit of work has been rolled back."""
    kind = ErrorKind.STORAGE


def require_int(payload: dict, key: str, *, required: bool = True) -> int | None:
    """
    Strict integer field: rejects floats, bools, decimals and scientific notation.
    """
    value = payload.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{key} is required")
        return None

    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if "e" in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def require_amount(payload: dict, key: str, *, allow_zero: bool = False) -> int:
    """
    Money in the smallest currency unit.

    Whole-valued floats ("50000.0" from JS clients) are accepted; fractions are not.
    """
    value = payload.get(key)
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{key} is required")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{key} must be a number")
    if not amount.is_finite() or amount != amount.to_integral_value():
        raise ValidationError(f"{key} must be a whole amount")

    amount = int(amount)
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValidationError(f"{key} must be > 0")
    if amount > MAX_PRICE:
        raise ValidationError(f"{key} cannot exceed {MAX_PRICE}")
    return amount


def require_rate(value: Any, key: str = "commission_rate") -> Decimal:
    """Commission rate as a percent with two decimals, 0..100."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{key} is required")
    try:
        rate = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{key} must be a number")
    if not rate.is_finite() or rate < 0 or rate > 100:
        raise ValidationError(f"{key} must be between 0 and 100")
    return rate.quantize(Decimal("0.01"))


def optional_str(payload: dict, key: str, *, max_length: int) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    value = str(value).strip()
    if len(value) > max_length:
        raise ValidationError(f"{key} exceeds max length {max_length}")
    return value or None


def require_bool(payload: dict, key: str, default: bool = False) -> bool:
    value = payload.get(key, default)
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, str)) and str(value).strip().lower() in ("1", "true", "yes"):
        return True
    if isinstance(value, (int, str)) and str(value).strip().lower() in ("0", "false", "no", ""):
        return False
    raise ValidationError(f"{key} must be a boolean")


def require_payment_method(value: Any) -> str:
    method = str(value or "").strip().lower()
    if method not in PAYMENT_METHODS:
        raise ValidationError(
            f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}"
        )
    return method


def parse_date(value: Any, key: str = "date") -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError(f"{key} must be an ISO-8601 date (YYYY-MM-DD)")
