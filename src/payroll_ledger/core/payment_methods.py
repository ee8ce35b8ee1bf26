"""Payment method normalization."""

from __future__ import annotations

from payroll_ledger.core.errors import ValidationError
from payroll_ledger.core.types import PaymentMethod

# Values found in older records.
LEGACY_ALIASES: dict[str, PaymentMethod] = {
    "bank_transfer": PaymentMethod.ACH,
    "wire_transfer": PaymentMethod.WIRE,
}


def normalize_payment_method(method: str | PaymentMethod | None) -> PaymentMethod | None:
    """Map a raw method string to its canonical value, or None if unknown."""
    if method is None:
        return None
    if isinstance(method, PaymentMethod):
        return method
    value = method.strip().lower()
    if not value:
        return None
    if value in LEGACY_ALIASES:
        return LEGACY_ALIASES[value]
    try:
        return PaymentMethod(value)
    except ValueError:
        return None


def require_payment_method(method: str | PaymentMethod | None) -> PaymentMethod:
    """Normalize a method, raising ValidationError if it is missing or unknown."""
    normalized = normalize_payment_method(method)
    if normalized is None:
        raise ValidationError(f"Unsupported payment method: {method!r}", field="payment_method")
    return normalized
