"""
Lease input validation (``lease_kernel.domain.validation``).

Pure checks with no I/O, run once before a lease is created.  The term,
amounts and parties of a lease are immutable afterwards, so these checks
are never repeated on later transitions.

Fields are checked in a fixed order and the first violation wins:
property_id, landlord_id, tenant_id, rent_amount, deposit, dates, terms.

Party and property IDs are stored exactly as given.  Amounts must fit the
``Numeric(12, 2)`` columns they are persisted in: whole cents, at most
``MAX_AMOUNT``.  Accepted amounts are returned quantized to cents so every
store holds the same value.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from lease_kernel.domain.lease import LeaseInput
from lease_kernel.exceptions import ValidationError

DEFAULT_DEPOSIT_CAP = Decimal("5000")

_CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("9999999999.99")


@dataclass(frozen=True)
class ValidatedLeaseInput:
    """Creation input after normalisation; amounts are Decimal cents."""
    property_id: str
    landlord_id: str
    tenant_id: str
    rent_amount: Decimal
    deposit: Decimal
    start_date: date
    end_date: date
    terms: str


def _require_text(value: Any, field: str, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, f"{label} is required")
    return value


def to_decimal(value: Any, field: str) -> Decimal:
    """Normalise ``value`` to a finite Decimal or raise ValidationError."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(field, "must be a number")
    if isinstance(value, float):
        # Route floats through str so 0.1 does not become 0.1000000000000000055...
        value = str(value)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(field, f"'{value}' is not a number") from None
    if not amount.is_finite():
        raise ValidationError(field, "must be a finite number")
    return amount


def _to_cents(amount: Decimal, field: str) -> Decimal:
    """Reject sub-cent precision and values beyond the column range."""
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(field, f"must not exceed {MAX_AMOUNT}")
    if amount != amount.quantize(_CENT):
        raise ValidationError(field, "must not have more than 2 decimal places")
    return amount.quantize(_CENT)


def _require_date(value: Any, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if not isinstance(value, date):
        raise ValidationError(field, "a calendar date is required")
    return value


def validate_lease_input(
    data: LeaseInput,
    deposit_cap: Decimal = DEFAULT_DEPOSIT_CAP,
) -> ValidatedLeaseInput:
    """Check every static invariant of a new lease.

    Returns:
        The normalised input.

    Raises:
        ValidationError: naming the first violated field.
    """
    property_id = _require_text(data.property_id, "property_id", "Property ID")
    landlord_id = _require_text(data.landlord_id, "landlord_id", "Landlord ID")
    tenant_id = _require_text(data.tenant_id, "tenant_id", "Tenant ID")
    if tenant_id == landlord_id:
        raise ValidationError("tenant_id", "tenant must differ from landlord")

    rent_amount = to_decimal(data.rent_amount, "rent_amount")
    if rent_amount <= 0:
        raise ValidationError("rent_amount", "must be greater than zero")
    rent_amount = _to_cents(rent_amount, "rent_amount")

    deposit = to_decimal(data.deposit, "deposit")
    if deposit < 0:
        raise ValidationError("deposit", "must be a non-negative number")
    if deposit > deposit_cap:
        raise ValidationError("deposit", f"must not exceed {deposit_cap}")
    deposit = _to_cents(deposit, "deposit")

    start_date = _require_date(data.start_date, "start_date")
    end_date = _require_date(data.end_date, "end_date")
    if end_date <= start_date:
        raise ValidationError(
            "end_date",
            f"end_date ({end_date}) must be after start_date ({start_date})",
        )

    _require_text(data.terms, "terms", "Lease terms")

    return ValidatedLeaseInput(
        property_id=property_id,
        landlord_id=landlord_id,
        tenant_id=tenant_id,
        rent_amount=rent_amount,
        deposit=deposit,
        start_date=start_date,
        end_date=end_date,
        terms=data.terms,
    )


def validate_signature(signature: Any) -> str:
    """A signature is an opaque, non-blank string."""
    if not isinstance(signature, str) or not signature.strip():
        raise ValidationError("signature", "Signature is required")
    return signature
