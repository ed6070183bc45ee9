"""Outcome validator for ARB (arbitration) cases.

Pure: checks a submitted outcome against the rule table and normalizes the
money and date fields. No database access.

    arb_type        outcome            required
    Sold ARB        Price Adjustment   adjustment_amount > 0
    Sold ARB        Buyer Withdrew     transport_cost > 0
    Sold ARB        Denied             -
    Inventory ARB   Price Adjustment   adjustment_amount > 0
    Inventory ARB   Withdrawn          - (needs confirmation)
    Inventory ARB   Denied             -
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from core.exceptions import ValidationError

SOLD_ARB = 'Sold ARB'
INVENTORY_ARB = 'Inventory ARB'
ARB_TYPES = (SOLD_ARB, INVENTORY_ARB)

OUTCOME_PENDING = 'Pending'
OUTCOME_DENIED = 'Denied'
OUTCOME_PRICE_ADJUSTMENT = 'Price Adjustment'
OUTCOME_BUYER_WITHDREW = 'Buyer Withdrew'
OUTCOME_WITHDRAWN = 'Withdrawn'

RULES = {
    SOLD_ARB: {
        OUTCOME_PRICE_ADJUSTMENT: ('adjustment_amount',),
        OUTCOME_BUYER_WITHDREW: ('transport_cost',),
        OUTCOME_DENIED: (),
    },
    INVENTORY_ARB: {
        OUTCOME_PRICE_ADJUSTMENT: ('adjustment_amount',),
        OUTCOME_WITHDRAWN: (),
        OUTCOME_DENIED: (),
    },
}


@dataclass
class OutcomeRequest:
    """A validated outcome submission."""
    arb_type: str
    outcome: str
    adjustment_amount: Optional[Decimal] = None
    transport_cost: Optional[Decimal] = None
    transport_type: Optional[str] = None
    transport_location: Optional[str] = None
    transport_date: Optional[str] = None
    notes: Optional[str] = None


def allowed_outcomes(arb_type: str) -> list:
    return list(RULES.get(arb_type, {}))


def required_fields(arb_type: str, outcome: str) -> tuple:
    return RULES.get(arb_type, {}).get(outcome, ())


def requires_confirmation(arb_type: str, outcome: str) -> bool:
    """Withdrawing an inventory vehicle wipes its purchase figures."""
    return arb_type == INVENTORY_ARB and outcome == OUTCOME_WITHDRAWN


def _parse_money(value, field: str) -> Optional[Decimal]:
    if value is None or value == '':
        return None
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be a number', details={'field': field})
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f'{field} must be a number', details={'field': field})
    if not amount.is_finite():
        raise ValidationError(f'{field} must be a number', details={'field': field})
    return amount


def validate_outcome(arb_type, outcome, adjustment_amount=None, transport_cost=None,
                     transport_type=None, transport_location=None, transport_date=None,
                     notes=None) -> OutcomeRequest:
    """Validate an outcome submission.

    Returns:
        OutcomeRequest with money fields as Decimal.

    Raises:
        ValidationError: unknown type, missing or disallowed outcome, or a
            required amount that is missing, non-numeric or not positive.
    """
    if arb_type not in ARB_TYPES:
        raise ValidationError(f"arb_type must be one of: {', '.join(ARB_TYPES)}",
                              details={'field': 'arb_type'})
    if not outcome:
        raise ValidationError('outcome is required', details={'field': 'outcome'})
    if outcome == OUTCOME_PENDING:
        raise ValidationError('Pending is not a valid outcome', details={'field': 'outcome'})
    if outcome not in RULES[arb_type]:
        raise ValidationError(
            f"Outcome '{outcome}' is not allowed for {arb_type}",
            details={'field': 'outcome', 'allowed': allowed_outcomes(arb_type)})

    amounts = {
        'adjustment_amount': _parse_money(adjustment_amount, 'adjustment_amount'),
        'transport_cost': _parse_money(transport_cost, 'transport_cost'),
    }
    for field in required_fields(arb_type, outcome):
        value = amounts[field]
        if value is None:
            raise ValidationError(f'{field} is required for {outcome}', details={'field': field})
        if value <= 0:
            raise ValidationError(f'{field} must be greater than 0', details={'field': field})

    if transport_date:
        try:
            datetime.strptime(str(transport_date), '%Y-%m-%d')
        except ValueError:
            raise ValidationError('transport_date must be a YYYY-MM-DD date',
                                  details={'field': 'transport_date'})

    return OutcomeRequest(
        arb_type=arb_type,
        outcome=outcome,
        adjustment_amount=amounts['adjustment_amount'],
        transport_cost=amounts['transport_cost'],
        transport_type=transport_type or None,
        transport_location=transport_location or None,
        transport_date=transport_date or None,
        notes=notes or None,
    )


def rules_table() -> dict:
    """Rule table in a form the outcome form can render."""
    return {
        arb_type: [
            {
                'outcome': outcome,
                'required_fields': list(fields),
                'requires_confirmation': requires_confirmation(arb_type, outcome),
            }
            for outcome, fields in outcomes.items()
        ]
        for arb_type, outcomes in RULES.items()
    }
