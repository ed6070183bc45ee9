"""Per-vehicle cost and profit figures.

total_cost = bought_price + buy_fee + other_charges + sum(expenses)
net_profit = sale_invoice - total_cost   (None while unsold)

Rows come out of dict_from_row with floats, so every figure goes through
Decimal(str(x)) before arithmetic.
"""
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

CENTS = Decimal('0.01')


def to_decimal(value) -> Decimal:
    if value is None or value == '':
        return Decimal('0')
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def total_cost(vehicle: Dict[str, Any], expenses: Iterable) -> Decimal:
    """Purchase cost plus every expense booked against the vehicle.

    `expenses` may be expense rows (with a `cost` key) or plain amounts.
    """
    base = (to_decimal(vehicle.get('bought_price'))
            + to_decimal(vehicle.get('buy_fee'))
            + to_decimal(vehicle.get('other_charges')))
    extra = sum((to_decimal(e['cost'] if isinstance(e, dict) else e) for e in expenses), Decimal('0'))
    return (base + extra).quantize(CENTS)


def net_profit(vehicle: Dict[str, Any], expenses: Iterable) -> Optional[Decimal]:
    if vehicle.get('sale_invoice') is None:
        return None
    return (to_decimal(vehicle['sale_invoice']) - total_cost(vehicle, expenses)).quantize(CENTS)


def profit_summary(vehicle: Dict[str, Any], expenses: list) -> Dict[str, Any]:
    """JSON-friendly cost breakdown for the vehicle detail and report views."""
    expenses_total = sum((to_decimal(e['cost']) for e in expenses), Decimal('0'))
    cost = total_cost(vehicle, expenses)
    profit = net_profit(vehicle, expenses)
    return {
        'expenses_total': float(expenses_total),
        'total_cost': float(cost),
        'sale_invoice': vehicle.get('sale_invoice'),
        'net_profit': float(profit) if profit is not None else None,
    }
