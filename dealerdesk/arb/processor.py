"""ARBProcessor - opens arbitration cases and resolves them.

All writes to arb_records go through this class. Resolving a case:

1. Validate the submission against the rule table
2. Load the vehicle and the target case (must be Pending)
3. Build the outcome plan (pure, see plan_outcome)
4. Apply it in one transaction via ARBRepository.apply_outcome
5. Fire arb.outcome_processed
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from core.exceptions import (
    AlreadyProcessedError, ConflictError, NotFoundError, ValidationError,
)
from core.hooks import fire
from core.utils.logging_config import LogContext
from inventory.models import (
    PURCHASE_FIELDS, SALE_FIELDS, STATUS_INVENTORY, STATUS_SOLD, STATUS_WITHDRAWN,
)
from inventory.repositories import VehicleRepository
from .repositories import ARBRepository
from .validator import (
    INVENTORY_ARB, OUTCOME_BUYER_WITHDREW, OUTCOME_DENIED, OUTCOME_PENDING,
    OUTCOME_PRICE_ADJUSTMENT, OUTCOME_WITHDRAWN, SOLD_ARB, ARB_TYPES,
    OutcomeRequest, requires_confirmation, validate_outcome,
)

logger = logging.getLogger('dealerdesk.arb.processor')


@dataclass
class OutcomePlan:
    """Everything an outcome writes besides the case row itself."""
    vehicle_updates: Dict[str, Any]
    timeline_note: str
    expense: Optional[Dict[str, Any]] = None
    expense_value: Optional[Decimal] = None


def _money(value) -> Decimal:
    if value is None:
        return Decimal('0')
    return value if isinstance(value, Decimal) else Decimal(str(value))


def plan_outcome(vehicle: Dict[str, Any], arb_type: str, request: OutcomeRequest,
                 today: date = None) -> OutcomePlan:
    """Compute the vehicle/expense/timeline effects of an outcome.

    Pure: reads `vehicle` and `request`, touches nothing.
    """
    today = today or date.today()
    outcome = request.outcome
    reverted = STATUS_SOLD if arb_type == SOLD_ARB else STATUS_INVENTORY

    if outcome == OUTCOME_DENIED:
        note = ('ARB Denied - Reverted to Sold status' if arb_type == SOLD_ARB
                else 'ARB Denied - No changes')
        return OutcomePlan(vehicle_updates={'status': reverted}, timeline_note=note)

    if outcome == OUTCOME_PRICE_ADJUSTMENT and arb_type == SOLD_ARB:
        amount = request.adjustment_amount
        return OutcomePlan(
            vehicle_updates={'status': STATUS_SOLD},
            expense={
                'expense_description': 'Arbitration Modified',
                'expense_date': today.isoformat(),
                'cost': amount,
                'notes': request.notes or 'ARB Price Adjustment',
            },
            expense_value=amount,
            timeline_note=f'ARB Price Adjustment: ${amount}',
        )

    if outcome == OUTCOME_PRICE_ADJUSTMENT:
        amount = request.adjustment_amount
        current = _money(vehicle.get('bought_price'))
        adjusted = max(Decimal('0'), current - amount)
        return OutcomePlan(
            vehicle_updates={'status': STATUS_INVENTORY, 'bought_price': adjusted},
            expense_value=amount,
            timeline_note=(f'ARB Price Adjustment: ${amount} '
                           f'(reduces purchase cost from ${current} to ${adjusted})'),
        )

    if outcome == OUTCOME_BUYER_WITHDREW:
        cost = request.transport_cost
        updates = {name: None for name in SALE_FIELDS}
        updates['status'] = STATUS_INVENTORY
        location_note = f"Transport Location: {request.transport_location or 'N/A'}."
        if request.notes:
            location_note += f' {request.notes}'
        return OutcomePlan(
            vehicle_updates=updates,
            expense={
                'expense_description': f"Transport - {request.transport_type or 'N/A'}",
                'expense_date': request.transport_date or today.isoformat(),
                'cost': cost,
                'notes': location_note,
            },
            expense_value=cost,
            timeline_note=f'Buyer Withdrew - Transport Cost: ${cost}',
        )

    if outcome == OUTCOME_WITHDRAWN:
        updates = {name: None for name in PURCHASE_FIELDS}
        updates['status'] = STATUS_WITHDRAWN
        return OutcomePlan(
            vehicle_updates=updates,
            timeline_note='ARB Withdrawn - Vehicle removed from inventory',
        )

    raise ValidationError(f"Outcome '{outcome}' is not allowed for {arb_type}")


class ARBProcessor:

    def __init__(self, arb_repo: ARBRepository = None, vehicle_repo: VehicleRepository = None):
        self._arb_repo = arb_repo or ARBRepository()
        self._vehicle_repo = vehicle_repo or VehicleRepository()

    def initiate(self, vehicle_id, arb_type, created_by, notes=None):
        """Open a Pending case and move the vehicle to ARB.

        Sold ARB needs a Sold vehicle; Inventory ARB needs one in inventory.
        """
        if arb_type not in ARB_TYPES:
            raise ValidationError(f"arb_type must be one of: {', '.join(ARB_TYPES)}",
                                  details={'field': 'arb_type'})

        vehicle = self._vehicle_repo.get_by_id(vehicle_id)
        if not vehicle:
            raise NotFoundError('Vehicle', vehicle_id)

        if arb_type == SOLD_ARB and vehicle['status'] != STATUS_SOLD:
            raise ValidationError('Sold ARB can only be initiated for sold vehicles',
                                  details={'status': vehicle['status']})
        if arb_type == INVENTORY_ARB and vehicle['status'] != STATUS_INVENTORY:
            raise ValidationError('Inventory ARB can only be initiated for vehicles in inventory',
                                  details={'status': vehicle['status']})

        existing = self._arb_repo.get_pending(vehicle_id)
        if existing:
            raise ConflictError('Vehicle already has a pending ARB case',
                                details={'arb_id': existing['id']})

        record = self._arb_repo.create_pending(vehicle_id, arb_type, created_by=created_by, notes=notes)
        logger.info(f"{arb_type} #{record['id']} opened for vehicle {vehicle_id} by user {created_by}")
        fire('arb.initiated', {
            'arb_id': record['id'], 'vehicle_id': vehicle_id,
            'arb_type': arb_type, 'created_by': created_by,
        })
        return record

    def process_outcome(self, vehicle_id, arb_type, outcome, adjustment_amount=None,
                        transport_type=None, transport_location=None, transport_date=None,
                        transport_cost=None, notes=None, processed_by=None,
                        arb_id=None, confirm_withdrawal=False):
        """Resolve a Pending case.

        Returns:
            {'arb_record': ..., 'vehicle': ...} as committed.

        Raises:
            ValidationError, NotFoundError, AlreadyProcessedError
        """
        request = validate_outcome(
            arb_type, outcome,
            adjustment_amount=adjustment_amount, transport_cost=transport_cost,
            transport_type=transport_type, transport_location=transport_location,
            transport_date=transport_date, notes=notes,
        )
        if requires_confirmation(arb_type, outcome) and not confirm_withdrawal:
            raise ValidationError(
                'Withdrawing removes the vehicle from inventory and clears its purchase '
                'figures. Resubmit with confirm_withdrawal=true.',
                details={'field': 'confirm_withdrawal'})

        vehicle = self._vehicle_repo.get_by_id(vehicle_id)
        if not vehicle:
            raise NotFoundError('Vehicle', vehicle_id)

        if arb_id is not None:
            record = self._arb_repo.get_by_id(arb_id)
            if record and (record['vehicle_id'] != vehicle_id or record['arb_type'] != arb_type):
                record = None
        else:
            record = self._arb_repo.get_latest(vehicle_id, arb_type)
        if not record:
            raise NotFoundError('ARB record', arb_id,
                                message='No pending ARB record found for this vehicle')
        if record['outcome'] != OUTCOME_PENDING:
            raise AlreadyProcessedError(record['id'], record['outcome'])

        plan = plan_outcome(vehicle, arb_type, request)
        with LogContext(arb_id=record['id'], vehicle_id=vehicle_id):
            result = self._arb_repo.apply_outcome(
                record['id'], vehicle_id, request, plan, processed_by=processed_by)

            logger.info(f"ARB #{record['id']} ({arb_type}) resolved as {outcome} "
                        f"for vehicle {vehicle_id} by user {processed_by}")
            fire('arb.outcome_processed', {
                'arb_id': record['id'], 'vehicle_id': vehicle_id, 'arb_type': arb_type,
                'outcome': outcome, 'processed_by': processed_by,
            })
        return result
