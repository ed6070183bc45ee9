"""Simple in-process callback registry for domain events.

Usage:
    from core.hooks import on, fire

    on('arb.outcome_processed', notify_accounting)
    fire('arb.outcome_processed', {'arb_id': 7, 'vehicle_id': 42, 'outcome': 'Denied'})

Events:
    arb.initiated          ARB case opened, vehicle moved to ARB
    arb.outcome_processed  ARB case resolved
    vehicle.sold           sale recorded
    chat.message_sent      direct message stored

Hooks run after the transaction commits; a failing hook is logged and never
undoes the change that fired it.
"""

import logging

logger = logging.getLogger('dealerdesk.core.hooks')

_registry: dict[str, list] = {}


def on(event_type: str, callback):
    """Register a callback for an event type."""
    _registry.setdefault(event_type, []).append(callback)
    logger.debug(f"Registered hook for {event_type}: {callback.__name__}")


def fire(event_type: str, payload: dict):
    """Call all registered callbacks for event_type."""
    for cb in _registry.get(event_type, []):
        try:
            cb(payload)
        except Exception as e:
            logger.error(f"Hook error for {event_type} in {getattr(cb, '__name__', cb)}: {e}", exc_info=True)


def clear(event_type: str = None):
    """Clear hooks. If event_type given, clear only that type. Used in tests."""
    if event_type:
        _registry.pop(event_type, None)
    else:
        _registry.clear()
