# Overview: Typed change notifications for the ledger, built on blinker signals.

"""
Ledger Events

Signals fire only AFTER the write they describe has committed, so a
subscriber never observes state that a rollback later erases.

A failing subscriber is logged and skipped: notification is a side channel
and must never undo or fail a committed mutation.

Payload keywords:
- transaction_created: transaction (domain.Transaction)
- stock_changed: item (domain.Item), quantity_change (int)
- item_created: item (domain.Item)
- item_deleted: item (domain.Item), actor (domain.Actor), purged (int)
"""

import logging

from blinker import Namespace

logger = logging.getLogger(__name__)

ledger_signals = Namespace()

transaction_created = ledger_signals.signal("transaction-created")
stock_changed = ledger_signals.signal("stock-changed")
item_created = ledger_signals.signal("item-created")
item_deleted = ledger_signals.signal("item-deleted")


def publish(signal, sender, **payload) -> int:
    """Deliver to every live receiver; returns how many succeeded."""
    delivered = 0
    for receiver in list(signal.receivers_for(sender)):
        try:
            receiver(sender, **payload)
            delivered += 1
        except Exception:
            logger.exception("Receiver %r failed for signal %s", receiver, signal.name)
    return delivered
