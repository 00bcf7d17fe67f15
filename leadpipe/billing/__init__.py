"""
Billing for delivered leads.

- lead_key.py: canonical lead identity (pure, no I/O)
- ledger.py: wallet + transaction log; charges once per (user, lead key)
"""

from .lead_key import generate_lead_key
from .ledger import CreditLedger, DeliveredLead, DeliverySummary

__all__ = ["generate_lead_key", "CreditLedger", "DeliveredLead", "DeliverySummary"]
