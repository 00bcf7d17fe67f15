"""
leadpipe.billing.ledger

Charges a user one credit per net-new lead, ever.

Every public mutation runs in exactly one Store.transaction():
- the wallet row is locked first (FOR UPDATE on postgres, BEGIN IMMEDIATE on sqlite)
- classification, decrement, audit rows and counters commit or roll back together
- the decrement is conditional (`balance >= n`), so no race drives it negative

Audit trail lives in credit_transactions:
- delta = -1, reason = lead_delivered   (one per user + lead key; unique index)
- delta = +1, reason = refund           (one per charge; unique refund_of_id)
- delta = +n, reason = grant|<custom>   (top-ups)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from sqlalchemy import func, insert, select, update
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from ..db import Store
from ..errors import InsufficientCreditsError, WalletNotFoundError
from ..models import DeliveryContact
from ..schema import Contact, CreditTransaction, CreditWallet, LeadSearch
from .lead_key import generate_lead_key

logger = logging.getLogger(__name__)

REASON_DELIVERED = "lead_delivered"
REASON_REFUND = "refund"
REASON_GRANT = "grant"


@dataclass
class DeliveredLead:
    contact_id: Optional[int]
    lead_key: str
    is_net_new: bool


@dataclass
class DeliverySummary:
    total_found: int = 0
    total_deduped: int = 0
    total_net_new: int = 0
    credits_charged: int = 0
    delivered_leads: List[DeliveredLead] = field(default_factory=list)


class CreditLedger:
    def __init__(self, store: Store) -> None:
        self.store = store

    # -----------------------------
    # Wallets
    # -----------------------------
    def create_wallet(self, user_id: str, balance: int = 0) -> int:
        """
        Create the user's wallet; returns its id. Existing wallets are left
        alone, including one created concurrently by another caller.
        """
        try:
            with self.store.transaction() as conn:
                existing = _wallet_id(conn, user_id)
                if existing is not None:
                    return existing
                wallet_id = conn.execute(
                    insert(CreditWallet).values(user_id=user_id, balance=0).returning(CreditWallet.id)
                ).scalar_one()
                if balance > 0:
                    self._credit(conn, user_id, balance, REASON_GRANT)
        except IntegrityError:
            # lost the insert race on the unique user_id
            with self.store.connect() as conn:
                existing = _wallet_id(conn, user_id)
            if existing is None:
                raise
            logger.info("Wallet for user=%s was created concurrently, reusing id=%s", user_id, existing)
            return existing
        logger.info("Created wallet for user=%s balance=%s", user_id, balance)
        return wallet_id

    def grant_credits(self, user_id: str, amount: int, reason: str = REASON_GRANT) -> int:
        """Add `amount` credits; returns the new balance."""
        if amount <= 0:
            raise ValueError("amount must be positive")
        with self.store.transaction() as conn:
            _lock_wallet(conn, user_id)
            balance = self._credit(conn, user_id, amount, reason)
        logger.info("Granted %s credits to user=%s (%s) balance=%s", amount, user_id, reason, balance)
        return balance

    def get_balance(self, user_id: str) -> int:
        with self.store.connect() as conn:
            balance = conn.execute(
                select(CreditWallet.balance).where(CreditWallet.user_id == user_id)
            ).scalar_one_or_none()
        if balance is None:
            raise WalletNotFoundError(user_id)
        return balance

    def has_lead_been_delivered(self, user_id: str, lead_key: str) -> bool:
        with self.store.connect() as conn:
            return _has_charge(conn, user_id, lead_key)

    # -----------------------------
    # Delivery
    # -----------------------------
    def process_delivery(
        self,
        user_id: str,
        lead_search_id: Optional[int],
        contacts: Sequence[DeliveryContact],
    ) -> DeliverySummary:
        """
        Classify each contact as net-new or duplicate for this user and charge
        one credit per net-new lead key.

        Dedupe is per lead key, not per contact. A key is a duplicate when the
        user was already charged for it, or when it appeared earlier in this
        same batch: only the first contact carrying a key counts as net-new,
        so two inboxes at one company are one lead and one credit.

        Raises WalletNotFoundError / InsufficientCreditsError when net-new
        leads cannot be paid for; nothing is written in that case.
        """
        summary = DeliverySummary(total_found=len(contacts))

        with self.store.transaction() as conn:
            balance = _lock_wallet_or_none(conn, user_id)

            seen: set = set()
            for contact in contacts:
                key = generate_lead_key(contact)
                is_net_new = key not in seen and not _has_charge(conn, user_id, key)
                seen.add(key)
                if is_net_new:
                    summary.total_net_new += 1
                else:
                    summary.total_deduped += 1
                summary.delivered_leads.append(DeliveredLead(contact.id, key, is_net_new))

            net_new = [lead for lead in summary.delivered_leads if lead.is_net_new]
            if net_new:
                if balance is None:
                    raise WalletNotFoundError(user_id)
                charged = conn.execute(
                    update(CreditWallet)
                    .where(CreditWallet.user_id == user_id, CreditWallet.balance >= len(net_new))
                    .values(balance=CreditWallet.balance - len(net_new))
                )
                if charged.rowcount != 1:
                    raise InsufficientCreditsError(len(net_new), balance, summary=summary)

                for lead in net_new:
                    conn.execute(
                        insert(CreditTransaction).values(
                            user_id=user_id,
                            lead_search_id=lead_search_id,
                            lead_key=lead.lead_key,
                            delta=-1,
                            reason=REASON_DELIVERED,
                        )
                    )
                    if lead.contact_id is not None:
                        conn.execute(
                            update(Contact).where(Contact.id == lead.contact_id).values(lead_key=lead.lead_key)
                        )
                summary.credits_charged = len(net_new)

            if lead_search_id is not None:
                conn.execute(
                    update(LeadSearch)
                    .where(LeadSearch.id == lead_search_id)
                    .values(
                        total_found=LeadSearch.total_found + summary.total_found,
                        total_deduped=LeadSearch.total_deduped + summary.total_deduped,
                        total_net_new=LeadSearch.total_net_new + summary.total_net_new,
                        credits_charged=LeadSearch.credits_charged + summary.credits_charged,
                    )
                )

        logger.info(
            "Processed lead delivery user=%s lead_search_id=%s found=%s deduped=%s net_new=%s charged=%s",
            user_id,
            lead_search_id,
            summary.total_found,
            summary.total_deduped,
            summary.total_net_new,
            summary.credits_charged,
        )
        return summary

    def refund_lead_credit(self, user_id: str, lead_search_id: Optional[int], lead_key: str) -> bool:
        """
        Give back the credit charged for `lead_key` in `lead_search_id`.

        Returns False (and logs a warning) when there is no such charge or it
        was already refunded. Raises WalletNotFoundError when the user has no wallet.
        """
        with self.store.transaction() as conn:
            if _lock_wallet_or_none(conn, user_id) is None:
                raise WalletNotFoundError(user_id)

            charge_q = select(CreditTransaction.id).where(
                CreditTransaction.user_id == user_id,
                CreditTransaction.lead_key == lead_key,
                CreditTransaction.delta == -1,
            )
            if lead_search_id is not None:
                charge_q = charge_q.where(CreditTransaction.lead_search_id == lead_search_id)
            charge_id = conn.execute(charge_q.limit(1)).scalar_one_or_none()
            if charge_id is None:
                logger.warning(
                    "Refund skipped, lead was never charged user=%s lead_search_id=%s lead_key=%s",
                    user_id,
                    lead_search_id,
                    lead_key,
                )
                return False

            already = conn.execute(
                select(CreditTransaction.id).where(CreditTransaction.refund_of_id == charge_id)
            ).first()
            if already is not None:
                logger.warning(
                    "Refund skipped, lead already refunded user=%s lead_search_id=%s lead_key=%s",
                    user_id,
                    lead_search_id,
                    lead_key,
                )
                return False

            conn.execute(
                update(CreditWallet)
                .where(CreditWallet.user_id == user_id)
                .values(balance=CreditWallet.balance + 1)
            )
            conn.execute(
                insert(CreditTransaction).values(
                    user_id=user_id,
                    lead_search_id=lead_search_id,
                    lead_key=lead_key,
                    delta=1,
                    reason=REASON_REFUND,
                    refund_of_id=charge_id,
                )
            )

        logger.info("Refunded credit user=%s lead_search_id=%s lead_key=%s", user_id, lead_search_id, lead_key)
        return True

    def _credit(self, conn: Connection, user_id: str, amount: int, reason: str) -> int:
        balance = conn.execute(
            update(CreditWallet)
            .where(CreditWallet.user_id == user_id)
            .values(balance=CreditWallet.balance + amount)
            .returning(CreditWallet.balance)
        ).scalar_one_or_none()
        if balance is None:
            raise WalletNotFoundError(user_id)
        conn.execute(insert(CreditTransaction).values(user_id=user_id, delta=amount, reason=reason))
        return balance


def _wallet_id(conn: Connection, user_id: str) -> Optional[int]:
    return conn.execute(select(CreditWallet.id).where(CreditWallet.user_id == user_id)).scalar_one_or_none()


def _lock_wallet_or_none(conn: Connection, user_id: str) -> Optional[int]:
    return conn.execute(
        select(CreditWallet.balance).where(CreditWallet.user_id == user_id).with_for_update()
    ).scalar_one_or_none()


def _lock_wallet(conn: Connection, user_id: str) -> int:
    balance = _lock_wallet_or_none(conn, user_id)
    if balance is None:
        raise WalletNotFoundError(user_id)
    return balance


def _has_charge(conn: Connection, user_id: str, lead_key: str) -> bool:
    n = conn.execute(
        select(func.count())
        .select_from(CreditTransaction)
        .where(
            CreditTransaction.user_id == user_id,
            CreditTransaction.lead_key == lead_key,
            CreditTransaction.delta == -1,
        )
    ).scalar_one()
    return n > 0
