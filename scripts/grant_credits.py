"""
Top up a user's credit wallet (creating it if needed).

    python scripts/grant_credits.py --user-id user-123 --amount 50
    python scripts/grant_credits.py --user-id user-123 --amount 10 --reason promo

Usage on a server:
    set -o allexport; source .env; set +o allexport
    python scripts/grant_credits.py --user-id user-123 --amount 50
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path so `leadpipe` imports without an install.
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dotenv import load_dotenv

from leadpipe.config import Settings
from leadpipe.db import Store, make_engine
from leadpipe.billing import CreditLedger


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Grant lead credits to a user.")
    parser.add_argument("--user-id", required=True)
    parser.add_argument("--amount", type=int, required=True)
    parser.add_argument("--reason", default="grant")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    load_dotenv()

    if args.amount <= 0:
        parser.error("--amount must be positive")

    ledger = CreditLedger(Store(make_engine(Settings.from_env().database_url)))
    ledger.create_wallet(args.user_id)
    balance = ledger.grant_credits(args.user_id, args.amount, reason=args.reason)
    print(f"user={args.user_id} granted={args.amount} balance={balance}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
