"""
Account directory — read-only view of bank accounts and credit cards.

The directory is owned elsewhere. The ledger engine only uses it
to fill in the display name and kind of AccountBalance rows the
caller left blank.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_core.models.financial_account import FinancialAccount


class AccountDirectory:

    def __init__(self, db: Session):
        self.db = db

    def lookup(self, owner_id: str, account_ids: set[str]) -> dict[str, FinancialAccount]:
        """Accounts of this owner among account_ids, keyed by id."""
        if not account_ids:
            return {}
        accounts = self.db.execute(
            select(FinancialAccount).where(
                FinancialAccount.owner_id == owner_id,
                FinancialAccount.id.in_(account_ids),
            )
        ).scalars().all()
        return {a.id: a for a in accounts}
