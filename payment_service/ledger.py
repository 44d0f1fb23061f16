"""
In-memory account ledger
"""
import threading
from dataclasses import replace
from decimal import Decimal
from typing import Dict, Mapping
import logging

from common.error_handling import AccountNotFoundError, InsufficientFundsError, InvalidAmountError
from payment_service.models import Account

logger = logging.getLogger(__name__)

class AccountLedger:
    """Balances keyed by account id; debits are serialized per account"""

    def __init__(self, balances: Mapping[int, Decimal]):
        self._accounts: Dict[int, Account] = {
            account_id: Account(id=account_id, balance=Decimal(str(balance)))
            for account_id, balance in balances.items()
        }
        self._locks: Dict[int, threading.Lock] = {
            account_id: threading.Lock() for account_id in self._accounts
        }

    def lookup(self, account_id: int) -> Account:
        """Return a snapshot of the account"""
        account = self._accounts.get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        with self._locks[account_id]:
            return replace(account)

    def debit(self, account_id: int, amount: Decimal) -> Decimal:
        """Subtract amount from the balance and return the new balance"""
        if amount < 0:
            raise InvalidAmountError()
        account = self._accounts.get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)

        with self._locks[account_id]:
            if account.balance < amount:
                logger.warning(f"Insufficient funds for account {account_id}: balance={account.balance}, amount={amount}")
                raise InsufficientFundsError(account_id)
            account.balance -= amount
            return account.balance

    def balances(self) -> Dict[int, Decimal]:
        return {account_id: self.lookup(account_id).balance for account_id in self._accounts}
