from __future__ import annotations

from abc import ABC, abstractmethod
from slpsupply.core.dto import TokenMeta, TransactionRecord

class LedgerPort(ABC):
    """
    Abstract Class for resolving transactions and token metadata from an indexer.

    Implementations raise NotFoundError for unknown ids and DataSourceError
    for any other fetch failure.
    """

    # --- Transactions ---

    @abstractmethod
    def get_transaction(self, txid: str) -> TransactionRecord:
        raise NotImplementedError

    # --- Token metadata (issuance info) ---

    @abstractmethod
    def get_token_meta(self, token_id: str) -> TokenMeta:
        raise NotImplementedError
