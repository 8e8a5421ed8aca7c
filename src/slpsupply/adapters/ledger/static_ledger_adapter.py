from collections import Counter
from typing import Dict, Iterable, Optional

from slpsupply.core.dto import TokenMeta, TransactionRecord
from slpsupply.core.errors import NotFoundError
from slpsupply.ports.ledger_port import LedgerPort

class StaticLedgerAdapter(LedgerPort):
    def __init__(self,
                 transactions: Optional[Iterable[TransactionRecord]] = None,
                 token_meta: Optional[Dict[str, TokenMeta]] = None,
                 ):
        self._txs = {tx.txid: tx for tx in (transactions or [])}
        self._meta = dict(token_meta or {})
        # per-txid fetch counts, handy for asserting exactly-once visitation
        self.fetches: Counter = Counter()

    def get_transaction(self, txid: str) -> TransactionRecord:
        self.fetches[txid] += 1
        try:
            return self._txs[txid]
        except KeyError:
            raise NotFoundError(f"Unknown transaction {txid}") from None

    def get_token_meta(self, token_id: str) -> TokenMeta:
        try:
            return self._meta[token_id]
        except KeyError:
            raise NotFoundError(f"Unknown token {token_id}") from None
