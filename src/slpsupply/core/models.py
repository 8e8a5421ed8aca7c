from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple, Union

from slpsupply.core.dto import TokenMeta, TxInput, TxOutput
from slpsupply.core.spent_tracker import SpentOutputTracker


class OutputKeyMode(str, Enum):
    SCRIPT = "script"       # key by locking script (reused addresses collide)
    OUTPOINT = "outpoint"   # key by "txid:index"



# Decoded payloads

@dataclass(frozen=True)
class Issuance:
    token_type: int
    quantity: int                      # raw units
    mint_baton_vout: Optional[int] = None
    decimals: int = 0
    ticker: str = ""
    name: str = ""


@dataclass(frozen=True)
class Mint:
    token_type: int
    token_id: str
    quantity: int                      # raw units
    mint_baton_vout: Optional[int] = None


@dataclass(frozen=True)
class Transfer:
    token_type: int
    token_id: str
    amounts: Tuple[int, ...]           # amounts[k] goes to output k + 1


DecodedPayload = Union[Issuance, Mint, Transfer]



# Configuration model

@dataclass(frozen=True)
class SupplyConfig:
    """
    Run configuration for a supply trace.
    """

    token_id: str
    key_mode: OutputKeyMode = OutputKeyMode.SCRIPT



# Ledger models

@dataclass
class LedgerEntry:

    output_script: str
    txid: str
    output_index: int

    amount: Decimal                    # exact, already scaled by decimals
    is_mint_baton: bool = False

    @property
    def quantity_str(self) -> str:
        # fixed-point, never scientific notation
        return format(self.amount, "f")

    @property
    def quantity(self) -> float:
        return float(self.amount)


@dataclass
class TraversalContext:
    """
    Mutable state of one traversal. A fresh context per run keeps
    independent traversals from sharing accumulators.
    """

    key_mode: OutputKeyMode = OutputKeyMode.SCRIPT

    ledger: Dict[str, LedgerEntry] = field(default_factory=dict)
    visited: Set[str] = field(default_factory=set)
    spent: SpentOutputTracker = field(default_factory=SpentOutputTracker)
    minted: Decimal = Decimal("0")

    def output_key(self, txid: str, out: TxOutput) -> str:
        if self.key_mode == OutputKeyMode.OUTPOINT:
            return f"{txid}:{out.index}"
        return out.output_script

    def input_key(self, inp: TxInput) -> str:
        if self.key_mode == OutputKeyMode.OUTPOINT:
            if inp.prev_txid is None or inp.prev_out_idx is None:
                return ""
            return f"{inp.prev_txid}:{inp.prev_out_idx}"
        return inp.output_script or ""


@dataclass
class SupplyReport:

    token: TokenMeta
    unspent: List[LedgerEntry]

    minted: Decimal
    burned: Decimal
    circulating: Decimal

    txs_visited: int = 0
