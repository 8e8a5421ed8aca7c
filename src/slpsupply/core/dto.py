from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class TxInput:
    output_script: Optional[str]      # hex locking script of the consumed output (may be unknown)
    prev_txid: Optional[str] = None
    prev_out_idx: Optional[int] = None


@dataclass(frozen=True)
class TxOutput:
    index: int
    output_script: str                # hex locking script
    spent_by: Optional[str] = None    # txid of the spending transaction


@dataclass(frozen=True)
class TransactionRecord:
    txid: str
    inputs: Tuple[TxInput, ...] = field(default_factory=tuple)
    outputs: Tuple[TxOutput, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class TokenMeta:
    token_id: str
    decimals: int
    ticker: Optional[str] = None
    name: Optional[str] = None
