from __future__ import annotations

from decimal import Context, Decimal, localcontext
from typing import Container, Dict, List, Tuple

from slpsupply.core.models import LedgerEntry


# wide enough that sums of 64-bit raw amounts never round
EXACT_CONTEXT = Context(prec=100)


def unspent_entries(ledger: Dict[str, LedgerEntry], spent: Container[str]) -> List[LedgerEntry]:
    # dict order is insertion order of the first write per key
    return [entry for key, entry in ledger.items() if key not in spent]


def finalize(
    ledger: Dict[str, LedgerEntry],
    spent: Container[str],
    minted: Decimal,
) -> Tuple[Decimal, Decimal]:
    """
    Derive (circulating, burned) from the finished ledger.

    circulating is the exact sum over entries whose key was never seen as an
    input; burned is whatever was minted and is no longer circulating.
    """
    with localcontext(EXACT_CONTEXT):
        circulating = sum((e.amount for e in unspent_entries(ledger, spent)), Decimal("0"))
        burned = minted - circulating
    return circulating, burned
