from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict

from slpsupply.core.models import LedgerEntry, SupplyReport


def _dec_to_str(x: Decimal) -> str:
    # keep as string for JSON precision safety
    return format(x, "f")


def entry_to_dict(e: LedgerEntry) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "output_script": e.output_script,
        "txid": e.txid,
        "output_index": e.output_index,
        "token_qty_str": e.quantity_str,
        "token_qty": e.quantity,
    }
    if e.is_mint_baton:
        d["is_mint_baton"] = True
    return d


def report_to_dict(r: SupplyReport) -> Dict[str, Any]:
    return {
        "token": {
            "token_id": r.token.token_id,
            "ticker": r.token.ticker,
            "name": r.token.name,
            "decimals": r.token.decimals,
        },
        "unspent": [entry_to_dict(e) for e in r.unspent],
        "minted": _dec_to_str(r.minted),
        "burned": _dec_to_str(r.burned),
        "circulating": _dec_to_str(r.circulating),
        "txs_visited": r.txs_visited,
    }
