from __future__ import annotations

import re
from decimal import Decimal, localcontext
from typing import Any, Callable, Dict, List, Optional, Tuple

from slpsupply.config.settings import SLP_FUNGIBLE_TOKEN_TYPE, SLP_PAYLOAD_VOUT
from slpsupply.core.dto import TokenMeta, TransactionRecord
from slpsupply.core.errors import DecodeError, InvalidTokenIdError
from slpsupply.core.models import (
    DecodedPayload,
    Issuance,
    LedgerEntry,
    Mint,
    SupplyConfig,
    SupplyReport,
    Transfer,
    TraversalContext,
)
from slpsupply.ports.ledger_port import LedgerPort
from slpsupply.ports.payload_decoder_port import PayloadDecoderPort
from slpsupply.services.supply_accumulator import EXACT_CONTEXT, finalize, unspent_entries


TOKEN_ID_RE = re.compile(r"^[0-9a-fA-F]{64}$")

ProgressFn = Callable[[str, Dict[str, Any]], None]


def _no_progress(event: str, data: Dict[str, Any]) -> None:
    return None


def validate_token_id(token_id: Optional[str]) -> str:
    tid = (token_id or "").strip()
    if not TOKEN_ID_RE.match(tid):
        raise InvalidTokenIdError(f"Invalid token id: {token_id!r} (expected 64 hex characters)")
    return tid.lower()


def scale_amount(raw: int, decimals: int) -> Decimal:
    # string construction is exact regardless of the active context precision
    return Decimal(f"{int(raw)}e-{int(decimals)}")


class SupplyService:
    """
    Reconstructs the supply of an SLP token by walking every transaction
    that spends one of its outputs, starting at the GENESIS transaction.

    - Traversal: depth-first over an explicit work-list, each txid at most once
    - Data: ledger port for transactions/metadata, decoder port for OP_RETURN payloads
    - Ignores: token types other than fungible type 1
    """

    def __init__(self, ledger: LedgerPort, decoder: PayloadDecoderPort) -> None:
        self.ledger = ledger
        self.decoder = decoder

    def trace(self, cfg: SupplyConfig, on_progress: Optional[ProgressFn] = None) -> SupplyReport:
        emit = on_progress or _no_progress
        token_id = validate_token_id(cfg.token_id)

        token = self.ledger.get_token_meta(token_id)
        emit("start", {"token_id": token_id, "decimals": token.decimals, "ticker": token.ticker})

        ctx = TraversalContext(key_mode=cfg.key_mode)

        # LIFO work-list; children pushed reversed so they pop in output order
        stack: List[str] = [token_id]
        while stack:
            txid = stack.pop()
            if txid in ctx.visited:
                continue

            children = self.visit(ctx, token, txid, on_progress=emit)
            stack.extend(reversed(children))

            emit("visit", {
                "txid": txid,
                "processed": len(ctx.visited),
                "pending": len(stack),
                "entries": len(ctx.ledger),
            })

        circulating, burned = finalize(ctx.ledger, ctx.spent, ctx.minted)
        report = SupplyReport(
            token=token,
            unspent=unspent_entries(ctx.ledger, ctx.spent),
            minted=ctx.minted,
            burned=burned,
            circulating=circulating,
            txs_visited=len(ctx.visited),
        )
        emit("done", {"processed": report.txs_visited, "unspent": len(report.unspent)})
        return report

    def visit(
        self,
        ctx: TraversalContext,
        token: TokenMeta,
        txid: str,
        on_progress: Optional[ProgressFn] = None,
    ) -> List[str]:
        """
        Process one transaction and return the txids to visit next.

        Already-visited ids are a no-op. Fetch errors propagate; a payload
        that does not decode makes the transaction a terminal node whose
        inputs still count as spent.
        """
        emit = on_progress or _no_progress
        if txid in ctx.visited:
            return []

        emit("fetch", {"txid": txid})
        tx = self.ledger.get_transaction(txid)
        ctx.visited.add(txid)

        try:
            payload = self._decode(tx)
        except DecodeError as e:
            self._mark_inputs_spent(ctx, tx)
            emit("terminal", {"txid": txid, "reason": str(e)})
            return []

        # inputs are consumed whatever the outputs turn out to be
        self._mark_inputs_spent(ctx, tx)

        if payload.token_type != SLP_FUNGIBLE_TOKEN_TYPE:
            emit("terminal", {"txid": txid, "reason": f"token type {payload.token_type}"})
            return []

        spend_txs = self._record_outputs(ctx, token, tx, payload)

        # dedupe, keep first-seen order
        return list(dict.fromkeys(spend_txs))

    # -------------------------
    # Steps
    # -------------------------

    def _decode(self, tx: TransactionRecord) -> DecodedPayload:
        if len(tx.outputs) <= SLP_PAYLOAD_VOUT:
            raise DecodeError("Transaction has no payload output")
        try:
            script = bytes.fromhex(tx.outputs[SLP_PAYLOAD_VOUT].output_script)
        except ValueError as e:
            raise DecodeError("Payload output script is not hex") from e
        return self.decoder.decode(script)

    @staticmethod
    def _mark_inputs_spent(ctx: TraversalContext, tx: TransactionRecord) -> None:
        for inp in tx.inputs:
            ctx.spent.add(ctx.input_key(inp))

    def _record_outputs(
        self,
        ctx: TraversalContext,
        token: TokenMeta,
        tx: TransactionRecord,
        payload: DecodedPayload,
    ) -> List[str]:
        spend_txs: List[str] = []

        for out in tx.outputs:
            slot = self._classify(payload, out.index)
            if slot is None:
                continue
            raw, is_baton = slot

            amount = scale_amount(raw, token.decimals)
            ctx.ledger[ctx.output_key(tx.txid, out)] = LedgerEntry(
                output_script=out.output_script,
                txid=tx.txid,
                output_index=out.index,
                amount=amount,
                is_mint_baton=is_baton,
            )

            if out.index == 1 and isinstance(payload, (Issuance, Mint)):
                with localcontext(EXACT_CONTEXT):
                    ctx.minted += amount

            if out.spent_by:
                spend_txs.append(out.spent_by)

        return spend_txs

    @staticmethod
    def _classify(payload: DecodedPayload, index: int) -> Optional[Tuple[int, bool]]:
        """(raw amount, is mint baton) for a token-bearing output, else None."""
        if index == SLP_PAYLOAD_VOUT:
            return None

        if isinstance(payload, Transfer):
            if index > len(payload.amounts):
                return None
            return payload.amounts[index - 1], False

        if isinstance(payload, (Issuance, Mint)):
            # only vout 1 carries minted value; the baton is a zero-value marker
            if index == 1:
                return payload.quantity, False
            if index == payload.mint_baton_vout:
                return 0, True
            return None

        raise TypeError(f"Unhandled payload kind: {type(payload).__name__}")
