from __future__ import annotations

import argparse
import datetime as dt
import sys
import time
from typing import List, Optional

from slpsupply.config import settings
from slpsupply.core.errors import InvalidTokenIdError
from slpsupply.core.models import OutputKeyMode, SupplyConfig
from slpsupply.services.supply_service import SupplyService, validate_token_id
from slpsupply.io.output_writer import write_report

from slpsupply.adapters.ledger.chronik_ledger_adapter import ChronikLedgerAdapter
from slpsupply.adapters.decoder.slp_decoder import SlpPayloadDecoder


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="slpsupply", description="Get the supply stats of an SLP token")
    p.add_argument("-t", "--token", required=False, help="Token id (txid of the GENESIS transaction)")
    return p


def _make_progress_reporter(token_id: str):
    # progress goes to stderr; stdout only carries the report
    start_time = time.time()
    last_print = 0.0
    err = sys.stderr
    is_tty = err.isatty()

    def _short(txid: str) -> str:
        if len(txid) <= 16:
            return txid
        return f"{txid[:8]}...{txid[-6:]}"

    def _ts() -> str:
        return dt.datetime.now().strftime("%H:%M:%S")

    def _print_line(message: str) -> None:
        if is_tty:
            err.write("\r" + message.ljust(88))
            err.flush()
        else:
            print(message, file=err)

    def _clear_line() -> None:
        if is_tty:
            err.write("\r" + (" " * 88) + "\r")
            err.flush()

    def progress(event: str, data: dict) -> None:
        nonlocal last_print
        now = time.time()
        if event == "start":
            ticker = data.get("ticker") or "?"
            print(f"[{_ts()}] Tracing {ticker} {_short(token_id)} • decimals {data.get('decimals')}", file=err)
            return
        if event == "visit":
            if not is_tty and data["processed"] % 100 != 0:
                return
            if is_tty and now - last_print < 0.2:
                return
            msg = (
                f"processed {data['processed']} • "
                f"pending {data['pending']} • "
                f"entries {data['entries']}"
            )
            _print_line(msg)
            last_print = now
            return
        if event == "done":
            _clear_line()
            elapsed = time.time() - start_time
            print(
                f"[{_ts()}] Done in {elapsed:.1f}s • "
                f"{data['processed']} txs • {data['unspent']} unspent outputs",
                file=err,
            )
            return
        if event == "error":
            _clear_line()
            print(f"[{_ts()}] Error: {data.get('message', 'Unknown error')}", file=err)

    return progress


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    if not args.token:
        print("You must specify the token id (--token)", file=sys.stderr)
        return 2

    try:
        token_id = validate_token_id(args.token)
    except InvalidTokenIdError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    try:
        key_mode = OutputKeyMode(settings.OUTPUT_KEY_MODE)
    except ValueError:
        print(f"Invalid SLPSUPPLY_OUTPUT_KEY: {settings.OUTPUT_KEY_MODE!r} (use 'script' or 'outpoint')", file=sys.stderr)
        return 2

    cfg = SupplyConfig(token_id=token_id, key_mode=key_mode)
    progress = _make_progress_reporter(token_id)

    svc = SupplyService(ledger=ChronikLedgerAdapter(), decoder=SlpPayloadDecoder())
    try:
        report = svc.trace(cfg, on_progress=progress)
    except Exception as exc:
        progress("error", {"message": f"{exc.__class__.__name__}: {exc}"})
        print("Unable to process the transactions", file=sys.stderr)
        return 1

    write_report(report)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
