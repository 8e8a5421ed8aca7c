from typing import Any, Dict, List, Optional
import requests
from google.protobuf.message import DecodeError as ProtobufDecodeError
from google.protobuf.message import Message

from slpsupply.config.settings import (
    CHRONIK_BASE_URL,
    CHRONIK_REQUESTS_PER_SEC,
    CHRONIK_TIMEOUT_SEC,
    CHRONIK_MAX_RETRIES,
)

from slpsupply.adapters.ledger import chronik_proto
from slpsupply.adapters.ledger.chronik_proto import rev_hex
from slpsupply.adapters.ledger.rate_limiter import SimpleRateLimiter, backoff_sleep
from slpsupply.core.errors import DataSourceError, NotFoundError, RateLimitError
from slpsupply.ports.ledger_port import LedgerPort
from slpsupply.core.dto import TokenMeta, TransactionRecord, TxInput, TxOutput


ACCEPT = "application/x-protobuf, application/json;q=0.9"


class ChronikLedgerAdapter(LedgerPort):
    """
    Chronik indexer over HTTP.

    Chronik answers in protobuf (``application/x-protobuf``); JSON bodies in
    the chronik-client object shape are accepted too, for gateways that
    re-encode responses.
    """

    def __init__(
        self,
        base_url: str = CHRONIK_BASE_URL,
        requests_per_sec: float = CHRONIK_REQUESTS_PER_SEC,
        timeout_sec: int = CHRONIK_TIMEOUT_SEC,
        max_retries: int = CHRONIK_MAX_RETRIES,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_sec
        self._max_retries = max(1, max_retries)

        self._rl = SimpleRateLimiter(requests_per_sec)
        self._session = session or requests.Session()

        self._token_meta_cache: Dict[str, TokenMeta] = {}

    # ---------- internal ----------

    def _call(self, path: str) -> requests.Response:
        url = f"{self._base_url}/{path.lstrip('/')}"
        last_err: Optional[Exception] = None

        for attempt in range(self._max_retries):
            retry_after: Optional[float] = None
            try:
                self._rl.wait()
                resp = self._session.get(
                    url,
                    headers={"Accept": ACCEPT},
                    timeout=self._timeout,
                )
            except requests.RequestException as e:
                last_err = e
            else:
                if resp.status_code == 404:
                    raise NotFoundError(f"Not found: {path}")
                if resp.status_code == 429:
                    last_err = RateLimitError(f"Rate limited on {path}")
                    retry_after = self._retry_after(resp)
                elif resp.status_code >= 500:
                    last_err = DataSourceError(f"HTTP {resp.status_code} on {path}")
                elif resp.status_code >= 400:
                    raise DataSourceError(f"HTTP {resp.status_code} on {path}")
                else:
                    return resp

            if attempt + 1 < self._max_retries:
                backoff_sleep(attempt, retry_after=retry_after)

        raise DataSourceError(f"Chronik failed after retries: {last_err}")

    @staticmethod
    def _is_protobuf(resp: requests.Response) -> bool:
        ctype = resp.headers.get("Content-Type") or ""
        return "protobuf" in ctype.lower()

    @staticmethod
    def _proto_body(resp: requests.Response, message_cls: Any, path: str) -> Message:
        try:
            return message_cls.FromString(resp.content)
        except ProtobufDecodeError as e:
            raise DataSourceError(f"Invalid protobuf from Chronik for {path}") from e

    @staticmethod
    def _json_body(resp: requests.Response, path: str) -> Dict[str, Any]:
        try:
            data = resp.json()
        except ValueError as e:
            raise DataSourceError(f"Invalid JSON from Chronik for {path}") from e
        if not isinstance(data, dict):
            raise DataSourceError(f"Invalid Chronik response for {path}: {data!r}")
        return data

    @staticmethod
    def _retry_after(resp: requests.Response) -> Optional[float]:
        raw = resp.headers.get("Retry-After")
        try:
            return float(raw) if raw is not None else None
        except ValueError:
            return None

    @staticmethod
    def _list_field(data: Dict[str, Any], key: str, where: str) -> List[Dict[str, Any]]:
        res = data.get(key)
        if not isinstance(res, list) or not all(isinstance(r, dict) for r in res):
            raise DataSourceError(f"Missing or malformed '{key}' in {where}")
        return res

    # ---------- body mapping ----------

    @staticmethod
    def _tx_from_proto(msg: Message, txid: str) -> TransactionRecord:
        inputs = []
        for r in msg.inputs:
            has_prev = r.HasField("prev_out")
            inputs.append(TxInput(
                output_script=r.output_script.hex() or None,
                prev_txid=rev_hex(r.prev_out.txid) if has_prev else None,
                prev_out_idx=r.prev_out.out_idx if has_prev else None,
            ))

        outputs = []
        for i, r in enumerate(msg.outputs):
            spent_by = rev_hex(r.spent_by.txid) if r.HasField("spent_by") else None
            outputs.append(TxOutput(index=i, output_script=r.output_script.hex(), spent_by=spent_by))

        return TransactionRecord(
            txid=rev_hex(msg.txid) or txid,
            inputs=tuple(inputs),
            outputs=tuple(outputs),
        )

    def _tx_from_json(self, data: Dict[str, Any], txid: str) -> TransactionRecord:
        where = f"tx {txid}"

        inputs = []
        for r in self._list_field(data, "inputs", where):
            prev = r.get("prevOut") or {}
            out_idx = prev.get("outIdx")
            inputs.append(TxInput(
                output_script=r.get("outputScript"),
                prev_txid=prev.get("txid"),
                prev_out_idx=int(out_idx) if out_idx is not None else None,
            ))

        outputs = []
        for i, r in enumerate(self._list_field(data, "outputs", where)):
            script = r.get("outputScript")
            if not isinstance(script, str):
                raise DataSourceError(f"Output {i} of {where} has no outputScript")
            spent_by = (r.get("spentBy") or {}).get("txid")
            outputs.append(TxOutput(index=i, output_script=script, spent_by=spent_by))

        return TransactionRecord(
            txid=str(data.get("txid") or txid),
            inputs=tuple(inputs),
            outputs=tuple(outputs),
        )

    @staticmethod
    def _token_from_proto(msg: Message, token_id: str) -> TokenMeta:
        if not msg.HasField("slp_tx_data"):
            raise DataSourceError(f"Token {token_id} has no SLP data")
        info = msg.slp_tx_data.genesis_info
        return TokenMeta(
            token_id=token_id,
            decimals=int(info.decimals),
            ticker=info.token_ticker.decode("utf-8", errors="replace") or None,
            name=info.token_name.decode("utf-8", errors="replace") or None,
        )

    @staticmethod
    def _token_from_json(data: Dict[str, Any], token_id: str) -> TokenMeta:
        info = (data.get("slpTxData") or {}).get("genesisInfo") or {}
        try:
            decimals = int(info["decimals"])
        except (KeyError, TypeError, ValueError) as e:
            raise DataSourceError(f"Invalid token result for {token_id}: {data}") from e

        return TokenMeta(
            token_id=token_id,
            decimals=decimals,
            ticker=info.get("tokenTicker"),
            name=info.get("tokenName"),
        )

    # ---------- port methods ----------

    def get_transaction(self, txid: str) -> TransactionRecord:
        path = f"tx/{txid}"
        resp = self._call(path)
        if self._is_protobuf(resp):
            return self._tx_from_proto(self._proto_body(resp, chronik_proto.Tx, path), txid)
        return self._tx_from_json(self._json_body(resp, path), txid)

    def get_token_meta(self, token_id: str) -> TokenMeta:
        if token_id in self._token_meta_cache:
            return self._token_meta_cache[token_id]

        path = f"token/{token_id}"
        resp = self._call(path)
        if self._is_protobuf(resp):
            meta = self._token_from_proto(self._proto_body(resp, chronik_proto.Token, path), token_id)
        else:
            meta = self._token_from_json(self._json_body(resp, path), token_id)

        self._token_meta_cache[token_id] = meta
        return meta
