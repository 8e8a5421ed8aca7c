"""
SLP (Simple Ledger Protocol) v1 OP_RETURN payload support.

SlpPayloadDecoder is a strict parser: any script that is not a well formed
GENESIS, MINT or SEND message raises DecodeError, never anything else.
SlpScriptBuilder goes the other way and is used to build fixtures.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from slpsupply.core.errors import DecodeError, UnsupportedTokenTypeError
from slpsupply.core.models import DecodedPayload, Issuance, Mint, Transfer
from slpsupply.ports.payload_decoder_port import PayloadDecoderPort


LOKAD_ID = b"SLP\x00"

# 1 = fungible, 65 = NFT child, 129 = NFT parent
VALID_TOKEN_TYPES = frozenset((1, 65, 129))
NFT_CHILD = 65

MAX_SEND_OUTPUTS = 19

OP_0 = 0x00
OP_PUSHDATA1 = 0x4C
OP_PUSHDATA2 = 0x4D
OP_PUSHDATA4 = 0x4E
OP_16 = 0x60
OP_RETURN = 0x6A


def _parse_int(chunk: bytes, min_len: int, max_len: int, allow_empty: bool = False) -> Optional[int]:
    # unsigned big-endian
    if min_len <= len(chunk) <= max_len:
        return int.from_bytes(chunk, "big", signed=False)
    if not chunk and allow_empty:
        return None
    raise DecodeError("Field has wrong length")


def parse_opreturn_chunks(script: bytes) -> List[bytes]:
    """
    Split an OP_RETURN script into its pushed byte strings.

    Only data pushes are accepted after OP_RETURN: OP_0 and the small-number
    opcodes are rejected, as is anything truncated.
    """
    if not script or script[0] != OP_RETURN:
        raise DecodeError("No OP_RETURN")

    chunks: List[bytes] = []
    pos = 1
    end = len(script)
    while pos < end:
        op = script[pos]
        pos += 1
        if op == OP_0:
            raise DecodeError("OP_0 not allowed")
        if op > OP_PUSHDATA4:
            if op <= OP_16:
                raise DecodeError("OP_1NEGATE to OP_16 not allowed")
            raise DecodeError("Non-push opcode")

        if op < OP_PUSHDATA1:
            size = op
        else:
            width = {OP_PUSHDATA1: 1, OP_PUSHDATA2: 2, OP_PUSHDATA4: 4}[op]
            if pos + width > end:
                raise DecodeError("Truncated push length")
            size = int.from_bytes(script[pos:pos + width], "little")
            pos += width

        if pos + size > end:
            raise DecodeError("Truncated push data")
        chunks.append(bytes(script[pos:pos + size]))
        pos += size
    return chunks


class SlpPayloadDecoder(PayloadDecoderPort):

    def decode(self, script: bytes) -> DecodedPayload:
        chunks = parse_opreturn_chunks(bytes(script))

        if not chunks:
            raise DecodeError("Empty OP_RETURN")
        if chunks[0] != LOKAD_ID:
            raise DecodeError("Not SLP")
        if len(chunks) <= 1:
            raise DecodeError("Missing token_type")

        token_type = _parse_int(chunks[1], 1, 2)
        if token_type not in VALID_TOKEN_TYPES:
            raise UnsupportedTokenTypeError(f"Unsupported token type: {token_type}")

        if len(chunks) <= 2:
            raise DecodeError("Missing SLP command")
        try:
            tx_type = chunks[2].decode("ascii")
        except UnicodeDecodeError as e:
            raise DecodeError("Bad transaction type") from e

        if tx_type == "GENESIS":
            return self._genesis(token_type, chunks)
        if tx_type == "MINT":
            return self._mint(token_type, chunks)
        if tx_type == "SEND":
            return self._send(token_type, chunks)
        raise DecodeError(f"Unknown SLP transaction type: {tx_type!r}")

    # ---------- per-type parsing ----------

    @staticmethod
    def _baton(chunk: bytes, token_type: int) -> Optional[int]:
        vout = _parse_int(chunk, 1, 1, allow_empty=True)
        if vout is not None and vout < 2:
            raise DecodeError("Mint baton cannot be on vout=0 or 1")
        if vout is not None and token_type == NFT_CHILD:
            raise DecodeError("Cannot have a minting baton in a NFT_CHILD token")
        return vout

    def _genesis(self, token_type: int, chunks: Sequence[bytes]) -> Issuance:
        if len(chunks) != 10:
            raise DecodeError("GENESIS with incorrect number of parameters")
        if len(chunks[6]) not in (0, 32):
            raise DecodeError("Token document hash is incorrect length")

        decimals = _parse_int(chunks[7], 1, 1)
        if decimals > 9:
            raise DecodeError("Too many decimals")

        return Issuance(
            token_type=token_type,
            quantity=_parse_int(chunks[9], 8, 8),
            mint_baton_vout=self._baton(chunks[8], token_type),
            decimals=decimals,
            ticker=chunks[3].decode("utf-8", errors="replace"),
            name=chunks[4].decode("utf-8", errors="replace"),
        )

    def _mint(self, token_type: int, chunks: Sequence[bytes]) -> Mint:
        if token_type == NFT_CHILD:
            raise DecodeError("Cannot have MINT with NFT_CHILD")
        if len(chunks) != 6:
            raise DecodeError("MINT with incorrect number of parameters")
        if len(chunks[3]) != 32:
            raise DecodeError("token_id is wrong length")

        return Mint(
            token_type=token_type,
            token_id=chunks[3].hex(),
            quantity=_parse_int(chunks[5], 8, 8),
            mint_baton_vout=self._baton(chunks[4], token_type),
        )

    @staticmethod
    def _send(token_type: int, chunks: Sequence[bytes]) -> Transfer:
        if len(chunks) < 4:
            raise DecodeError("SEND with too few parameters")
        if len(chunks[3]) != 32:
            raise DecodeError("token_id is wrong length")

        amounts = tuple(_parse_int(c, 8, 8) for c in chunks[4:])
        if not amounts:
            raise DecodeError("Missing output amounts")
        if len(amounts) > MAX_SEND_OUTPUTS:
            raise DecodeError("More than 19 output amounts")

        return Transfer(token_type=token_type, token_id=chunks[3].hex(), amounts=amounts)


class SlpScriptBuilder:
    """
    Builds SLP OP_RETURN scripts. Uses the smallest push for each chunk,
    never OP_0 or the small-number opcodes.
    """

    @staticmethod
    def push(chunk: bytes) -> bytes:
        length = len(chunk)
        if length == 0:
            return bytes((OP_PUSHDATA1, 0))
        if length < OP_PUSHDATA1:
            return bytes((length,)) + chunk
        if length < 256:
            return bytes((OP_PUSHDATA1, length)) + chunk
        if length < 65536:
            return bytes((OP_PUSHDATA2,)) + length.to_bytes(2, "little") + chunk
        return bytes((OP_PUSHDATA4,)) + length.to_bytes(4, "little") + chunk

    @classmethod
    def script(cls, chunks: Sequence[bytes]) -> bytes:
        out = bytearray((OP_RETURN,))
        for c in chunks:
            out.extend(cls.push(c))
        return bytes(out)

    @staticmethod
    def _header(token_type: int, tx_type: str) -> List[bytes]:
        tt = token_type.to_bytes(1 if token_type < 256 else 2, "big")
        return [LOKAD_ID, tt, tx_type.encode("ascii")]

    @staticmethod
    def _baton(vout: Optional[int]) -> bytes:
        return b"" if vout is None else bytes((vout,))

    @classmethod
    def genesis(
        cls,
        quantity: int,
        decimals: int = 0,
        mint_baton_vout: Optional[int] = None,
        ticker: str = "",
        name: str = "",
        doc_url: str = "",
        doc_hash: bytes = b"",
        token_type: int = 1,
    ) -> bytes:
        return cls.script(cls._header(token_type, "GENESIS") + [
            ticker.encode("utf-8"),
            name.encode("utf-8"),
            doc_url.encode("utf-8"),
            doc_hash,
            bytes((decimals,)),
            cls._baton(mint_baton_vout),
            quantity.to_bytes(8, "big"),
        ])

    @classmethod
    def mint(cls, token_id: str, quantity: int, mint_baton_vout: Optional[int] = None, token_type: int = 1) -> bytes:
        return cls.script(cls._header(token_type, "MINT") + [
            bytes.fromhex(token_id),
            cls._baton(mint_baton_vout),
            quantity.to_bytes(8, "big"),
        ])

    @classmethod
    def send(cls, token_id: str, amounts: Sequence[int], token_type: int = 1) -> bytes:
        return cls.script(
            cls._header(token_type, "SEND")
            + [bytes.fromhex(token_id)]
            + [int(a).to_bytes(8, "big") for a in amounts]
        )
