import unittest

from slpsupply.adapters.decoder.slp_decoder import (
    LOKAD_ID,
    SlpPayloadDecoder,
    SlpScriptBuilder,
    parse_opreturn_chunks,
)
from slpsupply.core.errors import DecodeError, UnsupportedTokenTypeError
from slpsupply.core.models import Issuance, Mint, Transfer


TOKEN = "0f" * 32


def _chunks_script(*chunks):
    return SlpScriptBuilder.script(list(chunks))


class SlpPayloadDecoderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.decoder = SlpPayloadDecoder()

    def test_genesis(self) -> None:
        script = SlpScriptBuilder.genesis(
            21_000_000, decimals=8, mint_baton_vout=2, ticker="TST", name="Test Token"
        )

        p = self.decoder.decode(script)

        self.assertIsInstance(p, Issuance)
        self.assertEqual(p.token_type, 1)
        self.assertEqual(p.quantity, 21_000_000)
        self.assertEqual(p.decimals, 8)
        self.assertEqual(p.mint_baton_vout, 2)
        self.assertEqual(p.ticker, "TST")
        self.assertEqual(p.name, "Test Token")

    def test_genesis_without_baton(self) -> None:
        p = self.decoder.decode(SlpScriptBuilder.genesis(5))
        self.assertIsNone(p.mint_baton_vout)

    def test_mint(self) -> None:
        p = self.decoder.decode(SlpScriptBuilder.mint(TOKEN, 777, mint_baton_vout=3))

        self.assertIsInstance(p, Mint)
        self.assertEqual(p.token_id, TOKEN)
        self.assertEqual(p.quantity, 777)
        self.assertEqual(p.mint_baton_vout, 3)

    def test_send(self) -> None:
        p = self.decoder.decode(SlpScriptBuilder.send(TOKEN, [1, 2, 2 ** 64 - 1]))

        self.assertIsInstance(p, Transfer)
        self.assertEqual(p.token_id, TOKEN)
        self.assertEqual(p.amounts, (1, 2, 2 ** 64 - 1))

    def test_nft_types_decode(self) -> None:
        p = self.decoder.decode(SlpScriptBuilder.send(TOKEN, [1], token_type=65))
        self.assertEqual(p.token_type, 65)

    def test_unsupported_token_type(self) -> None:
        with self.assertRaises(UnsupportedTokenTypeError):
            self.decoder.decode(SlpScriptBuilder.send(TOKEN, [1], token_type=2))

    def test_rejects_malformed_scripts(self) -> None:
        amount = (1).to_bytes(8, "big")
        cases = {
            "empty": b"",
            "not op_return": bytes.fromhex("76a914") + b"\x00" * 20,
            "not slp": _chunks_script(b"XYZ\x00", b"\x01", b"SEND"),
            "missing token type": _chunks_script(LOKAD_ID),
            "missing command": _chunks_script(LOKAD_ID, b"\x01"),
            "commit": _chunks_script(LOKAD_ID, b"\x01", b"COMMIT"),
            "non ascii command": _chunks_script(LOKAD_ID, b"\x01", b"\xff\xfe"),
            "send no amounts": _chunks_script(LOKAD_ID, b"\x01", b"SEND", bytes.fromhex(TOKEN)),
            "send short token id": _chunks_script(LOKAD_ID, b"\x01", b"SEND", b"\x01" * 31, amount),
            "send short amount": _chunks_script(LOKAD_ID, b"\x01", b"SEND", bytes.fromhex(TOKEN), b"\x01" * 7),
            "send too many amounts": SlpScriptBuilder.send(TOKEN, [1] * 20),
            "genesis baton on vout 1": SlpScriptBuilder.genesis(1, mint_baton_vout=1),
            "genesis too many decimals": SlpScriptBuilder.genesis(1, decimals=10),
            "genesis bad doc hash": SlpScriptBuilder.genesis(1, doc_hash=b"\x00" * 5),
            "nft child baton": SlpScriptBuilder.genesis(1, mint_baton_vout=2, token_type=65),
            "nft child mint": SlpScriptBuilder.mint(TOKEN, 1, token_type=65),
            "mint wrong arity": _chunks_script(LOKAD_ID, b"\x01", b"MINT", bytes.fromhex(TOKEN), b""),
            "op_0 push": bytes((0x6A, 0x00)),
            "small number opcode": bytes((0x6A, 0x51)),
            "non push opcode": bytes((0x6A, 0xAC)),
            "truncated push": bytes((0x6A, 0x04)) + b"SL",
            "truncated pushdata1 length": bytes((0x6A, 0x4C)),
        }
        for name, script in cases.items():
            with self.subTest(case=name):
                with self.assertRaises(DecodeError):
                    self.decoder.decode(script)


class OpReturnChunkTests(unittest.TestCase):
    def test_push_encodings(self) -> None:
        chunks = [b"", b"a" * 75, b"b" * 76, b"c" * 300]
        script = SlpScriptBuilder.script(chunks)

        # empty, direct, OP_PUSHDATA1, OP_PUSHDATA2
        self.assertEqual(script[1:3], bytes((0x4C, 0x00)))
        self.assertEqual(script[3], 75)
        self.assertEqual(parse_opreturn_chunks(script), chunks)


if __name__ == "__main__":
    unittest.main()
