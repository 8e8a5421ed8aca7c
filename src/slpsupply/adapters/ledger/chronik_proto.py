"""
Message classes for the part of Chronik's ``chronik.proto`` this client reads.

The descriptors are built at import time into a private pool. Fields that
are not declared here are skipped by the protobuf parser, so the subset
stays compatible with full server responses.

Chronik sends txids as little-endian bytes; ``rev_hex`` gives the usual
big-endian hex form.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

_FDP = descriptor_pb2.FieldDescriptorProto
_PACKAGE = "chronik"

# (name, number, type, message type name, repeated)
_Field = Tuple[str, int, int, Optional[str], bool]


def _scalar(name: str, number: int, ftype: int) -> _Field:
    return (name, number, ftype, None, False)


def _message(name: str, number: int, type_name: str, repeated: bool = False) -> _Field:
    return (name, number, _FDP.TYPE_MESSAGE, type_name, repeated)


_MESSAGES: Dict[str, List[_Field]] = {
    "OutPoint": [
        _scalar("txid", 1, _FDP.TYPE_BYTES),
        _scalar("out_idx", 2, _FDP.TYPE_UINT32),
    ],
    "TxInput": [
        _message("prev_out", 1, "OutPoint"),
        _scalar("input_script", 2, _FDP.TYPE_BYTES),
        _scalar("output_script", 3, _FDP.TYPE_BYTES),
        _scalar("value", 4, _FDP.TYPE_INT64),
        _scalar("sequence_no", 5, _FDP.TYPE_UINT32),
    ],
    "TxOutput": [
        _scalar("value", 1, _FDP.TYPE_INT64),
        _scalar("output_script", 2, _FDP.TYPE_BYTES),
        _message("spent_by", 4, "OutPoint"),
    ],
    "SlpGenesisInfo": [
        _scalar("token_ticker", 1, _FDP.TYPE_BYTES),
        _scalar("token_name", 2, _FDP.TYPE_BYTES),
        _scalar("token_document_url", 3, _FDP.TYPE_BYTES),
        _scalar("token_document_hash", 4, _FDP.TYPE_BYTES),
        _scalar("decimals", 5, _FDP.TYPE_UINT32),
    ],
    "SlpTxData": [
        _message("genesis_info", 2, "SlpGenesisInfo"),
    ],
    "Tx": [
        _scalar("txid", 1, _FDP.TYPE_BYTES),
        _scalar("version", 2, _FDP.TYPE_INT32),
        _message("inputs", 3, "TxInput", repeated=True),
        _message("outputs", 4, "TxOutput", repeated=True),
        _scalar("lock_time", 5, _FDP.TYPE_UINT32),
        _message("slp_tx_data", 6, "SlpTxData"),
    ],
    "Token": [
        _message("slp_tx_data", 1, "SlpTxData"),
    ],
}


def _file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    fdp = descriptor_pb2.FileDescriptorProto(
        name="slpsupply/chronik.proto",
        package=_PACKAGE,
        syntax="proto3",
    )
    for msg_name, fields in _MESSAGES.items():
        msg = fdp.message_type.add(name=msg_name)
        for name, number, ftype, type_name, repeated in fields:
            f = msg.field.add(
                name=name,
                number=number,
                type=ftype,
                label=_FDP.LABEL_REPEATED if repeated else _FDP.LABEL_OPTIONAL,
            )
            if type_name:
                f.type_name = f".{_PACKAGE}.{type_name}"
    return fdp


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_file_descriptor().SerializeToString())


def _message_class(name: str):
    return message_factory.GetMessageClass(_pool.FindMessageTypeByName(f"{_PACKAGE}.{name}"))


OutPoint = _message_class("OutPoint")
TxInput = _message_class("TxInput")
TxOutput = _message_class("TxOutput")
SlpGenesisInfo = _message_class("SlpGenesisInfo")
SlpTxData = _message_class("SlpTxData")
Tx = _message_class("Tx")
Token = _message_class("Token")


def rev_hex(raw: bytes) -> str:
    return bytes(raw)[::-1].hex()
