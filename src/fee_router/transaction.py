"""
Legacy Solana transaction wire format, unsigned.

Layout:
  shortvec(num_signatures) | 64-byte signature * n | message

Message:
  header(3 x u8) | shortvec(keys) | key(32) * n | recent_blockhash(32) |
  shortvec(instructions) | instruction * n

Instruction:
  program_id_index(u8) | shortvec(accounts) | u8 * n | shortvec(data) | data

Signature slots are zero-filled; the wallet fills them when signing.
"""

from __future__ import annotations

import base64
import struct
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import base58

from .addresses import decode_address
from .project_constants import SYSTEM_PROGRAM_ID

SIGNATURE_LENGTH = 64

# SystemInstruction::Transfer
SYSTEM_TRANSFER_INDEX = 2


def encode_shortvec(n: int) -> bytes:
    if n < 0 or n > 0xFFFF:
        raise ValueError(f"shortvec length out of range: {n}")
    out = bytearray()
    while True:
        elem = n & 0x7F
        n >>= 7
        if n == 0:
            out.append(elem)
            return bytes(out)
        out.append(elem | 0x80)


def decode_shortvec(buf: bytes, offset: int = 0) -> Tuple[int, int]:
    """Returns (value, bytes consumed)."""
    value = 0
    for i in range(3):
        if offset + i >= len(buf):
            raise ValueError("Truncated shortvec")
        b = buf[offset + i]
        value |= (b & 0x7F) << (7 * i)
        if not b & 0x80:
            return value, i + 1
    raise ValueError("shortvec longer than 3 bytes")


@dataclass(frozen=True)
class AccountMeta:
    pubkey: str
    is_signer: bool
    is_writable: bool


@dataclass(frozen=True)
class Instruction:
    program_id: str
    accounts: Tuple[AccountMeta, ...]
    data: bytes


def transfer_instruction(from_pubkey: str, to_pubkey: str, lamports: int) -> Instruction:
    if lamports < 0 or lamports > 0xFFFFFFFFFFFFFFFF:
        raise ValueError(f"lamports out of u64 range: {lamports}")
    return Instruction(
        program_id=SYSTEM_PROGRAM_ID,
        accounts=(
            AccountMeta(from_pubkey, is_signer=True, is_writable=True),
            AccountMeta(to_pubkey, is_signer=False, is_writable=True),
        ),
        data=struct.pack("<IQ", SYSTEM_TRANSFER_INDEX, lamports),
    )


def _ordered_keys(fee_payer: str, instructions: List[Instruction]) -> Tuple[List[str], Tuple[int, int, int]]:
    """
    Fee payer first, then writable signers, readonly signers, writable
    non-signers, readonly non-signers; each group in order of first use.
    """
    flags: Dict[str, List[bool]] = {fee_payer: [True, True]}
    order: List[str] = [fee_payer]

    def see(key: str, signer: bool, writable: bool) -> None:
        if key not in flags:
            flags[key] = [signer, writable]
            order.append(key)
        else:
            flags[key][0] = flags[key][0] or signer
            flags[key][1] = flags[key][1] or writable

    for ix in instructions:
        for meta in ix.accounts:
            see(meta.pubkey, meta.is_signer, meta.is_writable)
        see(ix.program_id, False, False)

    rest = order[1:]
    groups = (
        [k for k in rest if flags[k][0] and flags[k][1]],
        [k for k in rest if flags[k][0] and not flags[k][1]],
        [k for k in rest if not flags[k][0] and flags[k][1]],
        [k for k in rest if not flags[k][0] and not flags[k][1]],
    )
    keys = [fee_payer] + groups[0] + groups[1] + groups[2] + groups[3]
    num_signers = 1 + len(groups[0]) + len(groups[1])
    header = (num_signers, len(groups[1]), len(groups[3]))
    return keys, header


@dataclass(frozen=True)
class UnsignedTransaction:
    fee_payer: str
    recent_blockhash: str
    instructions: Tuple[Instruction, ...] = field(default_factory=tuple)

    def account_keys(self) -> List[str]:
        return _ordered_keys(self.fee_payer, list(self.instructions))[0]

    def num_required_signatures(self) -> int:
        return _ordered_keys(self.fee_payer, list(self.instructions))[1][0]

    def message_bytes(self) -> bytes:
        return compile_message(self.fee_payer, self.recent_blockhash, list(self.instructions))

    def serialize(self) -> bytes:
        n = self.num_required_signatures()
        return encode_shortvec(n) + bytes(SIGNATURE_LENGTH * n) + self.message_bytes()

    def to_base58(self) -> str:
        return base58.b58encode(self.serialize()).decode("ascii")

    def to_base64(self) -> str:
        return base64.b64encode(self.serialize()).decode("ascii")


def compile_message(fee_payer: str, recent_blockhash: str, instructions: List[Instruction]) -> bytes:
    keys, header = _ordered_keys(fee_payer, instructions)
    index = {k: i for i, k in enumerate(keys)}

    out = bytearray(header)
    out += encode_shortvec(len(keys))
    for k in keys:
        out += decode_address(k)
    out += decode_address(recent_blockhash)

    out += encode_shortvec(len(instructions))
    for ix in instructions:
        out.append(index[ix.program_id])
        out += encode_shortvec(len(ix.accounts))
        out += bytes(index[m.pubkey] for m in ix.accounts)
        out += encode_shortvec(len(ix.data))
        out += ix.data
    return bytes(out)


def message_from_wire(raw: bytes) -> bytes:
    """Strips the signature section from a serialized transaction."""
    n, used = decode_shortvec(raw)
    start = used + SIGNATURE_LENGTH * n
    if start >= len(raw):
        raise ValueError("Serialized transaction has no message")
    return raw[start:]
