"""Wire-format tests for unsigned transactions."""

import base64
import struct

import base58
import pytest

from conftest import BLOCKHASH, BUYBACK_WALLET, MM_WALLET, PAYER
from fee_router.transaction import (
    SIGNATURE_LENGTH,
    UnsignedTransaction,
    decode_shortvec,
    encode_shortvec,
    message_from_wire,
    transfer_instruction,
)
from fee_router.project_constants import SYSTEM_PROGRAM_ID


def _raw(address):
    return base58.b58decode(address)


class TestShortvec:
    @pytest.mark.parametrize(
        "n,encoded",
        [
            (0, b"\x00"),
            (5, b"\x05"),
            (127, b"\x7f"),
            (128, b"\x80\x01"),
            (16383, b"\xff\x7f"),
            (16384, b"\x80\x80\x01"),
        ],
    )
    def test_known_encodings(self, n, encoded):
        assert encode_shortvec(n) == encoded
        assert decode_shortvec(encoded) == (n, len(encoded))

    def test_out_of_range(self):
        with pytest.raises(ValueError):
            encode_shortvec(-1)

    def test_truncated(self):
        with pytest.raises(ValueError):
            decode_shortvec(b"\x80")


class TestTransferInstruction:
    def test_layout(self):
        ix = transfer_instruction(PAYER, MM_WALLET, 1234)
        assert ix.program_id == SYSTEM_PROGRAM_ID
        assert ix.data == struct.pack("<IQ", 2, 1234)
        assert ix.accounts[0].is_signer and ix.accounts[0].is_writable
        assert not ix.accounts[1].is_signer and ix.accounts[1].is_writable

    def test_rejects_negative(self):
        with pytest.raises(ValueError):
            transfer_instruction(PAYER, MM_WALLET, -1)


class TestUnsignedTransaction:
    def test_two_transfers(self):
        tx = UnsignedTransaction(
            fee_payer=PAYER,
            recent_blockhash=BLOCKHASH,
            instructions=(
                transfer_instruction(PAYER, MM_WALLET, 5),
                transfer_instruction(PAYER, BUYBACK_WALLET, 7),
            ),
        )
        assert tx.account_keys() == [PAYER, MM_WALLET, BUYBACK_WALLET, SYSTEM_PROGRAM_ID]

        raw = tx.serialize()
        # one zeroed signature slot
        assert raw[0] == 1
        assert raw[1 : 1 + SIGNATURE_LENGTH] == bytes(SIGNATURE_LENGTH)

        msg = raw[1 + SIGNATURE_LENGTH :]
        assert msg == tx.message_bytes()
        assert msg[:3] == bytes([1, 0, 1])
        assert msg[3] == 4
        keys = msg[4 : 4 + 4 * 32]
        assert keys[:32] == _raw(PAYER)
        assert keys[96:128] == bytes(32)  # system program
        pos = 4 + 4 * 32
        assert msg[pos : pos + 32] == _raw(BLOCKHASH)
        pos += 32
        assert msg[pos] == 2
        pos += 1
        first = msg[pos : pos + 1 + 1 + 2 + 1 + 12]
        assert first == bytes([3, 2, 0, 1, 12]) + struct.pack("<IQ", 2, 5)
        pos += len(first)
        second = msg[pos:]
        assert second == bytes([3, 2, 0, 2, 12]) + struct.pack("<IQ", 2, 7)

    def test_repeated_destination_shares_a_key(self):
        tx = UnsignedTransaction(
            fee_payer=PAYER,
            recent_blockhash=BLOCKHASH,
            instructions=(
                transfer_instruction(PAYER, MM_WALLET, 1),
                transfer_instruction(PAYER, MM_WALLET, 2),
            ),
        )
        assert tx.account_keys() == [PAYER, MM_WALLET, SYSTEM_PROGRAM_ID]

    def test_empty(self):
        tx = UnsignedTransaction(fee_payer=PAYER, recent_blockhash=BLOCKHASH)
        raw = tx.serialize()
        assert len(raw) == 1 + 64 + 3 + 1 + 32 + 32 + 1
        assert tx.account_keys() == [PAYER]

    def test_message_from_wire(self):
        tx = UnsignedTransaction(
            fee_payer=PAYER,
            recent_blockhash=BLOCKHASH,
            instructions=(transfer_instruction(PAYER, MM_WALLET, 1),),
        )
        assert message_from_wire(tx.serialize()) == tx.message_bytes()
        assert base58.b58decode(tx.to_base58()) == tx.serialize()
        assert base64.b64decode(tx.to_base64()) == tx.serialize()

    def test_message_from_wire_rejects_short_input(self):
        with pytest.raises(ValueError):
            message_from_wire(b"\x01" + bytes(10))
