"""Shared fixtures for the arbitrace test suite."""

from unittest.mock import MagicMock

import pytest
from eth_abi import encode
from eth_utils import to_checksum_address

from arbitrace.cache import CacheStore
from arbitrace.core.hexcodec import word_to_hex
from arbitrace.core.models import CallFrame, StepLogEntry, TokenMetadata
from arbitrace.core.transfers import TRANSFER_TOPIC

TX_HASH = "0x" + "ab" * 32
OTHER_TX_HASH = "0x" + "cd" * 32

SENDER = "0x" + "11" * 20
ROUTER = "0x" + "22" * 20
TOKEN = "0x" + "33" * 20
RECIPIENT = "0x" + "44" * 20

TRANSFER_SELECTOR = "0xa9059cbb"


def transfer_calldata(to: str = RECIPIENT, amount: int = 100) -> str:
    return TRANSFER_SELECTOR + encode(["address", "uint256"], [to_checksum_address(to), amount]).hex()


def address_word(addr: str) -> str:
    return word_to_hex(addr)


def log3_entry(token: str, from_addr: str, to_addr: str, amount: int, topic: str = TRANSFER_TOPIC) -> dict:
    """Raw LOG3 record in the shape the step tracer emits it."""
    return {
        "op": "LOG3",
        "address": token,
        "caller": SENDER,
        "stack": [hex(amount), address_word(to_addr), address_word(from_addr), topic, "20", "80"],
        "memory": {str(i): b for i, b in enumerate(amount.to_bytes(32, "big"))},
    }


def sstore_entry(contract: str, slot: int, value: int) -> dict:
    return {
        "op": "SSTORE",
        "address": contract,
        "caller": SENDER,
        "stack": [hex(value)[2:], hex(slot)[2:]],
    }


def call_tree_dict() -> dict:
    """EOA -> router (1 ether) -> token.transfer, plus a bare value transfer."""
    return {
        "type": "CALL",
        "from": SENDER,
        "to": ROUTER,
        "gas": "0x7a120",
        "gasUsed": "0x5208",
        "value": "0xde0b6b3a7640000",
        "input": "0xdeadbeef" + "00" * 32,
        "output": "0x",
        "calls": [
            {
                "type": "CALL",
                "from": ROUTER,
                "to": TOKEN,
                "gas": "0x1000",
                "value": "0x0",
                "input": transfer_calldata(),
                "output": "0x" + "00" * 31 + "01",
            },
            {
                "type": "CALL",
                "from": ROUTER,
                "to": RECIPIENT,
                "gas": "0x0",
                "value": "0x1",
                "input": "0x",
            },
        ],
    }


def fake_fetcher():
    fetcher = MagicMock()
    fetcher.fetch_call_tree.return_value = CallFrame.from_dict(call_tree_dict())
    fetcher.fetch_storage_writes.return_value = [StepLogEntry.from_dict(sstore_entry(TOKEN, 1, 0x2A))]
    fetcher.fetch_log_entries.return_value = [StepLogEntry.from_dict(log3_entry(TOKEN, ROUTER, RECIPIENT, 10 ** 18))]
    return fetcher


@pytest.fixture
def cache_store(tmp_path):
    return CacheStore(str(tmp_path / "cache"))


@pytest.fixture
def fake_resolvers():
    signatures = MagicMock()
    signatures.resolve.return_value = []
    addresses = MagicMock()
    addresses.resolve.return_value = {ROUTER: "Router"}
    tokens = MagicMock()
    tokens.resolve.return_value = {TOKEN: TokenMetadata(symbol="TKN", decimals=18)}
    return signatures, addresses, tokens
