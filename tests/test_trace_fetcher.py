"""Tests for the raw trace fetcher."""

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from arbitrace.core.models import CallFrame
from arbitrace.core.trace_fetcher import (
    CALL_TRACER,
    LOG3_TRACER,
    STORAGE_WRITE_TRACER,
    TraceFetcher,
    validate_tx_hash,
)
from arbitrace.utils.exceptions import InvalidTransactionHashError, TraceUnavailableError

from conftest import TX_HASH, TOKEN, SENDER, RECIPIENT, call_tree_dict, log3_entry, sstore_entry


def fake_node(responses):
    """w3 double answering debug_traceTransaction by tracer."""
    w3 = MagicMock()

    def make_request(method, params):
        assert method == "debug_traceTransaction"
        tracer = params[1]["tracer"]
        outcome = responses[tracer]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    w3.provider.make_request.side_effect = make_request
    return w3


def healthy_node():
    return fake_node({
        CALL_TRACER["tracer"]: {"jsonrpc": "2.0", "id": 1, "result": call_tree_dict()},
        STORAGE_WRITE_TRACER: {"jsonrpc": "2.0", "id": 2, "result": [sstore_entry(TOKEN, 1, 2)]},
        LOG3_TRACER: {"jsonrpc": "2.0", "id": 3, "result": [log3_entry(TOKEN, SENDER, RECIPIENT, 5)]},
    })


class TestValidateTxHash:
    def test_valid_hash_is_lowercased(self):
        assert validate_tx_hash(TX_HASH.upper().replace("0X", "0x")) == TX_HASH

    @pytest.mark.parametrize("value", ["", "0x123", "ab" * 32, "0x" + "zz" * 32, "0x" + "ab" * 33, None, 42])
    def test_invalid_hash(self, value):
        with pytest.raises(InvalidTransactionHashError):
            validate_tx_hash(value)


class TestFetch:
    def test_call_tree(self):
        fetcher = TraceFetcher(w3=healthy_node())
        tree = fetcher.fetch_call_tree(TX_HASH)
        assert isinstance(tree, CallFrame)
        assert len(tree.calls) == 2

    def test_step_traces(self):
        fetcher = TraceFetcher(w3=healthy_node())
        writes = fetcher.fetch_storage_writes(TX_HASH)
        logs = fetcher.fetch_log_entries(TX_HASH)
        assert [w.op for w in writes] == ["SSTORE"]
        assert [entry.op for entry in logs] == ["LOG3"]
        assert logs[0].address == TOKEN

    @pytest.mark.parametrize("bad_word", ["zz", "0x" + "ff" * 33])
    def test_malformed_step_records_are_skipped(self, bad_word):
        garbled = dict(sstore_entry(TOKEN, 3, 4), stack=[bad_word, "03"])
        w3 = fake_node({
            STORAGE_WRITE_TRACER: {"result": [garbled, sstore_entry(TOKEN, 1, 2), None]},
        })
        writes = TraceFetcher(w3=w3).fetch_storage_writes(TX_HASH)
        assert len(writes) == 1
        assert writes[0].stack_from_end(1) == "0x" + "00" * 31 + "01"

    def test_node_error_is_terminal(self):
        w3 = fake_node({CALL_TRACER["tracer"]: {"error": {"code": -32000, "message": "transaction not found"}}})
        with pytest.raises(TraceUnavailableError) as exc_info:
            TraceFetcher(w3=w3).fetch_call_tree(TX_HASH)
        assert exc_info.value.tracer == "call"
        assert "transaction not found" in exc_info.value.message

    def test_null_result_is_terminal(self):
        w3 = fake_node({STORAGE_WRITE_TRACER: {"result": None}})
        with pytest.raises(TraceUnavailableError) as exc_info:
            TraceFetcher(w3=w3).fetch_storage_writes(TX_HASH)
        assert exc_info.value.tracer == "storage"

    def test_transport_error_is_terminal(self):
        w3 = fake_node({LOG3_TRACER: ConnectionError("refused")})
        with pytest.raises(TraceUnavailableError) as exc_info:
            TraceFetcher(w3=w3).fetch_log_entries(TX_HASH)
        assert exc_info.value.tracer == "logs"

    def test_not_retried(self):
        w3 = fake_node({CALL_TRACER["tracer"]: {"result": None}})
        with pytest.raises(TraceUnavailableError):
            TraceFetcher(w3=w3).fetch_call_tree(TX_HASH)
        assert w3.provider.make_request.call_count == 1

    def test_prefetch(self):
        fetcher = TraceFetcher(w3=healthy_node())
        with ThreadPoolExecutor(max_workers=3) as executor:
            futures = fetcher.prefetch(TX_HASH, executor)
            assert set(futures) == {"call", "storage", "logs"}
            assert isinstance(futures["call"].result(), CallFrame)
            assert len(futures["logs"].result()) == 1

