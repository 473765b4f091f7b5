"""
Trace Fetcher

Retrieves the three raw traces of a transaction from an execution node with
``debug_traceTransaction``: the built-in call tracer, and two small JavaScript
step tracers that only record storage writes and three-topic logs.
"""

import re
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, List, Optional

from web3 import HTTPProvider, Web3

from .models import CallFrame, StepLogEntry
from ..utils.exceptions import InvalidTransactionHashError, TraceUnavailableError
from ..utils.logging import get_logger, log_trace

logger = get_logger("trace_fetcher")

TX_HASH_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")

CALL_TRACER = {"tracer": "callTracer"}

# Stack is emitted bottom-to-top: [value, slot]
STORAGE_WRITE_TRACER = """{
    data: [],
    fault: function(log, db) {},
    step: function(log, db) {
        if (log.op.toString() !== "SSTORE") return;
        this.data.push({
            op: "SSTORE",
            address: log.contract.getAddress(),
            caller: log.contract.getCaller(),
            stack: [log.stack.peek(1).toString(16), log.stack.peek(0).toString(16)]
        });
    },
    result: function(ctx, db) { return this.data; }
}"""

# LOG3 carries its data in memory, so the first data word is placed beneath
# the operands: [data0, topic2, topic1, topic0, size, offset]
LOG3_TRACER = """{
    data: [],
    fault: function(log, db) {},
    step: function(log, db) {
        if (log.op.toString() !== "LOG3") return;
        var offset = log.stack.peek(0).valueOf();
        var size = log.stack.peek(1).valueOf();
        var stack = [size >= 32 ? toHex(log.memory.slice(offset, offset + 32)) : "0x0"];
        for (var i = 4; i >= 0; i--) {
            stack.push(log.stack.peek(i).toString(16));
        }
        this.data.push({
            op: "LOG3",
            address: log.contract.getAddress(),
            caller: log.contract.getCaller(),
            stack: stack,
            memory: log.memory.slice(offset, offset + size)
        });
    },
    result: function(ctx, db) { return this.data; }
}"""


def validate_tx_hash(tx_hash: Any) -> str:
    """
    Check that ``tx_hash`` is a 0x-prefixed 32-byte hex string.

    Returns the lowercased hash.

    Raises:
        InvalidTransactionHashError: before any network call is made
    """
    if not isinstance(tx_hash, str) or not TX_HASH_PATTERN.match(tx_hash):
        raise InvalidTransactionHashError(tx_hash)
    return tx_hash.lower()


class TraceFetcher:
    """
    Issues the raw trace requests for a transaction.

    Any failure (transport error, node error, null result) is terminal for
    the transaction; nothing is retried.
    """

    def __init__(self, rpc_url: str = "http://localhost:8545", timeout: int = 30, w3: Optional[Web3] = None):
        self.rpc_url = rpc_url
        self.w3 = w3 or Web3(HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))

    def _debug_trace(self, tx_hash: str, tracer_kind: str, options: Dict[str, Any]) -> Any:
        logger.debug(f"debug_traceTransaction {tx_hash} ({tracer_kind} tracer)")
        try:
            response = self.w3.provider.make_request("debug_traceTransaction", [tx_hash, options])
        except Exception as e:
            raise TraceUnavailableError(tx_hash, tracer_kind, str(e))

        if response.get("error"):
            err = response["error"]
            reason = err.get("message", str(err)) if isinstance(err, dict) else str(err)
            raise TraceUnavailableError(tx_hash, tracer_kind, reason)

        result = response.get("result")
        if result is None:
            raise TraceUnavailableError(tx_hash, tracer_kind, "node returned no result")
        return result

    def fetch_call_tree(self, tx_hash: str) -> CallFrame:
        result = self._debug_trace(tx_hash, "call", CALL_TRACER)
        if not isinstance(result, dict):
            raise TraceUnavailableError(tx_hash, "call", "unexpected call tracer result")
        return CallFrame.from_dict(result)

    def _fetch_steps(self, tx_hash: str, tracer_kind: str, tracer: str) -> List[StepLogEntry]:
        result = self._debug_trace(tx_hash, tracer_kind, {"tracer": tracer})
        if not isinstance(result, list):
            raise TraceUnavailableError(tx_hash, tracer_kind, "unexpected step tracer result")
        entries = []
        for item in result:
            try:
                entries.append(StepLogEntry.from_dict(item))
            except (AttributeError, TypeError, ValueError) as e:
                log_trace(logger, f"Skipping malformed {tracer_kind} record: {e}")
        return entries

    def fetch_storage_writes(self, tx_hash: str) -> List[StepLogEntry]:
        return self._fetch_steps(tx_hash, "storage", STORAGE_WRITE_TRACER)

    def fetch_log_entries(self, tx_hash: str) -> List[StepLogEntry]:
        return self._fetch_steps(tx_hash, "logs", LOG3_TRACER)

    def prefetch(self, tx_hash: str, executor: ThreadPoolExecutor) -> Dict[str, Future]:
        """Submit all three trace requests at once; results are consumed stage by stage."""
        return {
            "call": executor.submit(self.fetch_call_tree, tx_hash),
            "storage": executor.submit(self.fetch_storage_writes, tx_hash),
            "logs": executor.submit(self.fetch_log_entries, tx_hash),
        }
