"""
Data model for raw traces and the annotated report.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .hexcodec import bytes_from_sparse_map, bytes_to_hex, hex_to_int, normalize_address, word_to_hex


@dataclass(frozen=True)
class CallFrame:
    """A node of the call tree returned by the node's ``callTracer``."""
    call_type: str
    from_addr: str
    to_addr: str
    gas: int
    value: Optional[int]
    input: str
    output: Optional[str] = None
    error: Optional[str] = None
    calls: Tuple["CallFrame", ...] = ()
    gas_used: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CallFrame":
        """Build a frame (and its children) from the raw tracer JSON."""
        value = data.get("value")
        output = data.get("output")
        error = data.get("error")
        # A reverting frame reports its error; any returned data is revert data
        if error is not None:
            output = None
        return cls(
            call_type=data.get("type", "CALL"),
            from_addr=(data.get("from") or "").lower(),
            to_addr=(data.get("to") or "").lower(),
            gas=hex_to_int(data.get("gas")),
            value=hex_to_int(value) if value is not None else None,
            input=data.get("input") or "0x",
            output=output,
            error=error,
            calls=tuple(cls.from_dict(c) for c in data.get("calls") or []),
            gas_used=hex_to_int(data["gasUsed"]) if data.get("gasUsed") is not None else None,
        )

    @property
    def selector(self) -> str:
        return self.input[:10].lower()

    @property
    def reverted(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class AnnotatedCallFrame:
    """A :class:`CallFrame` plus everything the enrichment passes resolved."""
    frame: CallFrame
    pretty_input: Optional[str] = None
    pretty_address: Optional[str] = None
    pretty_value: Optional[Decimal] = None
    pretty_output: Optional[str] = None
    calls: Tuple["AnnotatedCallFrame", ...] = ()

    @property
    def display_input(self) -> str:
        """Decoded label when known, raw input otherwise."""
        return self.pretty_input or self.frame.input

    @property
    def display_output(self) -> Optional[str]:
        if self.frame.reverted:
            return None
        if self.frame.output is None:
            # Bare value transfers return nothing
            return "0x"
        return self.pretty_output or self.frame.output


@dataclass(frozen=True)
class StepLogEntry:
    """One opcode-level record emitted by a custom step tracer."""
    op: str
    address: str
    caller: str
    stack: Tuple[str, ...]
    memory: bytes = b""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StepLogEntry":
        return cls(
            op=str(data.get("op", "")),
            address=normalize_address(data.get("address") or ""),
            caller=normalize_address(data.get("caller") or ""),
            stack=tuple(word_to_hex(w) for w in data.get("stack") or []),
            memory=bytes_from_sparse_map(data.get("memory") or b""),
        )

    def stack_from_end(self, position: int) -> str:
        """Stack word ``position`` places from the end (1 is the last word)."""
        return self.stack[-position]

    @property
    def memory_hex(self) -> str:
        return bytes_to_hex(self.memory)


@dataclass(frozen=True)
class TransferEvent:
    """An ERC20 ``Transfer`` emitted by ``token``."""
    token: str
    from_addr: str
    to_addr: str
    amount: int


@dataclass
class TokenMetadata:
    symbol: Optional[str] = None
    decimals: Optional[int] = None


# address -> slot -> value
StateDiffTable = Dict[str, Dict[str, str]]
# token address -> transfers in emission order
TransferTable = Dict[str, List[TransferEvent]]


class PipelineStage(str, Enum):
    """Progress of a report pipeline; stages only ever move forward."""
    RETRIEVING_TRACE = "RetrievingTrace"
    RETRIEVING_STATE_CHANGES = "RetrievingStateChanges"
    RETRIEVING_TRANSFER_EVENTS = "RetrievingTransferEvents"
    RETRIEVING_FUNCTION_SIGNATURES = "RetrievingFunctionSignatures"
    RETRIEVING_CONTRACT_NAMES = "RetrievingContractNames"
    DONE = "Done"

    @property
    def index(self) -> int:
        return list(PipelineStage).index(self)


@dataclass
class TraceReport:
    """Everything handed to the presentation layer for one transaction."""
    tx_hash: str
    call_tree: AnnotatedCallFrame
    state_diff: StateDiffTable
    transfers: TransferTable
    token_metadata: Dict[str, TokenMetadata] = field(default_factory=dict)
    stage: PipelineStage = PipelineStage.DONE
