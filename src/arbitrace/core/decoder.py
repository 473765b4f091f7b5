"""
Selector decoder

DecoderState is an append-only table of function and event signatures keyed
by 4-byte selector / 32-byte topic. Decoding a call is a lookup followed by an
ABI decode; a candidate only counts when re-encoding the decoded arguments
reproduces the calldata, so colliding directory signatures cannot produce
garbage labels.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_utils import (
    decode_hex,
    event_signature_to_log_topic,
    function_signature_to_4byte_selector,
)

from ..abi import load_abi
from ..utils.logging import get_logger

logger = get_logger("decoder")

DEFAULT_ABI_FILES = (
    "ERC20.json",
    "ERC721.json",
    "SeaportRouter.json",
    "UniswapV2SwapRouter.json",
    "UniswapV3.json",
    "WETH.json",
)

_TYPE_ALIASES = {"uint": "uint256", "int": "int256", "byte": "bytes1"}
_MODIFIERS = {"indexed", "memory", "calldata", "storage", "payable"}


@dataclass(frozen=True)
class Param:
    name: str
    type: str


@dataclass(frozen=True)
class SignatureDescriptor:
    """A function or event declaration: name plus ordered typed parameters."""
    kind: str
    name: str
    inputs: Tuple[Param, ...]
    outputs: Tuple[Param, ...] = ()

    @property
    def input_types(self) -> List[str]:
        return [p.type for p in self.inputs]

    @property
    def output_types(self) -> List[str]:
        return [p.type for p in self.outputs]

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.input_types)})"

    @property
    def selector(self) -> str:
        if self.kind == "event":
            return "0x" + event_signature_to_log_topic(self.signature).hex()
        return "0x" + function_signature_to_4byte_selector(self.signature).hex()

    def to_text(self) -> str:
        """Human-readable form, e.g. ``function transfer(address to,uint256 amount)``."""
        params = ",".join(f"{p.type} {p.name}".strip() for p in self.inputs)
        text = f"{self.kind} {self.name}({params})"
        if self.outputs:
            text += " returns (" + ",".join(f"{p.type} {p.name}".strip() for p in self.outputs) + ")"
        return text

    @classmethod
    def from_abi_item(cls, item: Dict[str, Any]) -> "SignatureDescriptor":
        return cls(
            kind=item["type"],
            name=item["name"],
            inputs=tuple(Param(i.get("name") or "", format_abi_type(i)) for i in item.get("inputs", [])),
            outputs=tuple(Param(o.get("name") or "", format_abi_type(o)) for o in item.get("outputs", [])),
        )

    @classmethod
    def from_text(cls, text: str) -> "SignatureDescriptor":
        """
        Parse ``transfer(address,uint256)``, ``function transfer(address to, uint256)``
        or ``event Transfer(address indexed from, ...)``.
        """
        text = text.strip()
        kind = "function"
        for prefix in ("function ", "event "):
            if text.startswith(prefix):
                kind = prefix.strip()
                text = text[len(prefix):].strip()
                break

        open_idx = text.find("(")
        if open_idx <= 0:
            raise ValueError(f"Not a signature: {text!r}")
        name = text[:open_idx].strip()
        close_idx = _matching_paren(text, open_idx)
        inputs = _parse_params(text[open_idx + 1:close_idx])

        outputs: Tuple[Param, ...] = ()
        rest = text[close_idx + 1:].strip()
        returns_idx = rest.find("returns")
        if returns_idx >= 0:
            out_open = rest.index("(", returns_idx)
            out_close = _matching_paren(rest, out_open)
            outputs = _parse_params(rest[out_open + 1:out_close])

        if not name.isidentifier():
            raise ValueError(f"Invalid signature name: {name!r}")
        return cls(kind=kind, name=name, inputs=inputs, outputs=outputs)


def format_abi_type(abi_input: Dict[str, Any]) -> str:
    """Format ABI type, handling tuples correctly."""
    abi_type = abi_input["type"]
    if abi_type.startswith("tuple"):
        components = abi_input.get("components", [])
        inner = ",".join(format_abi_type(c) for c in components)
        return f"({inner}){abi_type[len('tuple'):]}"
    return _TYPE_ALIASES.get(abi_type, abi_type)


def _matching_paren(text: str, open_idx: int) -> int:
    depth = 0
    for idx in range(open_idx, len(text)):
        if text[idx] == "(":
            depth += 1
        elif text[idx] == ")":
            depth -= 1
            if depth == 0:
                return idx
    raise ValueError(f"Unbalanced parentheses in {text!r}")


def _split_top_level(text: str) -> List[str]:
    parts, depth, current = [], 0, []
    for ch in text:
        if ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        current.append(ch)
    parts.append("".join(current))
    return [p.strip() for p in parts]


def _normalize_type(abi_type: str) -> str:
    if abi_type.startswith("tuple("):
        abi_type = abi_type[len("tuple"):]
    if abi_type.startswith("("):
        close_idx = _matching_paren(abi_type, 0)
        inner = ",".join(_parse_param(p).type for p in _split_top_level(abi_type[1:close_idx]) if p)
        return f"({inner}){abi_type[close_idx + 1:]}"
    base, bracket, suffix = abi_type.partition("[")
    return _TYPE_ALIASES.get(base, base) + bracket + suffix


def _parse_param(text: str) -> Param:
    text = text.strip()
    if not text:
        raise ValueError("Empty parameter")
    if text.startswith("(") or text.startswith("tuple("):
        start = text.index("(")
        close_idx = _matching_paren(text, start)
        # keep any array suffix attached to the tuple
        end = close_idx + 1
        while end < len(text) and not text[end].isspace():
            end += 1
        type_part, rest = text[:end], text[end:].split()
    else:
        tokens = text.split()
        type_part, rest = tokens[0], tokens[1:]
    rest = [t for t in rest if t not in _MODIFIERS]
    return Param(name=rest[-1] if rest else "", type=_normalize_type(type_part))


def _parse_params(text: str) -> Tuple[Param, ...]:
    if not text.strip():
        return ()
    return tuple(_parse_param(p) for p in _split_top_level(text))


@dataclass(frozen=True)
class DecodedCall:
    """A calldata blob matched to a signature."""
    descriptor: SignatureDescriptor
    args: Tuple[Any, ...]

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def param_names(self) -> List[str]:
        return [p.name for p in self.descriptor.inputs]


def _to_bytes(data: Any) -> bytes:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if not data:
        return b""
    return decode_hex(data)


def _is_canonical(types: List[str], values: Tuple[Any, ...], data: bytes) -> bool:
    """True when re-encoding ``values`` reproduces the start of ``data``."""
    try:
        encoded = abi_encode(types, values)
    except Exception:
        return False
    return data[:len(encoded)] == encoded


class DecoderState:
    """
    Growable signature table.

    Signatures are only ever appended. A selector with a single candidate
    decodes with it whenever eth_abi accepts the calldata. When candidates
    collide, the first one (in insertion order) whose re-encoding reproduces
    the calldata wins, falling back to the first one that decodes at all.
    Adding signatures can turn an unknown call into a known one but never
    displaces a canonically matching result.
    """

    def __init__(self, descriptors: Iterable[SignatureDescriptor] = ()):
        self._functions: Dict[str, List[SignatureDescriptor]] = {}
        self._events: Dict[str, List[SignatureDescriptor]] = {}
        self._seen = set()
        self._order: List[SignatureDescriptor] = []
        self.extend(descriptors)

    @classmethod
    def from_abi(cls, abi: Iterable[Dict[str, Any]]) -> "DecoderState":
        return cls(
            SignatureDescriptor.from_abi_item(item)
            for item in abi
            if item.get("type") in ("function", "event")
        )

    @classmethod
    def default(cls, extra_signatures: Iterable[str] = ()) -> "DecoderState":
        """Decoder seeded with the bundled common ABIs plus persisted text signatures."""
        abi: List[Dict[str, Any]] = []
        for file_name in DEFAULT_ABI_FILES:
            abi.extend(load_abi(file_name))
        state = cls.from_abi(abi)
        state.extend_text(extra_signatures)
        return state

    def __len__(self) -> int:
        return len(self._order)

    def add(self, descriptor: SignatureDescriptor) -> bool:
        """Append a signature; returns False when it was already known."""
        key = (descriptor.kind, descriptor.signature)
        if key in self._seen:
            return False
        self._seen.add(key)
        self._order.append(descriptor)
        table = self._events if descriptor.kind == "event" else self._functions
        table.setdefault(descriptor.selector, []).append(descriptor)
        return True

    def extend(self, descriptors: Iterable[SignatureDescriptor]) -> int:
        return sum(1 for d in descriptors if self.add(d))

    def extend_text(self, signatures: Iterable[str]) -> int:
        """Append text signatures, skipping the ones that do not parse."""
        added = 0
        for text in signatures:
            try:
                descriptor = SignatureDescriptor.from_text(text)
            except ValueError as e:
                logger.debug(f"Ignoring unparsable signature {text!r}: {e}")
                continue
            if self.add(descriptor):
                added += 1
        return added

    def copy(self) -> "DecoderState":
        return DecoderState(self._order)

    def format(self) -> List[str]:
        """Every known signature in human-readable form, in insertion order."""
        return [d.to_text() for d in self._order]

    def candidates(self, selector: str) -> List[SignatureDescriptor]:
        return list(self._functions.get(selector.lower(), []))

    def event_for_topic(self, topic: str) -> Optional[SignatureDescriptor]:
        matches = self._events.get(topic.lower())
        return matches[0] if matches else None

    def try_decode(self, input_data: Any) -> Optional[DecodedCall]:
        """Decode calldata into a named call, or None when the selector is unknown."""
        try:
            data = _to_bytes(input_data)
        except (ValueError, TypeError):
            return None
        if len(data) < 4:
            return None
        selector = "0x" + data[:4].hex()
        candidates = self._functions.get(selector, [])
        fallback = None
        for descriptor in candidates:
            try:
                args = tuple(abi_decode(descriptor.input_types, data[4:]))
            except Exception:
                continue
            if len(candidates) == 1 or _is_canonical(descriptor.input_types, args, data[4:]):
                return DecodedCall(descriptor, args)
            if fallback is None:
                fallback = DecodedCall(descriptor, args)
        return fallback

    def decode_output(self, descriptor: SignatureDescriptor, output: Any) -> Optional[Tuple[Any, ...]]:
        """Decode return data with the declared outputs, None when undeclared or undecodable."""
        if not descriptor.outputs or output is None:
            return None
        try:
            return tuple(abi_decode(descriptor.output_types, _to_bytes(output)))
        except Exception:
            return None
