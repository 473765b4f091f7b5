"""
Call tree walks.

Collects the selectors and addresses the enrichment stages must look up, and
builds the annotated tree. None of these functions touch the raw CallFrame
tree; annotating the same tree twice yields two independent results.
"""

from typing import List, Mapping

from .decoder import DecoderState
from .formatting import format_argument, format_call, format_ether
from .models import AnnotatedCallFrame, CallFrame


def _unique(items: List[str]) -> List[str]:
    return list(dict.fromkeys(items))


def collect_unknown_selectors(decoder: DecoderState, frame: CallFrame) -> List[str]:
    """Selectors the decoder cannot resolve, depth-first, duplicates included."""
    unknown = []
    # Inputs shorter than a selector (plain value transfers) have nothing to look up
    if len(frame.input) >= 10 and decoder.try_decode(frame.input) is None:
        unknown.append(frame.selector)
    for child in frame.calls:
        unknown.extend(collect_unknown_selectors(decoder, child))
    return unknown


def unique_unknown_selectors(decoder: DecoderState, frame: CallFrame) -> List[str]:
    return _unique(collect_unknown_selectors(decoder, frame))


def collect_unknown_addresses(known_addresses: Mapping[str, str], frame: CallFrame) -> List[str]:
    """Lowercased sender/recipient addresses missing from ``known_addresses``."""
    unknown = []
    for addr in (frame.from_addr, frame.to_addr):
        addr = addr.lower()
        if addr and not known_addresses.get(addr):
            unknown.append(addr)
    for child in frame.calls:
        unknown.extend(collect_unknown_addresses(known_addresses, child))
    return unknown


def unique_unknown_addresses(known_addresses: Mapping[str, str], frame: CallFrame) -> List[str]:
    return _unique(collect_unknown_addresses(known_addresses, frame))


def format_trace_tree(
    decoder: DecoderState,
    known_addresses: Mapping[str, str],
    frame: CallFrame,
) -> AnnotatedCallFrame:
    """Annotate ``frame`` and its subtree with decoded calls, names and values."""
    pretty_input = None
    pretty_output = None

    decoded = decoder.try_decode(frame.input)
    if decoded is not None:
        types = decoded.descriptor.input_types
        pretty_input = format_call(decoded.name, decoded.args, types, decoded.param_names)
        if frame.output is not None:
            outputs = decoder.decode_output(decoded.descriptor, frame.output)
            if outputs is not None:
                out_types = decoded.descriptor.output_types
                pretty_output = ", ".join(format_argument(v, t) for v, t in zip(outputs, out_types))

    pretty_value = None
    if frame.value:
        pretty_value = format_ether(frame.value)

    return AnnotatedCallFrame(
        frame=frame,
        pretty_input=pretty_input,
        pretty_address=known_addresses.get(frame.to_addr.lower()) or None,
        pretty_value=pretty_value,
        pretty_output=pretty_output,
        calls=tuple(format_trace_tree(decoder, known_addresses, child) for child in frame.calls),
    )


def count_frames(frame: CallFrame) -> int:
    return 1 + sum(count_frames(c) for c in frame.calls)
