"""
JSON serialization of trace reports for the presentation layer.
"""

import json
from decimal import Decimal
from typing import Any, Dict, Optional

from .decoder import DecoderState
from .formatting import format_units
from .models import AnnotatedCallFrame, TraceReport
from .transfers import TRANSFER_TOPIC


class ReportSerializer:
    """Turns a :class:`TraceReport` into plain JSON-ready structures."""

    def __init__(self, decoder: Optional[DecoderState] = None):
        self.decoder = decoder

    def serialize_frame(self, node: AnnotatedCallFrame) -> Dict[str, Any]:
        frame = node.frame
        data: Dict[str, Any] = {
            "type": frame.call_type,
            "from": frame.from_addr,
            "to": frame.to_addr,
            "gas": frame.gas,
            "input": frame.input,
            "prettyInput": node.pretty_input,
            "prettyAddress": node.pretty_address,
            "prettyValue": _decimal_str(node.pretty_value),
        }
        if frame.value is not None:
            data["value"] = str(frame.value)
        if frame.gas_used is not None:
            data["gasUsed"] = frame.gas_used
        if frame.reverted:
            data["error"] = frame.error
        else:
            data["output"] = node.display_output
            data["prettyOutput"] = node.pretty_output
        data["calls"] = [self.serialize_frame(child) for child in node.calls]
        return data

    def serialize_transfers(self, report: TraceReport) -> Dict[str, Any]:
        event = self.decoder.event_for_topic(TRANSFER_TOPIC) if self.decoder else None
        result = {}
        for token, events in report.transfers.items():
            meta = report.token_metadata.get(token)
            decimals = meta.decimals if meta else None
            result[token] = {
                "symbol": meta.symbol if meta else None,
                "decimals": decimals,
                "event": event.signature if event else None,
                "transfers": [
                    {
                        "from": e.from_addr,
                        "to": e.to_addr,
                        "amount": str(e.amount),
                        "prettyAmount": format_units(e.amount, decimals),
                    }
                    for e in events
                ],
            }
        return result

    def serialize(self, report: TraceReport) -> Dict[str, Any]:
        return {
            "txHash": report.tx_hash,
            "stage": report.stage.value,
            "callTree": self.serialize_frame(report.call_tree),
            "stateDiff": report.state_diff,
            "transfers": self.serialize_transfers(report),
        }

    def to_json(self, report: TraceReport, indent: int = 2) -> str:
        return json.dumps(self.serialize(report), indent=indent)


def _decimal_str(value: Optional[Decimal]) -> Optional[str]:
    if value is None:
        return None
    return format(value.normalize(), "f")
