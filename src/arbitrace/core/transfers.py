"""
ERC20 Transfer extraction from the LOG3 step trace.
"""

from typing import Iterable

from eth_utils import event_signature_to_log_topic

from .hexcodec import word_to_address, word_to_int
from .models import StepLogEntry, TransferEvent, TransferTable
from ..utils.logging import get_logger, log_trace

logger = get_logger("transfers")

LOG3 = "LOG3"

TRANSFER_EVENT_SIGNATURE = "Transfer(address,address,uint256)"
TRANSFER_TOPIC = "0x" + event_signature_to_log_topic(TRANSFER_EVENT_SIGNATURE).hex()

# Stack positions counted from the end of the emitted stack window
TOPIC_POSITION = 3
FROM_POSITION = 4
TO_POSITION = 5
AMOUNT_POSITION = 6


def extract_transfers(entries: Iterable[StepLogEntry], topic: str = TRANSFER_TOPIC) -> TransferTable:
    """
    Group Transfer events by emitting token, keeping emission order.

    Entries whose stack window is too short to hold every field are skipped.
    """
    topic = topic.lower()
    table: TransferTable = {}
    for entry in entries:
        if entry.op != LOG3:
            continue
        if len(entry.stack) < AMOUNT_POSITION:
            log_trace(logger, f"Skipping LOG3 with {len(entry.stack)} stack words at {entry.address}")
            continue
        if entry.stack_from_end(TOPIC_POSITION).lower() != topic:
            continue
        event = TransferEvent(
            token=entry.address,
            from_addr=word_to_address(entry.stack_from_end(FROM_POSITION)),
            to_addr=word_to_address(entry.stack_from_end(TO_POSITION)),
            amount=word_to_int(entry.stack_from_end(AMOUNT_POSITION)),
        )
        table.setdefault(entry.address, []).append(event)
    return table
