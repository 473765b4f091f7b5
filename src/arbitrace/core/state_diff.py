"""
Storage write aggregation.

Folds the SSTORE step trace into the last value written per (contract, slot).
"""

from typing import Iterable

from .models import StateDiffTable, StepLogEntry
from ..utils.logging import get_logger, log_trace

logger = get_logger("state_diff")

SSTORE = "SSTORE"


def aggregate_state_diff(entries: Iterable[StepLogEntry]) -> StateDiffTable:
    """
    Build the state diff table from storage-write records in execution order.

    SSTORE pops the slot first and the value second, so with the stack
    emitted bottom-to-top the slot is the last word and the value the one
    beneath it. Later writes to the same slot replace earlier ones.
    """
    table: StateDiffTable = {}
    for entry in entries:
        if entry.op != SSTORE:
            continue
        if len(entry.stack) < 2:
            log_trace(logger, f"Skipping SSTORE with {len(entry.stack)} stack words at {entry.address}")
            continue
        slot = entry.stack_from_end(1)
        value = entry.stack_from_end(2)
        table.setdefault(entry.address, {})[slot] = value
    return table
