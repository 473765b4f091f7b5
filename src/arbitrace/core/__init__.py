"""
Core module for arbitrace.

This module contains the trace retrieval and enrichment pipeline:
- TraceFetcher: raw call/storage/log traces from the node
- DecoderState: growable selector decoder
- TracePipeline / TraceSession: the staged orchestrator
- ReportSerializer: report to JSON
"""

from .models import (
    CallFrame,
    AnnotatedCallFrame,
    StepLogEntry,
    TransferEvent,
    TokenMetadata,
    PipelineStage,
    TraceReport,
)
from .decoder import DecoderState, SignatureDescriptor, DecodedCall
from .trace_fetcher import TraceFetcher, validate_tx_hash
from .state_diff import aggregate_state_diff
from .transfers import extract_transfers, TRANSFER_TOPIC
from .normalizer import format_trace_tree, unique_unknown_addresses, unique_unknown_selectors
from .pipeline import TracePipeline, TraceSession
from .serializer import ReportSerializer

__all__ = [
    'CallFrame',
    'AnnotatedCallFrame',
    'StepLogEntry',
    'TransferEvent',
    'TokenMetadata',
    'PipelineStage',
    'TraceReport',
    'DecoderState',
    'SignatureDescriptor',
    'DecodedCall',
    'TraceFetcher',
    'validate_tx_hash',
    'aggregate_state_diff',
    'extract_transfers',
    'TRANSFER_TOPIC',
    'format_trace_tree',
    'unique_unknown_addresses',
    'unique_unknown_selectors',
    'TracePipeline',
    'TraceSession',
    'ReportSerializer',
]
