"""
arbitrace - Transaction trace reports for EVM chains
"""

__version__ = "0.1.0"

# Utilities first: installs the logger class used by every module logger
from .utils import (
    ArbitraceError,
    InvalidTransactionHashError,
    TraceUnavailableError,
    setup_logging,
)

from .config import TracerConfig

from .core import (
    TracePipeline,
    TraceSession,
    TraceReport,
    PipelineStage,
    DecoderState,
    TraceFetcher,
    ReportSerializer,
)

from .cache import CacheStore

from .cli.main import main

__all__ = [
    '__version__',
    'main',
    'TracerConfig',
    'TracePipeline',
    'TraceSession',
    'TraceReport',
    'PipelineStage',
    'DecoderState',
    'TraceFetcher',
    'ReportSerializer',
    'CacheStore',
    'ArbitraceError',
    'InvalidTransactionHashError',
    'TraceUnavailableError',
    'setup_logging',
]
