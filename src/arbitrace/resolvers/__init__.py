"""
External lookup clients used by the enrichment stages.
"""

from .signatures import SignatureResolver
from .addresses import AddressResolver
from .tokens import TokenMetadataResolver

__all__ = [
    'SignatureResolver',
    'AddressResolver',
    'TokenMetadataResolver',
]
