from .store import (
    CacheStore,
    KNOWN_ADDRESSES,
    CUSTOM_SIGNATURES,
    TOKEN_NAMES,
    TOKEN_DECIMALS,
    merge_state,
)

__all__ = [
    'CacheStore',
    'KNOWN_ADDRESSES',
    'CUSTOM_SIGNATURES',
    'TOKEN_NAMES',
    'TOKEN_DECIMALS',
    'merge_state',
]
