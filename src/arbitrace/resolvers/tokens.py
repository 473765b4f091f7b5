"""
Token Metadata Client

Reads ``symbol()`` and ``decimals()`` from token contracts.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable

from web3 import Web3

from ..abi import load_abi
from ..core.models import TokenMetadata
from ..utils.logging import get_logger

logger = get_logger("resolvers.tokens")

ERC20_ABI = load_abi("ERC20.json")


class TokenMetadataResolver:
    """Binds the generic ERC20 interface at each token address."""

    def __init__(self, w3: Web3, max_workers: int = 8):
        self.w3 = w3
        self.max_workers = max_workers

    def _call(self, token: str, function: str):
        try:
            contract = self.w3.eth.contract(address=Web3.to_checksum_address(token), abi=ERC20_ABI)
            return getattr(contract.functions, function)().call()
        except Exception as e:
            logger.debug(f"{function}() failed for token {token}: {e}")
            return None

    def fetch(self, token: str) -> TokenMetadata:
        """Symbol and decimals of ``token``; a failed read leaves that field None."""
        symbol = self._call(token, "symbol")
        decimals = self._call(token, "decimals")
        return TokenMetadata(
            symbol=symbol if isinstance(symbol, str) and symbol else None,
            decimals=decimals if isinstance(decimals, int) else None,
        )

    def resolve(self, tokens: Iterable[str]) -> Dict[str, TokenMetadata]:
        tokens = list(dict.fromkeys(t.lower() for t in tokens))
        if not tokens:
            return {}
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(tokens))) as executor:
            results = list(executor.map(self.fetch, tokens))
        return dict(zip(tokens, results))
