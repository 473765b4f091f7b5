"""
Address Resolution Client

Resolves contract names through an Etherscan-compatible ``getsourcecode``
endpoint. The service is rate limited, so lookups go out in batches of at
most five concurrent requests with a pause between batches.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Optional

import requests

from ..config import DEFAULT_EXPLORER_API_URL, MAX_BATCH_SIZE, MIN_BATCH_PAUSE
from ..utils.exceptions import LookupServiceError
from ..utils.logging import get_logger

logger = get_logger("resolvers.addresses")


class AddressResolver:
    """Client for verified-contract names."""

    def __init__(
        self,
        api_url: str = DEFAULT_EXPLORER_API_URL,
        api_key: str = "",
        timeout: int = 10,
        batch_size: int = MAX_BATCH_SIZE,
        batch_pause: float = MIN_BATCH_PAUSE,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if not 1 <= batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}")
        self.api_url = api_url
        self.api_key = api_key
        self.timeout = timeout
        self.batch_size = batch_size
        self.batch_pause = max(batch_pause, MIN_BATCH_PAUSE)
        self.session = session or requests.Session()
        self.sleep = sleep

    def lookup(self, address: str) -> Optional[str]:
        """
        Contract name for ``address``; None for unverified contracts and EOAs.

        Raises:
            LookupServiceError: on transport errors or an unreadable response
        """
        params = {
            "module": "contract",
            "action": "getsourcecode",
            "address": address,
            "apikey": self.api_key,
        }
        try:
            response = self.session.get(self.api_url, params=params, timeout=self.timeout)
            data = response.json()
        except requests.RequestException as e:
            raise LookupServiceError(f"Name lookup for {address} failed: {e}", service="explorer")
        except ValueError as e:
            raise LookupServiceError(f"Name lookup for {address} returned invalid JSON: {e}", service="explorer")

        result = data.get("result")
        if not isinstance(result, list) or not result or not isinstance(result[0], dict):
            return None
        return result[0].get("ContractName") or None

    def _lookup_or_none(self, address: str) -> Optional[str]:
        try:
            return self.lookup(address)
        except LookupServiceError as e:
            logger.debug(e.message)
            return None

    def batches(self, addresses: List[str]) -> List[List[str]]:
        return [addresses[i:i + self.batch_size] for i in range(0, len(addresses), self.batch_size)]

    def resolve(self, addresses: Iterable[str]) -> Dict[str, str]:
        """
        Names for every address the service knows, keyed by lowercased address.

        Addresses without a name (failed lookup, unverified, empty name) are
        left out of the result.
        """
        addresses = list(dict.fromkeys(a.lower() for a in addresses))
        if not addresses:
            return {}

        rate_limited = len(addresses) >= MAX_BATCH_SIZE
        names: Dict[str, str] = {}
        batches = self.batches(addresses)
        with ThreadPoolExecutor(max_workers=self.batch_size) as executor:
            for index, batch in enumerate(batches):
                if index > 0 and rate_limited:
                    self.sleep(self.batch_pause)
                logger.debug(f"Resolving contract names, batch {index + 1}/{len(batches)} ({len(batch)} addresses)")
                for address, name in zip(batch, executor.map(self._lookup_or_none, batch)):
                    if name:
                        names[address] = name
        return names
