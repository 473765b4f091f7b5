"""
Signature Resolution Client

Looks unknown 4-byte selectors up in the 4byte directory.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

import requests

from ..config import DEFAULT_SIGNATURE_API_URL
from ..utils.exceptions import LookupServiceError
from ..utils.logging import get_logger

logger = get_logger("resolvers.signatures")


class SignatureResolver:
    """Client for the 4byte.directory signatures endpoint."""

    def __init__(
        self,
        api_url: str = DEFAULT_SIGNATURE_API_URL,
        timeout: int = 10,
        max_workers: int = 8,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url
        self.timeout = timeout
        self.max_workers = max_workers
        self.session = session or requests.Session()

    def lookup(self, selector: str) -> List[str]:
        """
        Text signatures registered for ``selector``, oldest entry first.

        Raises:
            LookupServiceError: on transport errors or a non-200 response
        """
        try:
            response = self.session.get(
                self.api_url,
                params={"format": "json", "hex_signature": selector},
                timeout=self.timeout,
            )
            if response.status_code != 200:
                raise LookupServiceError(
                    f"Signature lookup for {selector} returned HTTP {response.status_code}",
                    service="4byte",
                )
            data = response.json()
        except requests.RequestException as e:
            raise LookupServiceError(f"Signature lookup for {selector} failed: {e}", service="4byte")
        except ValueError as e:
            raise LookupServiceError(f"Signature lookup for {selector} returned invalid JSON: {e}", service="4byte")

        results = sorted(data.get("results") or [], key=lambda x: x.get("id", 0))
        return [r["text_signature"] for r in results if r.get("text_signature")]

    def _lookup_or_empty(self, selector: str) -> List[str]:
        try:
            return self.lookup(selector)
        except LookupServiceError as e:
            logger.debug(e.message)
            return []

    def resolve(self, selectors: Iterable[str]) -> List[str]:
        """
        Look every selector up concurrently.

        Returns ``function <text_signature>`` strings in selector order; a
        failed lookup contributes nothing.
        """
        selectors = list(dict.fromkeys(selectors))
        if not selectors:
            return []
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(selectors))) as executor:
            results = list(executor.map(self._lookup_or_empty, selectors))

        signatures = []
        for selector, found in zip(selectors, results):
            if not found:
                logger.debug(f"No signature found for {selector}")
            signatures.extend(f"function {text}" for text in found)
        return signatures
