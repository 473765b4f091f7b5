"""Tests for the 4byte signature client."""

from unittest.mock import MagicMock

import pytest
import requests

from arbitrace.resolvers.signatures import SignatureResolver
from arbitrace.utils.exceptions import LookupServiceError


def response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload if payload is not None else {"results": []}
    return resp


def make_session(by_selector):
    session = MagicMock()

    def get(url, params=None, timeout=None):
        outcome = by_selector[params["hex_signature"]]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    session.get.side_effect = get
    return session


class TestLookup:
    def test_results_sorted_oldest_first(self):
        session = make_session({"0x12345678": response(payload={"results": [
            {"id": 9, "text_signature": "newer(uint256)"},
            {"id": 3, "text_signature": "older(address)"},
        ]})})
        resolver = SignatureResolver(session=session)
        assert resolver.lookup("0x12345678") == ["older(address)", "newer(uint256)"]

    def test_http_error_raises(self):
        resolver = SignatureResolver(session=make_session({"0x12345678": response(status_code=502)}))
        with pytest.raises(LookupServiceError):
            resolver.lookup("0x12345678")

    def test_invalid_json_raises(self):
        bad = response()
        bad.json.side_effect = ValueError("not json")
        resolver = SignatureResolver(session=make_session({"0x12345678": bad}))
        with pytest.raises(LookupServiceError):
            resolver.lookup("0x12345678")


class TestResolve:
    def test_failures_contribute_nothing(self):
        session = make_session({
            "0x11111111": response(payload={"results": [{"id": 1, "text_signature": "a()"}]}),
            "0x22222222": requests.ConnectionError("down"),
            "0x33333333": response(status_code=500),
            "0x44444444": response(payload={"results": [{"id": 1, "text_signature": "d(uint256)"}]}),
        })
        resolver = SignatureResolver(session=session)
        result = resolver.resolve(["0x11111111", "0x22222222", "0x33333333", "0x44444444"])
        assert result == ["function a()", "function d(uint256)"]

    def test_duplicates_are_looked_up_once(self):
        session = make_session({"0x11111111": response()})
        SignatureResolver(session=session).resolve(["0x11111111", "0x11111111"])
        assert session.get.call_count == 1

    def test_nothing_to_resolve(self):
        session = MagicMock()
        assert SignatureResolver(session=session).resolve([]) == []
        session.get.assert_not_called()
