"""Tests for the token metadata client."""

from unittest.mock import MagicMock

from arbitrace.core.models import TokenMetadata
from arbitrace.resolvers.tokens import TokenMetadataResolver

from conftest import TOKEN

OTHER_TOKEN = "0x" + "55" * 20


def fake_w3(symbols, decimals):
    """web3 double whose contracts answer from the given per-address tables."""
    w3 = MagicMock()

    def contract(address, abi):
        key = address.lower()
        c = MagicMock()
        for fn, table in (("symbol", symbols), ("decimals", decimals)):
            value = table.get(key)
            call = getattr(c.functions, fn).return_value.call
            if isinstance(value, Exception):
                call.side_effect = value
            else:
                call.return_value = value
        return c

    w3.eth.contract.side_effect = contract
    return w3


def test_fetch_both_fields():
    resolver = TokenMetadataResolver(fake_w3({TOKEN: "TKN"}, {TOKEN: 18}))
    assert resolver.fetch(TOKEN) == TokenMetadata(symbol="TKN", decimals=18)


def test_failed_call_leaves_field_empty():
    resolver = TokenMetadataResolver(fake_w3({TOKEN: "TKN"}, {TOKEN: Exception("execution reverted")}))
    assert resolver.fetch(TOKEN) == TokenMetadata(symbol="TKN", decimals=None)


def test_contract_bound_with_checksum_address():
    token = "0x" + "ab" * 20
    w3 = fake_w3({token: "TKN"}, {token: 6})
    TokenMetadataResolver(w3).fetch(token)
    address = w3.eth.contract.call_args.kwargs["address"]
    assert address.lower() == token
    assert address != token


def test_resolve_many():
    resolver = TokenMetadataResolver(fake_w3(
        {TOKEN: "TKN", OTHER_TOKEN: Exception("no symbol")},
        {TOKEN: 18, OTHER_TOKEN: 6},
    ))
    result = resolver.resolve([TOKEN, OTHER_TOKEN, TOKEN.upper().replace("0X", "0x")])
    assert result == {
        TOKEN: TokenMetadata("TKN", 18),
        OTHER_TOKEN: TokenMetadata(None, 6),
    }


def test_resolve_nothing():
    w3 = MagicMock()
    assert TokenMetadataResolver(w3).resolve([]) == {}
    w3.eth.contract.assert_not_called()
