"""Tests for the persisted cache store."""

import json

import pytest

from arbitrace.cache import CUSTOM_SIGNATURES, KNOWN_ADDRESSES, TOKEN_DECIMALS, TOKEN_NAMES, CacheStore, merge_state
from arbitrace.utils.exceptions import CacheStoreError


def test_missing_file_loads_empty(cache_store):
    assert cache_store.load() == {
        KNOWN_ADDRESSES: {},
        CUSTOM_SIGNATURES: [],
        TOKEN_NAMES: {},
        TOKEN_DECIMALS: {},
    }


def test_merge_is_additive(cache_store):
    cache_store.merge({KNOWN_ADDRESSES: {"0xa": "A"}, CUSTOM_SIGNATURES: ["function a()"]})
    cache_store.merge({KNOWN_ADDRESSES: {"0xb": "B"}, CUSTOM_SIGNATURES: ["function a()", "function b()"]})

    state = cache_store.load()
    assert state[KNOWN_ADDRESSES] == {"0xa": "A", "0xb": "B"}
    assert state[CUSTOM_SIGNATURES] == ["function a()", "function b()"]


def test_merge_replaces_existing_keys(cache_store):
    cache_store.merge({TOKEN_DECIMALS: {"0xa": 6}})
    cache_store.merge({TOKEN_DECIMALS: {"0xa": 18}, TOKEN_NAMES: {"0xa": "TKN"}})
    assert cache_store.get(TOKEN_DECIMALS) == {"0xa": 18}
    assert cache_store.get(TOKEN_NAMES) == {"0xa": "TKN"}


def test_state_survives_new_instance(cache_store):
    cache_store.merge({KNOWN_ADDRESSES: {"0xa": "A"}})
    reopened = CacheStore(str(cache_store.path.parent))
    assert reopened.get(KNOWN_ADDRESSES) == {"0xa": "A"}


def test_unknown_key_rejected(cache_store):
    with pytest.raises(CacheStoreError):
        cache_store.merge({"somethingElse": {}})


def test_corrupt_file(cache_store):
    cache_store.path.parent.mkdir(parents=True)
    cache_store.path.write_text("{not json")
    with pytest.raises(CacheStoreError):
        cache_store.load()


def test_wrongly_typed_sections_are_reset(cache_store):
    cache_store.path.parent.mkdir(parents=True)
    cache_store.path.write_text(json.dumps({KNOWN_ADDRESSES: ["oops"], TOKEN_NAMES: {"0xa": "A"}}))
    state = cache_store.load()
    assert state[KNOWN_ADDRESSES] == {}
    assert state[TOKEN_NAMES] == {"0xa": "A"}


def test_merge_state_does_not_mutate_input():
    current = {KNOWN_ADDRESSES: {"0xa": "A"}, CUSTOM_SIGNATURES: ["x()"]}
    merged = merge_state(current, {KNOWN_ADDRESSES: {"0xb": "B"}, CUSTOM_SIGNATURES: ["y()"]})
    assert current == {KNOWN_ADDRESSES: {"0xa": "A"}, CUSTOM_SIGNATURES: ["x()"]}
    assert merged[CUSTOM_SIGNATURES] == ["x()", "y()"]


def test_parent_is_a_regular_file(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    store = CacheStore(str(blocker))

    assert store.load()[KNOWN_ADDRESSES] == {}
    with pytest.raises(CacheStoreError) as exc_info:
        store.merge({KNOWN_ADDRESSES: {"0xa": "A"}})
    assert exc_info.value.details["path"] == str(store.path)
    assert list(tmp_path.iterdir()) == [blocker]
