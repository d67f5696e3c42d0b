"""Tests for cache key derivation utilities."""

from __future__ import annotations

import hashlib

from aicache.cache.key import (
    build_key,
    canonical_model_config,
    digest,
    hash_stable,
    normalize_input,
)

MODEL = {"model": "gpt-4-turbo-preview", "temperature": 0.7, "max_tokens": 1000}
PROMPT = "You are Flint, a marketing specialist."


class TestNormalizeInput:
    """Test cases for normalize_input function."""

    def test_normalize_dict_keys(self) -> None:
        """Test that dictionary keys are sorted."""
        data = {"z": 1, "a": 2, "m": 3}
        result = normalize_input(data)
        assert list(result.keys()) == ["a", "m", "z"]

    def test_normalize_nested_dict(self) -> None:
        """Test that nested dictionaries are sorted recursively."""
        data = {"outer": {"z": 1, "a": 2}, "first": {"y": 3, "b": 4}}
        result = normalize_input(data)
        assert list(result.keys()) == ["first", "outer"]
        assert list(result["outer"].keys()) == ["a", "z"]

    def test_normalize_preserves_list_order(self) -> None:
        """Test that list order is significant."""
        assert normalize_input([3, 1, 2]) == [3, 1, 2]

    def test_normalize_primitive_types(self) -> None:
        """Test that primitive types are returned as-is."""
        assert normalize_input("string") == "string"
        assert normalize_input(42) == 42
        assert normalize_input(None) is None


class TestDigest:
    """Test cases for digest and hash_stable."""

    def test_digest_is_truncated_sha256(self) -> None:
        """Test that digest is the first 16 hex chars of SHA-256."""
        expected = hashlib.sha256(b"hello").hexdigest()[:16]
        assert digest("hello") == expected

    def test_digest_width(self) -> None:
        """Test that digests have a fixed width."""
        assert len(digest("")) == 16
        assert len(digest("x" * 10000)) == 16

    def test_hash_stable_ignores_key_order(self) -> None:
        """Test that dictionary ordering doesn't affect the hash."""
        assert hash_stable({"a": 1, "b": {"c": 2, "d": 3}}) == hash_stable(
            {"b": {"d": 3, "c": 2}, "a": 1}
        )


class TestCanonicalModelConfig:
    """Test cases for model configuration canonicalization."""

    def test_leading_fields_first(self) -> None:
        """Test that model, temperature and max_tokens lead."""
        result = canonical_model_config({"top_p": 0.9, "max_tokens": 10, "model": "m", "temperature": 0})
        assert result.startswith('[{"model":"m","temperature":0,"max_tokens":10}')

    def test_remaining_fields_sorted(self) -> None:
        """Test that extra parameters are order independent."""
        a = canonical_model_config({"model": "m", "top_p": 0.9, "stop": ["x"]})
        b = canonical_model_config({"stop": ["x"], "model": "m", "top_p": 0.9})
        assert a == b


class TestBuildKey:
    """Test cases for build_key function."""

    def test_key_structure(self) -> None:
        """Test namespace, agent and component layout."""
        key = build_key("Hello", "flint", PROMPT, MODEL)
        parts = key.split(":")
        assert parts[0] == "ai_response"
        assert parts[1] == "flint"
        assert len(parts) == 5
        assert all(len(part) == 16 for part in parts[2:])

    def test_key_is_deterministic(self) -> None:
        """Test that equal inputs produce equal keys."""
        assert build_key("Hello", "flint", PROMPT, MODEL) == build_key(
            "Hello", "flint", PROMPT, dict(MODEL)
        )

    def test_message_whitespace_and_case_normalized(self) -> None:
        """Test that trivial message differences collapse to one key."""
        assert build_key("  What is SEO?  ", "flint", PROMPT, MODEL) == build_key(
            "what is seo?", "flint", PROMPT, MODEL
        )

    def test_system_prompt_hashed_verbatim(self) -> None:
        """Test that system prompt case differences change the key."""
        assert build_key("Hi", "flint", "You are Flint.", MODEL) != build_key(
            "Hi", "flint", "you are flint.", MODEL
        )

    def test_each_component_changes_key(self) -> None:
        """Test that any single differing component changes the key."""
        base = build_key("Hi", "flint", PROMPT, MODEL, {"user_id": "1"})
        variants = [
            build_key("Hello", "flint", PROMPT, MODEL, {"user_id": "1"}),
            build_key("Hi", "beacon", PROMPT, MODEL, {"user_id": "1"}),
            build_key("Hi", "flint", PROMPT + " ", MODEL, {"user_id": "1"}),
            build_key("Hi", "flint", PROMPT, {**MODEL, "temperature": 0.2}, {"user_id": "1"}),
            build_key("Hi", "flint", PROMPT, {**MODEL, "top_p": 0.5}, {"user_id": "1"}),
            build_key("Hi", "flint", PROMPT, MODEL, {"user_id": "2"}),
        ]
        assert base not in variants
        assert len(set(variants)) == len(variants)

    def test_model_config_order_independent(self) -> None:
        """Test that model parameter ordering doesn't affect the key."""
        reordered = {"max_tokens": 1000, "temperature": 0.7, "model": "gpt-4-turbo-preview"}
        assert build_key("Hi", "flint", PROMPT, MODEL) == build_key("Hi", "flint", PROMPT, reordered)

    def test_user_context_component_appended(self) -> None:
        """Test that user context adds a sixth component."""
        key = build_key("Hi", "flint", PROMPT, MODEL, {"user_id": "123"})
        assert len(key.split(":")) == 6

    def test_user_context_ignores_conversation(self) -> None:
        """Test that only user_id and preferences take part in the key."""
        a = build_key("Hi", "flint", PROMPT, MODEL, {"user_id": "1", "history": ["a"]})
        b = build_key("Hi", "flint", PROMPT, MODEL, {"user_id": "1", "history": ["b"]})
        assert a == b

    def test_user_preferences_change_key(self) -> None:
        """Test that stated preferences take part in the key."""
        a = build_key("Hi", "flint", PROMPT, MODEL, {"user_id": "1", "preferences": {"tone": "formal"}})
        b = build_key("Hi", "flint", PROMPT, MODEL, {"user_id": "1", "preferences": {"tone": "casual"}})
        assert a != b

    def test_personalization_disabled_skips_user_context(self) -> None:
        """Test that user context is ignored when personalization is off."""
        with_user = build_key("Hi", "flint", PROMPT, MODEL, {"user_id": "1"}, personalize=False)
        without_user = build_key("Hi", "flint", PROMPT, MODEL)
        assert with_user == without_user

    def test_missing_model_config(self) -> None:
        """Test that a missing model configuration still yields a key."""
        assert build_key("Hi", "flint", PROMPT) == build_key("Hi", "flint", PROMPT, {})

    def test_known_key_is_stable_across_processes(self) -> None:
        """Test that the key depends only on content hashes."""
        key = build_key("Hi", "flint", "p", {"model": "m"})
        expected_message = hashlib.sha256(b"hi").hexdigest()[:16]
        expected_prompt = hashlib.sha256(b"p").hexdigest()[:16]
        assert key.startswith(f"ai_response:flint:{expected_message}:{expected_prompt}:")
