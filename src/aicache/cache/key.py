"""Cache key derivation for AI responses.

This module turns a fully-formed AI request (message, agent, system prompt,
model configuration and optional user context) into a deterministic cache key.
Normalization ensures that semantically equivalent inputs produce identical
keys regardless of dictionary ordering, surrounding whitespace or letter case
in the user message.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping, Optional

NAMESPACE = "ai_response"
KEY_DELIMITER = ":"
DIGEST_LENGTH = 16

# Model parameters that always lead the canonical form, in this order
_LEADING_MODEL_FIELDS = ("model", "temperature", "max_tokens")


def normalize_input(data: Any) -> Any:
    """Normalize a data structure to ensure stable ordering.

    Recursively sorts all dictionary keys so that equivalent structures
    serialize identically. List order is preserved.

    Example:
        >>> normalize_input({"b": 1, "a": {"d": 2, "c": 3}})
        {'a': {'c': 3, 'd': 2}, 'b': 1}
    """
    if isinstance(data, Mapping):
        return {str(k): normalize_input(v) for k, v in sorted(data.items(), key=lambda i: str(i[0]))}
    elif isinstance(data, (list, tuple)):
        return [normalize_input(item) for item in data]
    else:
        return data


def canonical_json(data: Any) -> str:
    """Serialize data into a compact, key-sorted JSON string."""
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def digest(value: str) -> str:
    """Return a 16 character SHA-256 fingerprint of a string.

    Example:
        >>> len(digest("hello"))
        16
    """
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:DIGEST_LENGTH]


def hash_stable(data: Any) -> str:
    """Fingerprint any JSON-serializable data structure."""
    return digest(canonical_json(normalize_input(data)))


def normalize_message(message: str) -> str:
    """Trim and case-fold free-text message content."""
    return message.strip().lower()


def canonical_model_config(model_config: Mapping[str, Any]) -> str:
    """Build the stable string form of a model configuration.

    The model name, temperature and maximum output tokens lead the
    representation; every remaining parameter follows sorted by name.
    """
    leading = {name: model_config.get(name) for name in _LEADING_MODEL_FIELDS}
    remaining = {
        str(name): normalize_input(value)
        for name, value in sorted(model_config.items(), key=lambda i: str(i[0]))
        if name not in _LEADING_MODEL_FIELDS
    }
    return json.dumps(
        [leading, remaining],
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def canonical_user_context(user_context: Mapping[str, Any]) -> str:
    """Build the stable string form of the personalization subset of a user context.

    Only the user identifier and stated preferences take part; conversation
    history or any other field never reaches the key.
    """
    subset = {
        "user_id": user_context.get("user_id"),
        "preferences": normalize_input(user_context.get("preferences")),
    }
    return canonical_json(subset)


def build_key(
    message: str,
    agent_id: str,
    system_prompt: str,
    model_config: Optional[Mapping[str, Any]] = None,
    user_context: Optional[Mapping[str, Any]] = None,
    *,
    personalize: bool = True,
) -> str:
    """Compute the cache key for an AI request.

    The key is a pure function of its arguments: no I/O, clock or randomness
    is involved, so equal requests map to the same key across processes.

    Args:
        message: User message. Trimmed and lower-cased before hashing.
        agent_id: Identifier of the answering agent.
        system_prompt: System prompt, hashed verbatim.
        model_config: Model parameters (model, temperature, max_tokens, ...).
        user_context: Optional user context; only ``user_id`` and
            ``preferences`` are used.
        personalize: Include the user context component when present.

    Returns:
        Key of the form ``ai_response:<agent>:<msg>:<prompt>:<model>[:<user>]``.

    Example:
        >>> build_key("Hi", "flint", "You are Flint.", {"model": "gpt-4"}).split(":")[:2]
        ['ai_response', 'flint']
    """
    message_hash = digest(normalize_message(message))
    system_prompt_hash = digest(system_prompt)
    model_config_hash = digest(canonical_model_config(model_config or {}))

    user_context_hash = ""
    if personalize and user_context:
        user_context_hash = digest(canonical_user_context(user_context))

    components = [
        NAMESPACE,
        agent_id,
        message_hash,
        system_prompt_hash,
        model_config_hash,
        user_context_hash,
    ]
    return KEY_DELIMITER.join(part for part in components if part)
