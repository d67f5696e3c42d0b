from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from aicache.cli import app

runner = CliRunner()


def test_key_command() -> None:
    """Test that key prints a deterministic namespaced key."""
    args = ["key", "What is your return policy?", "--agent", "beacon", "--model", "gpt-4"]
    first = runner.invoke(app, args)
    second = runner.invoke(app, args)
    assert first.exit_code == 0
    assert first.stdout == second.stdout
    parts = first.stdout.strip().split(":")
    assert parts[:2] == ["ai_response", "beacon"]
    assert len(parts) == 5


def test_key_command_with_user() -> None:
    """Test that a user id adds the personalization component."""
    result = runner.invoke(app, ["key", "Hi", "--agent", "flint", "--user-id", "42"])
    assert result.exit_code == 0
    assert len(result.stdout.strip().split(":")) == 6


def test_classify_command() -> None:
    """Test classification output."""
    result = runner.invoke(app, ["classify", "Explain compound interest", "--agent", "flint"])
    assert result.exit_code == 0
    assert result.stdout.strip() == "knowledge"


def test_classify_command_policy_agents(tmp_path: Path) -> None:
    """Test that personalized agents come from the policy file."""
    policy = tmp_path / "policy.yaml"
    policy.write_text("personalized_agents: [ledger]\n", encoding="utf-8")
    result = runner.invoke(app, ["classify", "Explain this", "--agent", "ledger", "--policy", str(policy)])
    assert result.exit_code == 0
    assert result.stdout.strip() == "personalized"


def test_ttl_command_with_policy(tmp_path: Path) -> None:
    """Test TTL resolution against a policy file."""
    policy = tmp_path / "policy.yaml"
    policy.write_text(
        "agent_ttls:\n  shopify-ai: 900\nquery_type_ttls:\n  knowledge: 21600\n",
        encoding="utf-8",
    )

    agent = runner.invoke(
        app, ["ttl", "--agent", "shopify-ai", "--type", "time_sensitive", "--policy", str(policy)]
    )
    knowledge = runner.invoke(app, ["ttl", "--agent", "beacon", "--type", "knowledge", "--policy", str(policy)])

    assert agent.exit_code == 0
    assert agent.stdout.strip() == "900"
    assert knowledge.stdout.strip() == "21600"


def test_ttl_command_invalid_override(tmp_path: Path) -> None:
    """Test that a non-positive override exits with an error."""
    policy = tmp_path / "policy.yaml"
    policy.write_text("{}\n", encoding="utf-8")
    result = runner.invoke(app, ["ttl", "--override", "0", "--policy", str(policy)])
    assert result.exit_code == 1


def test_tags_command() -> None:
    """Test that tags are printed sorted, one per line."""
    result = runner.invoke(app, ["tags", "--agent", "flint", "--user", "7", "--type", "general"])
    assert result.exit_code == 0
    assert result.stdout.split() == ["agent:flint", "ai_response", "type:general", "user:7"]


def test_invalidate_command(monkeypatch) -> None:
    """Test invalidation against the configured in-memory store."""
    monkeypatch.setenv("AICACHE_BACKEND", "memory")
    result = runner.invoke(app, ["invalidate", "agent:flint"])
    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"tags": ["agent:flint"], "removed": 0}


def test_key_command_respects_personalization_policy(tmp_path: Path) -> None:
    """Test that the user component is dropped when the policy disables personalization."""
    policy = tmp_path / "policy.yaml"
    policy.write_text("enable_personalization: false\n", encoding="utf-8")

    with_user = runner.invoke(
        app, ["key", "Hi", "--agent", "flint", "--user-id", "42", "--policy", str(policy)]
    )
    without_user = runner.invoke(app, ["key", "Hi", "--agent", "flint", "--policy", str(policy)])

    assert with_user.exit_code == 0
    assert with_user.stdout == without_user.stdout
    assert len(with_user.stdout.strip().split(":")) == 5
