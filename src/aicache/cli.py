from __future__ import annotations

import asyncio
import json
import pathlib
from typing import List, Optional

import typer

from aicache.cache.classifier import QueryType, classify
from aicache.cache.key import build_key
from aicache.cache.policy import CachePolicyConfig, resolve_ttl
from aicache.cache.store import RedisCacheStore
from aicache.cache.tags import build_tags
from aicache.config import create_cache_manager, get_settings

app = typer.Typer(no_args_is_help=True, help="Inspect and administer the AI response cache.")


def _load_policy(path: Optional[pathlib.Path]) -> CachePolicyConfig:
    if path is not None:
        return CachePolicyConfig.from_yaml(path)
    return get_settings().to_policy()


@app.command("key")
def key_command(
    message: str = typer.Argument(..., help="User message"),
    agent: str = typer.Option(..., "--agent", help="Answering agent identifier."),
    system_prompt: str = typer.Option("", "--system-prompt", help="System prompt text."),
    model: Optional[str] = typer.Option(None, "--model", help="Model name."),
    temperature: Optional[float] = typer.Option(None, "--temperature", help="Sampling temperature."),
    max_tokens: Optional[int] = typer.Option(None, "--max-tokens", help="Maximum output tokens."),
    user_id: Optional[str] = typer.Option(None, "--user-id", help="User identifier for personalization."),
    policy: Optional[pathlib.Path] = typer.Option(
        None, "--policy", help="YAML policy file (defaults to configured settings)."
    ),
) -> None:
    """Print the cache key of a request."""
    config = _load_policy(policy)
    model_config = {"model": model, "temperature": temperature, "max_tokens": max_tokens}
    user_context = {"user_id": user_id} if user_id else None
    typer.echo(
        build_key(
            message,
            agent,
            system_prompt,
            model_config,
            user_context,
            personalize=config.enable_personalization,
        )
    )


@app.command("classify")
def classify_command(
    message: str = typer.Argument(..., help="User message"),
    agent: Optional[str] = typer.Option(None, "--agent", help="Answering agent identifier."),
    policy: Optional[pathlib.Path] = typer.Option(
        None, "--policy", help="YAML policy file (defaults to configured settings)."
    ),
) -> None:
    """Print the classification of a request."""
    config = _load_policy(policy)
    typer.echo(classify(message, agent, config.personalized_agents).value)


@app.command("ttl")
def ttl_command(
    agent: Optional[str] = typer.Option(None, "--agent", help="Answering agent identifier."),
    backend: Optional[str] = typer.Option(None, "--backend", help="Backend family."),
    query_type: Optional[QueryType] = typer.Option(None, "--type", help="Query classification."),
    override: Optional[int] = typer.Option(None, "--override", help="Explicit TTL in seconds."),
    policy: Optional[pathlib.Path] = typer.Option(
        None, "--policy", help="YAML policy file (defaults to configured settings)."
    ),
) -> None:
    """Print the resolved TTL in seconds."""
    config = _load_policy(policy)
    try:
        ttl = resolve_ttl(config, agent_id=agent, backend=backend, query_type=query_type, override=override)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1)
    typer.echo(str(ttl))


@app.command("tags")
def tags_command(
    agent: Optional[str] = typer.Option(None, "--agent", help="Answering agent identifier."),
    backend: Optional[str] = typer.Option(None, "--backend", help="Backend family."),
    user: Optional[str] = typer.Option(None, "--user", help="User identifier."),
    query_type: Optional[QueryType] = typer.Option(None, "--type", help="Query classification."),
) -> None:
    """Print the invalidation tags of a request, one per line."""
    for tag in sorted(build_tags(agent_id=agent, backend=backend, user_id=user, query_type=query_type)):
        typer.echo(tag)


@app.command("invalidate")
def invalidate_command(
    tags: List[str] = typer.Argument(..., help="Tags to invalidate (e.g. agent:flint)."),
) -> None:
    """Invalidate cached responses by tag in the configured store."""
    manager = create_cache_manager()

    async def _invalidate() -> int:
        try:
            return await manager.invalidate_by_tags(tags)
        finally:
            if isinstance(manager.store, RedisCacheStore):
                await manager.store.close()

    removed = asyncio.run(_invalidate())
    if manager.stats().errors:
        typer.echo("Invalidation failed; see logs", err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps({"tags": tags, "removed": removed}))


if __name__ == "__main__":
    app()
