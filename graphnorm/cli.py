"""graphnorm command-line interface."""

from __future__ import annotations

import json
import logging
from typing import Any

import click

from graphnorm.domain.errors import GraphNormError


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, default=str)


def _coerce_id(store, entity_type: str, raw: str) -> Any:
    """Ids arrive as strings; fall back to int when the collection is int-keyed."""
    ids = store.get_ids(entity_type)
    if raw not in ids and raw.lstrip("-").isdigit() and int(raw) in ids:
        return int(raw)
    return raw


def _load_store(ctx: click.Context, payload: str, entity_type: str):
    from graphnorm.config import build_payload_source, build_store

    store = build_store(ctx.obj["config"], schema_path=ctx.obj["schemas"])
    data = build_payload_source(payload).load()
    store.add_normalized_data(data, entity_type)
    return store


@click.group()
@click.option("--config", "-c", default="config.yaml", help="Path to config YAML.")
@click.option("--schemas", "-s", default=None, help="Schema YAML (overrides config).")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config: str, schemas: str | None, verbose: bool) -> None:
    """graphnorm: normalize nested entity graphs and rebuild them on demand."""
    from graphnorm.config import load_settings

    try:
        level = "DEBUG" if verbose else load_settings(config).logging.level.upper()
    except GraphNormError as exc:
        raise click.ClickException(str(exc)) from exc
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["schemas"] = schemas


@main.command()
@click.argument("payload", type=click.Path(exists=True))
@click.option("--type", "-t", "entity_type", required=True, help="Root entity type.")
@click.pass_context
def normalize(ctx: click.Context, payload: str, entity_type: str) -> None:
    """Flatten PAYLOAD (JSON or JSONL) and print the normalized collections."""
    from graphnorm.config import build_payload_source, build_store
    from graphnorm.services.normalizer import normalize as run_normalize

    try:
        store = build_store(ctx.obj["config"], schema_path=ctx.obj["schemas"])
        data = build_payload_source(payload).load()
        result = run_normalize(data, entity_type, store.schemas)
    except (GraphNormError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(_dump(result.to_dict()))


@main.command()
@click.argument("payload", type=click.Path(exists=True))
@click.option("--type", "-t", "entity_type", required=True, help="Entity type to print.")
@click.option("--root", "-r", "root_type", default=None, help="Payload root type (defaults to --type).")
@click.option("--id", "entity_ids", multiple=True, help="Entity id(s); all when omitted.")
@click.pass_context
def denormalize(
    ctx: click.Context,
    payload: str,
    entity_type: str,
    root_type: str | None,
    entity_ids: tuple[str, ...],
) -> None:
    """Load PAYLOAD into a store and print denormalized entities.

    PAYLOAD is normalized as --root, then --type is queried, so a posts
    payload can be asked for its users or comments.
    """
    try:
        store = _load_store(ctx, payload, root_type or entity_type)
        if not entity_ids:
            out: Any = store.select_denormalized(entity_type)()
        elif len(entity_ids) == 1:
            out = store.select_denormalized(
                entity_type, _coerce_id(store, entity_type, entity_ids[0])
            )()
            if out is None:
                raise click.ClickException(f"{entity_type}/{entity_ids[0]} not found")
        else:
            out = [
                e for e in (
                    store.select_denormalized(entity_type, _coerce_id(store, entity_type, i))()
                    for i in entity_ids
                )
                if e is not None
            ]
    except (GraphNormError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(_dump(out))


@main.command()
@click.argument("payload", type=click.Path(exists=True))
@click.option("--type", "-t", "entity_type", required=True, help="Root entity type.")
@click.pass_context
def stats(ctx: click.Context, payload: str, entity_type: str) -> None:
    """Show per-type entity counts after loading PAYLOAD."""
    try:
        store = _load_store(ctx, payload, entity_type)
    except (GraphNormError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo("=== Collections ===")
    for name, count in store.stats().items():
        click.echo(f"  {name:<16} {count}")


@main.command("validate-schemas")
@click.pass_context
def validate_schemas(ctx: click.Context) -> None:
    """Report relationships whose target type is not declared."""
    from graphnorm.config import build_store

    try:
        store = build_store(ctx.obj["config"], schema_path=ctx.obj["schemas"])
    except GraphNormError as exc:
        raise click.ClickException(str(exc)) from exc

    problems = store.schemas.validate()
    if problems:
        for p in problems:
            click.echo(f"  ✗ {p}")
        raise click.ClickException(f"{len(problems)} unresolved relationship(s)")
    click.echo(f"✓ {len(store.schemas)} schema(s), all relationships resolve")


if __name__ == "__main__":
    main()
