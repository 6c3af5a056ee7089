"""chat-rbac: debug CLI for the permission catalog and resolution engine."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import typer
from pydantic import ValidationError

from chat_rbac.common.logging import setup_logging
from chat_rbac.core.rbac.engine import effective_permissions, resolve
from chat_rbac.core.rbac.errors import PermissionContractError
from chat_rbac.core.rbac.hierarchy import can_manage
from chat_rbac.core.rbac.registry import CATALOG_VERSION, PERMISSION_GROUPS, PERMISSION_REGISTRY
from chat_rbac.core.rbac.schemas import CatalogOut, DecisionOut, MemberSnapshotModel
from chat_rbac.core.rbac.snapshot import MemberSnapshot, coerce_enum
from chat_rbac.core.rbac.types import PermissionGroup
from chat_rbac.settings import get_settings

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Inspect the permission catalog and resolve permissions for member snapshots.",
)

SNAPSHOT_HELP = "Path to a member snapshot JSON file, or '-' to read stdin."


def _read_snapshot(source: str) -> MemberSnapshot:
    try:
        raw = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    except OSError as exc:
        raise typer.BadParameter(f"Cannot read snapshot: {exc}") from exc
    try:
        return MemberSnapshotModel.model_validate_json(raw).to_snapshot()
    except (ValidationError, PermissionContractError) as exc:
        raise typer.BadParameter(f"Invalid snapshot: {exc}") from exc


def _contract(func, *args, **kwargs):
    try:
        return func(*args, **kwargs)
    except PermissionContractError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.callback()
def _main() -> None:
    setup_logging(get_settings())


@app.command(name="catalog", help="List every permission, grouped as the UI shows them.")
def catalog(
    group: str | None = typer.Option(None, "--group", "-g", help="Only list this group."),
    as_json: bool = typer.Option(False, "--json", help="Emit the catalog as JSON."),
) -> None:
    selected = None if group is None else _contract(
        coerce_enum, PermissionGroup, group, field_name="group"
    )
    if as_json:
        payload = CatalogOut.build()
        if selected is not None:
            payload.groups = {selected.value: payload.groups[selected.value]}
        typer.echo(payload.model_dump_json(indent=2))
        return

    typer.echo(f"catalog version {CATALOG_VERSION}")
    for current, keys in PERMISSION_GROUPS.items():
        if selected is not None and current != selected:
            continue
        typer.echo(f"\n[{current.value}]")
        for key in keys:
            definition = PERMISSION_REGISTRY[key]
            typer.echo(f"  {key.value:<28} {definition.description}")


@app.command(name="check", help="Resolve one permission for a serialized member snapshot.")
def check(
    snapshot: str = typer.Argument(..., help=SNAPSHOT_HELP),
    permission: str = typer.Argument(..., help="Permission key, e.g. SEND_MESSAGES."),
    scope: str = typer.Option("SERVER", "--scope", "-s", help="SERVER, CHANNEL or CATEGORY."),
    target: str | None = typer.Option(None, "--target", "-t", help="Channel or category id."),
) -> None:
    member = _read_snapshot(snapshot)
    decision = _contract(resolve, member, permission, scope, target)
    typer.echo(
        DecisionOut.from_decision(
            decision,
            permission=permission.strip().upper(),
            scope=scope.strip().upper(),
            target_id=target,
        ).model_dump_json(indent=2)
    )


@app.command(name="effective", help="List every permission granted in a context.")
def effective(
    snapshot: str = typer.Argument(..., help=SNAPSHOT_HELP),
    scope: str = typer.Option("SERVER", "--scope", "-s", help="SERVER, CHANNEL or CATEGORY."),
    target: str | None = typer.Option(None, "--target", "-t", help="Channel or category id."),
) -> None:
    member = _read_snapshot(snapshot)
    granted = _contract(effective_permissions, member, scope, target)
    for key in sorted(item.value for item in granted):
        typer.echo(key)


@app.command(name="manage", help="Check whether ACTOR may perform ACTION on TARGET.")
def manage(
    actor: str = typer.Argument(..., help="Actor snapshot JSON file."),
    target: str = typer.Argument(..., help="Target snapshot JSON file."),
    action: str = typer.Argument(..., help="KICK, BAN, TIMEOUT, MANAGE_ROLES, ..."),
) -> None:
    allowed = _contract(can_manage, _read_snapshot(actor), _read_snapshot(target), action)
    typer.echo("allowed" if allowed else "denied")
    if not allowed:
        raise typer.Exit(code=1)


@app.command(name="init-db", help="Create the chat-rbac tables in the configured database.")
def init_db(
    database_url: str | None = typer.Option(
        None,
        "--database-url",
        help="Override CHAT_RBAC_DATABASE_URL for this run.",
    ),
) -> None:
    from chat_rbac.db import DatabaseConfig, create_schema, db

    settings = get_settings()
    cfg = DatabaseConfig.from_settings(settings)
    if database_url:
        cfg = DatabaseConfig(
            url=database_url,
            echo=cfg.echo,
            sqlite_busy_timeout_ms=cfg.sqlite_busy_timeout_ms,
        )

    async def _run() -> None:
        db.init(cfg)
        try:
            await create_schema(db.engine)
        finally:
            await db.dispose()

    asyncio.run(_run())
    typer.echo("Schema created.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
