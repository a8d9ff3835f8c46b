"""User account CLI commands."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import typer
from pydantic import ValidationError

from ems_api.core.errors import AppError
from ems_api.core.roles import Role

user_app = typer.Typer()

T = TypeVar("T")


async def _with_session(work: Callable[..., Awaitable[T]]) -> T:
    """Open an engine for the duration of one CLI command and run ``work(session, settings)``."""
    from ems_api.core.config import get_settings
    from ems_api.core.database import dispose_engine, init_engine, session_scope

    settings = get_settings()
    init_engine(settings.database_url)
    try:
        async with session_scope() as session:
            return await work(session, settings)
    finally:
        await dispose_engine()


@user_app.command("create")
def create_user(
    name: str = typer.Option(..., prompt=True, help="Full name"),
    email: str = typer.Option(..., prompt=True, help="Email address"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True, help="Password"),
    role: Role = typer.Option(Role.EMPLOYEE, prompt=True, help="User role"),
    employee_id: str | None = typer.Option(None, "--employee-id", help="Linked employee id (e.g. EMP010)"),
    if_not_exists: bool = typer.Option(
        False,
        "--if-not-exists",
        help="Exit successfully if the user already exists (idempotent mode)",
    ),
) -> None:
    """Create a new user interactively."""
    from ems_api.schemas.auth import RegisterRequest
    from ems_api.services import auth_service

    try:
        request = RegisterRequest(name=name, email=email, password=password, role=role, employee_id=employee_id)
    except ValidationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    async def _create(session, settings):  # type: ignore[no-untyped-def]
        return await auth_service.create_user(session, request)

    try:
        user = asyncio.run(_with_session(_create))
    except AppError as e:
        if if_not_exists and "already exists" in e.message:
            typer.echo(f"User '{email}' already exists, skipping (--if-not-exists)")
            return
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1) from e
    typer.echo(f"User '{user.email}' created with role '{user.role}'")


@user_app.command("list")
def list_users(
    page: int = typer.Option(1, "--page", min=1),
    page_size: int = typer.Option(50, "--page-size", min=1, max=500),
) -> None:
    """List user accounts."""
    from ems_api.services import auth_service

    async def _list(session, settings):  # type: ignore[no-untyped-def]
        return await auth_service.list_users(session, page, page_size)

    users, total = asyncio.run(_with_session(_list))
    typer.echo(f"{'Email':<30} {'Name':<24} {'Role':<10} {'Employee':<10} {'Active':<8}")
    typer.echo("-" * 86)
    for user in users:
        typer.echo(
            f"{user.email:<30} {user.name:<24} {user.role:<10} {user.employee_id or '-':<10} {user.is_active!s:<8}"
        )
    typer.echo(f"\nTotal: {total}")


def _set_active(email: str, *, active: bool) -> None:
    from ems_api.services import auth_service

    async def _toggle(session, settings):  # type: ignore[no-untyped-def]
        user = await auth_service.get_user_by_email(session, email)
        if user is None:
            return None
        return await auth_service.set_active(session, user.id, active=active)

    user = asyncio.run(_with_session(_toggle))
    if user is None:
        typer.echo(f"Error: no user with email '{email}'", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"User '{user.email}' {'activated' if active else 'deactivated'}")


@user_app.command("deactivate")
def deactivate_user(email: str = typer.Argument(..., help="Email of the account")) -> None:
    """Deactivate an account; its existing tokens stop working."""
    _set_active(email, active=False)


@user_app.command("activate")
def activate_user(email: str = typer.Argument(..., help="Email of the account")) -> None:
    """Re-enable a deactivated account."""
    _set_active(email, active=True)


@user_app.command("seed")
def seed_users() -> None:
    """Create the default administrator and HR accounts when missing."""
    from ems_api.services import auth_service

    created = asyncio.run(_with_session(auth_service.seed_default_users))
    if not created:
        typer.echo("Default accounts already exist")
    for user in created:
        typer.echo(f"Created {user.role} account '{user.email}'")
