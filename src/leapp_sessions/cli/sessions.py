"""CLI: leapp session get|create|start|stop|delete"""

import json
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from leapp_sessions.errors import LeappError
from leapp_sessions.models.session import (
    AwsIamRoleChainedSession,
    AwsIamUserSession,
    AwsIamUserSessionRequest,
    SessionStatus,
)

console = Console()

STATUS_STYLE = {
    SessionStatus.ACTIVE: "green",
    SessionStatus.LOADING: "yellow",
    SessionStatus.STOPPED: "dim",
    SessionStatus.ERROR: "red",
}


def _get_client():
    from leapp_sessions.cli.main import _get_client
    return _get_client()


def _run(coro):
    from leapp_sessions.cli.main import _run
    return _run(coro)


def _daemon_status(data: dict) -> Optional[SessionStatus]:
    value = data.get("Status", data.get("status"))
    if isinstance(value, str):
        try:
            return SessionStatus(value.lower())
        except ValueError:
            return None
    return None


async def _track(
    client, session_id: str, unknown_status: SessionStatus = SessionStatus.STOPPED,
) -> AwsIamUserSession:
    """Put a daemon-side IAM user session into the local store."""
    data = await client.fetch(session_id)
    session = AwsIamUserSession(
        session_id=session_id,
        session_name=data.get("Name") or data.get("name") or session_id,
        region=data.get("Region") or data.get("region") or "",
        mfa_device=data.get("MfaDevice") or data.get("mfaDevice") or None,
        profile_id=data.get("AwsNamedProfileName") or data.get("awsNamedProfileName") or None,
        status=_daemon_status(data) or unknown_status,
    )
    if session_id not in client.store:
        client.store.add(session)
    return session


def _track_chained(client, session_id: str, parent_id: str) -> None:
    # the daemon state is unknown here, so the cascade stops it before deleting
    if session_id in client.store:
        return
    client.store.add(AwsIamRoleChainedSession(
        session_id=session_id,
        session_name=session_id,
        region="",
        parent_session_id=parent_id,
        status=SessionStatus.ACTIVE,
    ))


def _print_status(session) -> None:
    style = STATUS_STYLE.get(session.status, "")
    line = f"{session.session_id} [{style}]{session.status.value}[/{style}]"
    if session.last_error:
        line += f": {session.last_error}"
    console.print(line)


@click.group()
def session():
    """Session management."""


@session.command("get")
@click.argument("session_id")
@click.option("--json-output", "--json", is_flag=True)
def session_get(session_id, json_output):
    """Show a session as the daemon sees it."""

    async def _get():
        client = _get_client()
        try:
            data = await client.fetch(session_id)
        finally:
            await client.disconnect()
        if json_output:
            click.echo(json.dumps(data, indent=2))
            return
        table = Table(title=f"Session {session_id}")
        table.add_column("Field", style="bold")
        table.add_column("Value")
        for key, value in data.items():
            if "secret" in key.lower():
                continue
            table.add_row(key, str(value))
        console.print(table)

    _run(_get())


@session.command("create")
@click.option("--name", "account_name", required=True)
@click.option("--region", required=True)
@click.option("--access-key", required=True)
@click.option("--secret-key", required=True, prompt=True, hide_input=True)
@click.option("--mfa-device", default=None)
@click.option("--profile", "profile_id", default="default")
def session_create(account_name, region, access_key, secret_key, mfa_device, profile_id):
    """Register an IAM user session with the daemon."""

    async def _create():
        client = _get_client()
        request = AwsIamUserSessionRequest(
            account_name=account_name,
            access_key=access_key,
            secret_key=secret_key,
            region=region,
            mfa_device=mfa_device,
        )
        try:
            with console.status("Creating session..."):
                created = await client.create_iam_user(request, profile_id)
        except LeappError as e:
            console.print(f"[red]{e}[/red]")
            raise SystemExit(1)
        finally:
            await client.disconnect()
        console.print(f"[green]Session created: {created.session_id}[/green]")

    _run(_create())


@session.command("start")
@click.argument("session_id")
def session_start(session_id):
    """Start a session. MFA requests from the daemon are prompted for."""

    async def _start():
        client = _get_client()
        await client.connect()
        try:
            await _track(client, session_id)
            started = await client.start(session_id)
            await client.mfa.wait_idle()
        finally:
            await client.disconnect()
        _print_status(client.store.find(session_id) or started)

    _run(_start())


@session.command("stop")
@click.argument("session_id")
def session_stop(session_id):
    """Stop a session."""

    async def _stop():
        client = _get_client()
        try:
            await _track(client, session_id)
            with console.status("Stopping..."):
                stopped = await client.stop(session_id)
        finally:
            await client.disconnect()
        if stopped is not None:
            _print_status(stopped)

    _run(_stop())


@session.command("delete")
@click.argument("session_id")
@click.option("--chained", "chained_ids", multiple=True, metavar="ID",
              help="Chained session derived from SESSION_ID; stopped and deleted first. Repeatable.")
def session_delete(session_id, chained_ids):
    """Delete a session and the chained sessions named with --chained.

    The daemon offers no listing of chained sessions, so dependents this
    command is not told about are left on the daemon.
    """

    async def _delete():
        client = _get_client()
        try:
            await _track(client, session_id, unknown_status=SessionStatus.ACTIVE)
            for chained_id in chained_ids:
                _track_chained(client, chained_id, session_id)
            with console.status("Deleting..."):
                report = await client.delete(session_id)
        except LeappError as e:
            console.print(f"[red]{e}[/red]")
            raise SystemExit(1)
        finally:
            await client.disconnect()
        console.print(f"[green]Session {session_id} deleted.[/green]")
        if not chained_ids:
            console.print("[dim]Chained sessions not named with --chained were left on the daemon.[/dim]")
        for failure in (report.failures if report else []):
            console.print(f"[yellow]{failure.step} failed for {failure.session_id}: {failure.error}[/yellow]")

    _run(_delete())
