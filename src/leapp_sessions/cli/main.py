"""
Leapp sessions CLI: `leapp` command.

Commands:
  leapp session get <id>       Show a session as the daemon sees it
  leapp session create         Register an IAM user session
  leapp session start <id>     Start a session, answering MFA prompts
  leapp session stop <id>      Stop a session
  leapp session delete <id>    Delete a session
  leapp listen                 Keep the push channel open and answer MFA prompts
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

try:
    import click
    from rich.console import Console
except ImportError:
    raise SystemExit("CLI requires extras: pip install leapp-sessions[cli]")

from leapp_sessions.client import AsyncLeapp
from leapp_sessions.config import DaemonSettings

console = Console()
CONFIG_FILE = Path.home() / ".leapp" / "config.json"


def _load_config() -> dict:
    try:
        return json.loads(CONFIG_FILE.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def _save_config(cfg: dict) -> None:
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(json.dumps(cfg, indent=2))


async def prompt_mfa_code(label: str) -> Optional[str]:
    """Ask for an MFA code on the terminal. Empty input or Ctrl+C cancels."""

    def _ask() -> Optional[str]:
        try:
            code = click.prompt(f"MFA code for {label} session", default="", show_default=False)
        except click.Abort:
            return None
        return code.strip() or None

    return await asyncio.get_running_loop().run_in_executor(None, _ask)


def _get_client() -> AsyncLeapp:
    cfg = _load_config()
    settings = DaemonSettings.from_env(
        base_url=cfg.get("base_url"),
        timeout=cfg.get("timeout"),
        reconnect_delay=cfg.get("reconnect_delay"),
    )

    def _mfa_error(exc: BaseException) -> None:
        console.print(f"[red]MFA failed:[/red] {exc}")

    return AsyncLeapp(settings=settings, mfa_prompt=prompt_mfa_code, on_mfa_error=_mfa_error)


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option("0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def main(verbose: bool):
    """Leapp sessions CLI: drive credential sessions through the local daemon."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command("config")
@click.option("--base-url", default=None, help="Daemon base URL")
@click.option("--timeout", default=None, type=float, help="Daemon call timeout in seconds")
@click.option("--reconnect-delay", default=None, type=float, help="Push channel reconnect delay in seconds")
def config_cmd(base_url: Optional[str], timeout: Optional[float], reconnect_delay: Optional[float]):
    """Show or change the saved daemon settings."""
    cfg = _load_config()
    changes = {"base_url": base_url, "timeout": timeout, "reconnect_delay": reconnect_delay}
    changes = {k: v for k, v in changes.items() if v is not None}
    if changes:
        cfg.update(changes)
        _save_config(cfg)
        console.print(f"[dim]Saved to {CONFIG_FILE}[/dim]")
    console.print_json(json.dumps(cfg))


@main.command("listen")
def listen_cmd():
    """Keep the push channel open and prompt for MFA codes."""

    async def _listen():
        client = _get_client()
        await client.connect()
        console.print(f"[cyan]Listening on {client.daemon.ws_url()} (Ctrl+C to exit)[/cyan]")
        try:
            while True:
                await asyncio.sleep(3600)
        finally:
            await client.disconnect()

    try:
        _run(_listen())
    except KeyboardInterrupt:
        pass


# Register subcommands from separate modules
from leapp_sessions.cli.sessions import session

main.add_command(session)


if __name__ == "__main__":
    main()
