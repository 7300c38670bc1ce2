"""CLI entrypoint for running a single scripted probe."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tomllib
from pathlib import Path
from typing import Annotated, Any

import typer
from prometheus_client import CollectorRegistry, generate_latest
from rich.console import Console
from rich.table import Table

from .logger import get_logger, setup_logging
from .model import Check, InvalidRegionIdError, check_from_dict
from .probers import ScriptedProber, UnsupportedCheckError
from .runner import HttpRunner, ScriptRejectedError
from .secrets import HttpSecretProvider, NoSecretProvider, SecretProvider
from .settings import CONFIG_ENV_VAR, ProberSettings

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Run a scripted check once against a target.",
)


def _build_logger() -> logging.Logger:
    return get_logger("scripted_prober")


def load_check_file(path: Path) -> Check:
    """Load a check definition from a TOML or JSON file.

    A TOML file may hold the check at the top level or under a [check] table.
    """
    if path.suffix == ".json":
        data: Any = json.loads(path.read_text())
    else:
        with path.open("rb") as f:
            data = tomllib.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a table at the top level")
    body = data.get("check", data)
    return check_from_dict(body, base_dir=path.parent)


def build_secret_provider(settings: ProberSettings) -> SecretProvider:
    if settings.secrets_api_url is None:
        return NoSecretProvider()
    token = settings.secrets_api_token
    return HttpSecretProvider(
        settings.secrets_api_url,
        token.get_secret_value() if token else None,
        max_tries=settings.secrets_max_tries,
        request_timeout=settings.secrets_request_timeout,
    )


def build_runner(settings: ProberSettings) -> HttpRunner:
    token = settings.runner_token
    return HttpRunner(
        settings.runner_url_required,
        token.get_secret_value() if token else None,
        max_tries=settings.runner_max_tries,
        timeout_grace=settings.runner_timeout_grace,
    )


def print_result(
    console: Console, prober: ScriptedProber, target: str, success: bool, duration: float
) -> None:
    table = Table(title="Probe Result", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    check_info = prober.module.script.check_info
    table.add_row("Prober", prober.name)
    table.add_row("Job", str(check_info.metadata.get("job", "")))
    table.add_row("Target", target)
    table.add_row("Success", "[green]yes[/green]" if success else "[red]no[/red]")
    table.add_row("Duration", f"{duration:.3f}s")
    console.print(table)


@app.command()
def probe(
    check_file: Annotated[
        Path,
        typer.Argument(
            exists=True,
            dir_okay=False,
            help="Check definition (TOML or JSON) with a [settings.scripted] block.",
        ),
    ],
    target: Annotated[
        str | None,
        typer.Argument(help="Target to probe; defaults to the check's target."),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to a TOML settings file."),
    ] = None,
    runner_url: Annotated[
        str | None,
        typer.Option("--runner-url", help="Script runner service URL."),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    as_json: Annotated[
        bool, typer.Option("--json", help="Print the result as JSON.")
    ] = False,
    show_metrics: Annotated[
        bool,
        typer.Option("--metrics", help="Print metrics reported by the script."),
    ] = False,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective settings (with secrets redacted) and exit.",
        ),
    ] = False,
) -> None:
    """Run the check's script once and exit 0 on success, 1 on failure."""
    if config_path:
        os.environ[CONFIG_ENV_VAR] = str(config_path)

    init_kwargs: dict[str, str] = {}
    if runner_url is not None:
        init_kwargs["runner_url"] = runner_url
    if log_level is not None:
        init_kwargs["log_level"] = log_level

    settings = ProberSettings(**init_kwargs)
    setup_logging(settings.log_level)
    logger = _build_logger()

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2, default=str))
        raise typer.Exit(code=0)

    if settings.runner_url is None:
        raise typer.BadParameter(
            "runner_url must be configured",
            param_hint=["--runner-url", "SCRIPTED_PROBER_RUNNER_URL"],
        )

    try:
        check = load_check_file(check_file)
    except (OSError, ValueError, tomllib.TOMLDecodeError) as e:
        raise typer.BadParameter(str(e), param_hint="CHECK_FILE") from e
    if settings.region_id and not check.region_id:
        check.region_id = settings.region_id
    if target is not None:
        check.target = target

    try:
        prober = ScriptedProber(
            check, logger, build_runner(settings), build_secret_provider(settings)
        )
    except (UnsupportedCheckError, ScriptRejectedError, InvalidRegionIdError) as e:
        raise typer.BadParameter(str(e), param_hint="CHECK_FILE") from e
    probe_target = check.target
    registry = CollectorRegistry()
    result_logger = get_logger(f"scripted_prober.check.{check.job}")

    success, duration = asyncio.run(prober.probe(probe_target, registry, result_logger))

    if as_json:
        typer.echo(
            json.dumps(
                {
                    "prober": prober.name,
                    "target": probe_target,
                    "success": success,
                    "duration": duration,
                },
                indent=2,
            )
        )
    else:
        print_result(Console(), prober, probe_target, success, duration)

    if show_metrics:
        typer.echo(generate_latest(registry).decode("utf-8"), nl=False)

    raise typer.Exit(code=0 if success else 1)


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
