"""Side-effect free commands: trigger check and dry plan."""

from __future__ import annotations

import typer

from rp.cli.commands.pipeline_cmd import TAG_HELP
from rp.cli.context import build_context
from rp.core.errors import ErrorCode
from rp.output.console import Style
from rp.pipeline.build import cargo_build_command
from rp.pipeline.registry import gh_release_command
from rp.pipeline.trigger import TriggerDecision, evaluate_trigger


def check_tag(
    tag: str = typer.Argument(..., help=TAG_HELP),
) -> None:
    """Print run/skip for a tag; exit 0 on run, 1 on skip."""
    decision = evaluate_trigger(tag)
    typer.echo(str(decision))
    if decision == TriggerDecision.SKIP:
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))


def plan(
    tag: str = typer.Option(..., "--tag", envvar="GITHUB_REF_NAME", help=TAG_HELP),
) -> None:
    """Show what the pipeline would do for a tag, without doing it."""
    ctx = build_context()
    if evaluate_trigger(tag) == TriggerDecision.SKIP:
        ctx.console.info(f"{tag}: skip (no stage runs)")
        return

    cfg = ctx.config
    project = ctx.project
    staged = project.staged_binary(cfg)
    download_dir = project.download_dir(cfg)

    ctx.console.header(f"Build ({tag})")
    ctx.console.print(f"1. {' '.join(cargo_build_command(cfg))}", Style.DIM)
    ctx.console.print(f"2. mkdir -p {project.staging_dir(cfg)}", Style.DIM)
    ctx.console.print(f"3. cp {project.release_binary(cfg)} {staged}", Style.DIM)
    ctx.console.print(
        f"4. publish artifact '{cfg.artifact.name}' <- {staged} (error if no files)", Style.DIM
    )

    ctx.console.header(f"Release ({tag}, only if build succeeds)")
    ctx.console.print(f"1. download all artifacts -> {download_dir}/<artifact>/...", Style.DIM)
    ctx.console.print(f"2. collect {download_dir}/**/*", Style.DIM)
    expected = download_dir / cfg.artifact.name / cfg.artifact.staged_file_name
    cmd = gh_release_command(tag, [expected], repo=cfg.release.repo)
    ctx.console.print(f"3. {' '.join(cmd)}  (GH_TOKEN from ${cfg.release.token_env})", Style.DIM)
