"""Pipeline commands: run both stages, or one stage per execution environment."""

from __future__ import annotations

import typer

from rp.cli.commands._helpers import (
    make_build_stage,
    make_release_stage,
    make_store,
    require_credentials,
    resolve_run_id,
    resolve_tag_or_skip,
)
from rp.cli.context import build_context
from rp.core.result import Err
from rp.output.errors import pipeline_error_exit_code, print_pipeline_error, report_exit_code
from rp.pipeline.workflow import run_pipeline

TAG_HELP = "Pushed tag name; only v<major>.<minor>.<patch> triggers"
RUN_ID_HELP = "Pipeline run id scoping the artifact store (default: $GITHUB_RUN_ID)"


def build(
    tag: str = typer.Option(..., "--tag", envvar="GITHUB_REF_NAME", help=TAG_HELP),
    run_id: str | None = typer.Option(None, "--run-id", help=RUN_ID_HELP, show_default=False),
) -> None:
    """Build stage: compile, stage and publish the release binary."""
    ctx = build_context()
    resolve_tag_or_skip(ctx, tag)
    resolved_run_id = resolve_run_id(ctx, run_id, required=False)
    ctx.console.info(f"run id: {resolved_run_id}")

    stage = make_build_stage(ctx, make_store(ctx, resolved_run_id))
    result = stage.run()
    if isinstance(result, Err):
        print_pipeline_error(result.error, ctx.console)
        raise typer.Exit(code=pipeline_error_exit_code(result.error))


def release(
    tag: str = typer.Option(..., "--tag", envvar="GITHUB_REF_NAME", help=TAG_HELP),
    run_id: str | None = typer.Option(None, "--run-id", help=RUN_ID_HELP, show_default=False),
) -> None:
    """Release stage: download this run's artifacts and create a draft release."""
    ctx = build_context()
    resolve_tag_or_skip(ctx, tag)
    resolved_run_id = resolve_run_id(ctx, run_id, required=True)
    credentials = require_credentials(ctx)

    stage = make_release_stage(ctx, make_store(ctx, resolved_run_id))
    result = stage.run(tag, credentials)
    if isinstance(result, Err):
        print_pipeline_error(result.error, ctx.console)
        raise typer.Exit(code=pipeline_error_exit_code(result.error))


def run(
    tag: str = typer.Option(..., "--tag", envvar="GITHUB_REF_NAME", help=TAG_HELP),
    run_id: str | None = typer.Option(None, "--run-id", help=RUN_ID_HELP, show_default=False),
) -> None:
    """Run the whole pipeline: build, then release only if the build succeeded."""
    ctx = build_context()
    resolve_tag_or_skip(ctx, tag)
    credentials = require_credentials(ctx)
    resolved_run_id = resolve_run_id(ctx, run_id, required=False)
    ctx.console.info(f"run id: {resolved_run_id}")

    store = make_store(ctx, resolved_run_id)
    build_stage = make_build_stage(ctx, store)
    release_stage = make_release_stage(ctx, store)

    report = run_pipeline(
        tag=tag,
        build=build_stage.run,
        release=release_stage.run,
        credentials=credentials,
        console=ctx.console,
    )

    ctx.console.print(f"pipeline {report.tag}: {' -> '.join(report.history)}")
    if report.error is not None:
        print_pipeline_error(report.error, ctx.console)
    code = report_exit_code(report)
    if code != 0:
        raise typer.Exit(code=code)
