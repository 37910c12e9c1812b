"""Shared helpers for CLI commands: stage wiring, run ids, credentials."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import typer

from rp.core.errors import ErrorCode
from rp.output.console import Style
from rp.pipeline.build import BuildStage
from rp.pipeline.model import RegistryCredentials, credentials_from_env
from rp.pipeline.registry import GhReleaseRegistry
from rp.pipeline.release import ReleaseStage
from rp.pipeline.store import LocalArtifactStore, new_run_id
from rp.pipeline.trigger import TriggerDecision, evaluate_trigger

if TYPE_CHECKING:
    from rp.cli.context import CLIContext

RUN_ID_ENV_VAR = "GITHUB_RUN_ID"


def exit_with_error(
    ctx: CLIContext,
    message: str,
    *,
    code: ErrorCode,
    hint: str | None = None,
) -> NoReturn:
    ctx.console.error(message)
    if hint:
        ctx.console.print(f"hint: {hint}", Style.DIM)
    raise typer.Exit(code=int(code))


def resolve_tag_or_skip(ctx: CLIContext, tag: str) -> str:
    """Return the tag, or exit 0 if it does not trigger a run."""
    if evaluate_trigger(tag) == TriggerDecision.SKIP:
        ctx.console.info(f"{tag}: not a version tag (v<major>.<minor>.<patch>), skipping")
        raise typer.Exit(code=int(ErrorCode.OK))
    return tag


def resolve_run_id(ctx: CLIContext, run_id: str | None, *, required: bool) -> str:
    """Explicit --run-id, else $GITHUB_RUN_ID, else a fresh id (build side only)."""
    if run_id:
        return run_id
    from_env = ctx.env.get(RUN_ID_ENV_VAR, "").strip()
    if from_env:
        return from_env
    if required:
        exit_with_error(
            ctx,
            "run id required to locate the build stage's artifacts",
            code=ErrorCode.USER_ERROR,
            hint=f"pass --run-id (printed by `rp build`) or set ${RUN_ID_ENV_VAR}",
        )
    return new_run_id()


def require_credentials(ctx: CLIContext) -> RegistryCredentials:
    var = ctx.config.release.token_env
    credentials = credentials_from_env(ctx.env, var)
    if credentials is None:
        exit_with_error(
            ctx,
            f"${var} is not set",
            code=ErrorCode.ENV_ERROR,
            hint="the release registry token is supplied by the execution environment",
        )
    return credentials


def make_store(ctx: CLIContext, run_id: str) -> LocalArtifactStore:
    try:
        return LocalArtifactStore(ctx.project.artifact_store_dir, run_id)
    except ValueError as e:
        exit_with_error(ctx, str(e), code=ErrorCode.USER_ERROR)


def make_build_stage(ctx: CLIContext, store: LocalArtifactStore) -> BuildStage:
    return BuildStage(project=ctx.project, config=ctx.config, store=store, console=ctx.console)


def make_release_stage(ctx: CLIContext, store: LocalArtifactStore) -> ReleaseStage:
    registry = GhReleaseRegistry(
        project_root=ctx.project.root,
        console=ctx.console,
        repo=ctx.config.release.repo,
    )
    download_dir = ctx.project.download_dir(ctx.config)
    staged = ctx.project.staged_binary(ctx.config)
    return ReleaseStage(
        download_dir=download_dir,
        store=store,
        registry=registry,
        console=ctx.console,
        stale_paths=(staged,) if download_dir in staged.parents else (),
    )
