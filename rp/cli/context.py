from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

import typer

from rp.core.config import PipelineConfig, load_config_or_default
from rp.core.errors import ErrorCode
from rp.core.project import Project, detect_project
from rp.core.result import Err
from rp.output.console import ConsoleProtocol, RichConsole


def _environ() -> dict[str, str]:
    return dict(os.environ)


@dataclass(frozen=True, slots=True)
class CLIContext:
    project: Project
    config: PipelineConfig
    console: ConsoleProtocol
    env: Mapping[str, str] = field(default_factory=_environ)


def build_context() -> CLIContext:
    project_result = detect_project()
    if isinstance(project_result, Err):
        typer.echo(f"error: {project_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
    project = project_result.value

    config_result = load_config_or_default(project.config_path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    return CLIContext(
        project=project,
        config=config_result.value,
        console=RichConsole(),
        env=_environ(),
    )
