"""Error presentation and exit code mapping for pipeline failures."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rp.core.errors import ErrorCode
from rp.output.console import Style
from rp.pipeline.errors import (
    ArtifactNotFoundError,
    BuildFailure,
    DuplicateArtifactError,
    EmptyArtifactError,
    OutputMissing,
    PipelineError,
    RegistryError,
)
from rp.pipeline.workflow import RunReport

if TYPE_CHECKING:
    from rp.output.console import ConsoleProtocol

__all__ = ["pipeline_error_exit_code", "print_pipeline_error", "report_exit_code"]


def print_pipeline_error(error: PipelineError, console: ConsoleProtocol) -> None:
    match error:
        case BuildFailure(message=message, hint=hint):
            console.error(message)
            if hint:
                console.print(f"hint: {hint}", Style.DIM)
        case OutputMissing(path=path):
            console.error(f"release binary not found: {path}")
            console.print("hint: check [build] binary in release.toml", Style.DIM)
        case EmptyArtifactError() | DuplicateArtifactError():
            console.error(error.message)
        case ArtifactNotFoundError(message=message):
            console.error(message)
            console.print("hint: did the build stage publish for this run id?", Style.DIM)
        case RegistryError(message=message, hint=hint):
            console.error(message)
            if hint:
                console.print(f"hint: {hint}", Style.DIM)


def pipeline_error_exit_code(error: PipelineError) -> int:
    match error:
        case BuildFailure() if error.toolchain_missing:
            return int(ErrorCode.ENV_ERROR)
        case BuildFailure():
            return int(ErrorCode.BUILD_ERROR)
        case OutputMissing() | EmptyArtifactError() | ArtifactNotFoundError():
            return int(ErrorCode.IO_ERROR)
        case DuplicateArtifactError():
            return int(ErrorCode.USER_ERROR)
        case RegistryError(kind="auth") | RegistryError(kind="unavailable"):
            return int(ErrorCode.ENV_ERROR)
        case RegistryError(kind="network"):
            return int(ErrorCode.NETWORK_ERROR)
        case RegistryError():
            return int(ErrorCode.RELEASE_ERROR)
    # Fallback for exhaustiveness
    return int(ErrorCode.RELEASE_ERROR)


def report_exit_code(report: RunReport) -> int:
    """Zero for a completed or skipped run, the failing stage's code otherwise."""
    if report.succeeded:
        return int(ErrorCode.OK)
    if report.error is None:
        return int(ErrorCode.RELEASE_ERROR)
    return pipeline_error_exit_code(report.error)
