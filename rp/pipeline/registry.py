"""Release registry: where draft releases are created.

``GhReleaseRegistry`` drives the GitHub CLI. The token is passed to ``gh``
through ``GH_TOKEN`` in the child environment only; it is never part of the
command line and never printed. Failures are classified but never retried.
"""

from __future__ import annotations

import shutil
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from rp.core.result import Err, Ok, Result
from rp.output.console import ConsoleProtocol, Style
from rp.pipeline.errors import RegistryError, RegistryErrorKind
from rp.pipeline.model import RegistryCredentials, ReleaseRecord
from rp.platform.process import ProcessError
from rp.platform.process import run as run_process

__all__ = ["GhReleaseRegistry", "ReleaseRegistry", "classify_gh_failure", "gh_release_command"]

_AUTH_MARKERS = (
    "http 401",
    "http 403",
    "bad credentials",
    "authentication",
    "gh auth login",
    "requires authentication",
    "resource not accessible by integration",
)
_CONFLICT_MARKERS = (
    "already exists",
    "already_exists",
    "http 422",
)
_NETWORK_MARKERS = (
    "timed out",
    "timeout",
    "connection reset",
    "connection refused",
    "temporarily unavailable",
    "service unavailable",
    "bad gateway",
    "gateway timeout",
    "network is unreachable",
    "no such host",
    "http 500",
    "http 502",
    "http 503",
    "http 504",
)


class ReleaseRegistry(Protocol):
    def create_draft_release(
        self,
        tag: str,
        files: Sequence[Path],
        credentials: RegistryCredentials,
    ) -> Result[ReleaseRecord, RegistryError]: ...


def classify_gh_failure(error: ProcessError) -> RegistryErrorKind:
    text = f"{error.stderr}\n{error.stdout}".lower()
    # Order matters: a 422 "already exists" response also mentions validation.
    if any(marker in text for marker in _CONFLICT_MARKERS):
        return "conflict"
    if any(marker in text for marker in _AUTH_MARKERS):
        return "auth"
    if any(marker in text for marker in _NETWORK_MARKERS):
        return "network"
    return "invalid"


_KIND_MESSAGES: dict[RegistryErrorKind, str] = {
    "auth": "registry rejected the credentials",
    "conflict": "a release for this tag already exists",
    "network": "registry unreachable",
    "invalid": "registry rejected the draft release",
    "unavailable": "registry client unavailable",
}


def gh_release_command(tag: str, files: Sequence[Path], *, repo: str | None) -> list[str]:
    cmd = ["gh", "release", "create", tag, "--draft", "--title", tag, "--verify-tag"]
    if repo:
        cmd.extend(["--repo", repo])
    cmd.extend(str(f) for f in files)
    return cmd


class GhReleaseRegistry:
    def __init__(
        self,
        *,
        project_root: Path,
        console: ConsoleProtocol,
        repo: str | None = None,
    ) -> None:
        self._project_root = project_root
        self._console = console
        self._repo = repo

    def create_draft_release(
        self,
        tag: str,
        files: Sequence[Path],
        credentials: RegistryCredentials,
    ) -> Result[ReleaseRecord, RegistryError]:
        if shutil.which("gh") is None:
            return Err(
                RegistryError(
                    kind="unavailable",
                    message="gh: missing",
                    hint="Install GitHub CLI: https://cli.github.com/",
                )
            )
        if credentials.is_empty:
            return Err(RegistryError(kind="auth", message="registry token is empty"))

        cmd = gh_release_command(tag, files, repo=self._repo)
        self._console.print(" ".join(cmd[:4]) + f" ... ({len(files)} file(s))", Style.DIM)

        result = run_process(cmd, cwd=self._project_root, env_overlay={"GH_TOKEN": credentials.token})
        if isinstance(result, Err):
            e = result.error
            kind = classify_gh_failure(e)
            return Err(
                RegistryError(
                    kind=kind,
                    message=f"{_KIND_MESSAGES[kind]}: {tag}",
                    hint=e.stderr.strip() or None,
                )
            )

        # gh prints the URL of the created release on stdout.
        url = result.value.strip().splitlines()[-1] if result.value.strip() else None
        return Ok(
            ReleaseRecord(
                release_id=url or tag,
                tag=tag,
                draft=True,
                assets=tuple(files),
                url=url,
            )
        )
