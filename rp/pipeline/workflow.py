"""Two-stage pipeline state machine.

    PENDING -> BUILDING -> RELEASING -> DONE
                  |            |
                  v            v
             BUILD_FAILED  RELEASE_FAILED

The release stage starts only after the build stage finished successfully.
Any failure is terminal for the run; nothing is retried or rolled back.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from rp.core.result import Err, Result
from rp.output.console import ConsoleProtocol
from rp.pipeline.errors import PipelineError
from rp.pipeline.model import Artifact, RegistryCredentials, ReleaseRecord
from rp.pipeline.trigger import TriggerDecision, evaluate_trigger

__all__ = [
    "BuildRunner",
    "PipelineRun",
    "PipelineState",
    "ReleaseRunner",
    "RunReport",
    "run_pipeline",
]


class PipelineState(StrEnum):
    PENDING = "pending"
    BUILDING = "building"
    BUILD_FAILED = "build_failed"
    RELEASING = "releasing"
    RELEASE_FAILED = "release_failed"
    DONE = "done"

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self]

    @property
    def is_failure(self) -> bool:
        return self in (PipelineState.BUILD_FAILED, PipelineState.RELEASE_FAILED)


_TRANSITIONS: dict[PipelineState, frozenset[PipelineState]] = {
    PipelineState.PENDING: frozenset({PipelineState.BUILDING}),
    PipelineState.BUILDING: frozenset({PipelineState.BUILD_FAILED, PipelineState.RELEASING}),
    PipelineState.RELEASING: frozenset({PipelineState.RELEASE_FAILED, PipelineState.DONE}),
    PipelineState.BUILD_FAILED: frozenset(),
    PipelineState.RELEASE_FAILED: frozenset(),
    PipelineState.DONE: frozenset(),
}


def _initial_history() -> list[PipelineState]:
    return [PipelineState.PENDING]


@dataclass
class PipelineRun:
    """One run of the pipeline for one tag."""

    tag: str
    history: list[PipelineState] = field(default_factory=_initial_history)

    @property
    def state(self) -> PipelineState:
        return self.history[-1]

    def transition(self, to: PipelineState) -> None:
        if to not in _TRANSITIONS[self.state]:
            raise AssertionError(f"illegal pipeline transition: {self.state} -> {to}")
        self.history.append(to)


BuildRunner = Callable[[], Result[Artifact, PipelineError]]
ReleaseRunner = Callable[[str, RegistryCredentials], Result[ReleaseRecord, PipelineError]]


@dataclass(frozen=True, slots=True)
class RunReport:
    """Outcome of ``run_pipeline``.

    ``triggered`` is False when the tag did not match; no stage ran then.
    """

    tag: str
    triggered: bool
    state: PipelineState
    history: tuple[PipelineState, ...]
    artifact: Artifact | None = None
    release: ReleaseRecord | None = None
    error: PipelineError | None = None

    @property
    def succeeded(self) -> bool:
        return not self.triggered or self.state == PipelineState.DONE


def _report(
    run: PipelineRun,
    *,
    artifact: Artifact | None = None,
    release: ReleaseRecord | None = None,
    error: PipelineError | None = None,
) -> RunReport:
    return RunReport(
        tag=run.tag,
        triggered=True,
        state=run.state,
        history=tuple(run.history),
        artifact=artifact,
        release=release,
        error=error,
    )


def run_pipeline(
    *,
    tag: str,
    build: BuildRunner,
    release: ReleaseRunner,
    credentials: RegistryCredentials,
    console: ConsoleProtocol,
) -> RunReport:
    """Evaluate the trigger, then run build and (only on success) release."""
    if evaluate_trigger(tag) == TriggerDecision.SKIP:
        console.info(f"{tag}: not a version tag (v<major>.<minor>.<patch>), skipping")
        return RunReport(
            tag=tag,
            triggered=False,
            state=PipelineState.PENDING,
            history=(PipelineState.PENDING,),
        )

    run = PipelineRun(tag=tag)

    run.transition(PipelineState.BUILDING)
    built = build()
    if isinstance(built, Err):
        run.transition(PipelineState.BUILD_FAILED)
        return _report(run, error=built.error)
    artifact = built.value

    run.transition(PipelineState.RELEASING)
    released = release(run.tag, credentials)
    if isinstance(released, Err):
        run.transition(PipelineState.RELEASE_FAILED)
        return _report(run, artifact=artifact, error=released.error)

    run.transition(PipelineState.DONE)
    return _report(run, artifact=artifact, release=released.value)
