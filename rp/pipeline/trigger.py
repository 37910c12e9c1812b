"""Tag trigger evaluation.

A pipeline run starts only for tags of the form ``v<major>.<minor>.<patch>``
(digits only, literal ``v`` and dots). The tag is matched as given: ref
names such as ``refs/tags/v1.2.3`` are skipped like any other non-matching
string. Malformed input is never an error.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

__all__ = [
    "TriggerDecision",
    "VersionTag",
    "evaluate_trigger",
    "parse_version_tag",
]

_VERSION_TAG_RE = re.compile(r"v([0-9]+)\.([0-9]+)\.([0-9]+)")


class TriggerDecision(StrEnum):
    RUN = "run"
    SKIP = "skip"


@dataclass(frozen=True, slots=True, order=True)
class VersionTag:
    major: int
    minor: int
    patch: int

    def to_tag(self) -> str:
        return f"v{self.major}.{self.minor}.{self.patch}"


def parse_version_tag(tag: object) -> VersionTag | None:
    if not isinstance(tag, str):
        return None
    m = _VERSION_TAG_RE.fullmatch(tag)
    if m is None:
        return None
    return VersionTag(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def evaluate_trigger(tag: object) -> TriggerDecision:
    if parse_version_tag(tag) is None:
        return TriggerDecision.SKIP
    return TriggerDecision.RUN
