"""Outcome of an attempted patch."""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Applied:
    """The edit found its target. `text` is the new file content (not yet written)."""

    text: str


@dataclass(frozen=True)
class NotApplicable:
    """The target did not have the shape the edit requires. Nothing was changed."""

    reason: str

    def __bool__(self):
        return False


PatchResult = Union[Applied, NotApplicable]
