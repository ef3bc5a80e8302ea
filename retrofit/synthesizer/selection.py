from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Union

from retrofit.exceptions import ErrorCode, RetrofitError


@dataclass(frozen=True)
class Copy:
    """Take the member as the base type declares it (method bodies are never copied)."""


@dataclass(frozen=True)
class Override:
    """
    Replace part of the member with caller-supplied PHP:
    `value` is the new default/constant value, `body` the statements of a method.
    """

    value: Optional[str] = None
    body: Optional[str] = None


Choice = Union[Copy, Override]
SectionInput = Union[Iterable[str], Mapping[str, Optional[Choice]]]


def _normalize(section: Optional[SectionInput]) -> Dict[str, Choice]:
    if section is None:
        return {}
    if isinstance(section, Mapping):
        return {name: choice or Copy() for name, choice in section.items()}

    normalized: Dict[str, Choice] = {}
    for name in section:
        if name in normalized:
            raise RetrofitError(ErrorCode.DUPLICATE_MEMBER, name=name)
        normalized[name] = Copy()
    return normalized


@dataclass
class MemberSelection:
    """
    Which base members to carry into a generated type, per section. Each section
    is a list of names (all copied) or an ordered mapping of name to `Copy()` /
    `Override(...)`. The order given here is the order of the generated members.
    """

    constants: Dict[str, Choice] = field(default_factory=dict)
    properties: Dict[str, Choice] = field(default_factory=dict)
    methods: Dict[str, Choice] = field(default_factory=dict)

    def __post_init__(self):
        self.constants = _normalize(self.constants)
        self.properties = _normalize(self.properties)
        self.methods = _normalize(self.methods)
