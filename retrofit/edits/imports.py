"""
Import (`use`) bookkeeping for a single PHP file.

Aliases are compared case-insensitively, like PHP does. An import that already
exists is never renamed; a new one gets its preferred alias when free, and a
disambiguated one otherwise.
"""

from typing import Dict, List, Optional, Tuple

from retrofit.config import ALIAS_PREFIX, BUILTIN_TYPES, MAX_ALIAS_ATTEMPTS
from retrofit.exceptions import AliasExhaustedError, ErrorCode
from retrofit.parser.core.classes import ClassDecl, Declare, Namespace, SourceFile, Use, UseClause


def short_name(fqcn: str) -> str:
    return fqcn.strip("\\").rsplit("\\", 1)[-1]


def namespace_of(fqcn: str) -> str:
    parts = fqcn.strip("\\").rsplit("\\", 1)
    return parts[0] if len(parts) == 2 else ""


class ImportTable:
    """
    Maps imported fully-qualified class names to their local alias.
    Names declared by the file itself are reserved and never handed out as aliases.
    """

    def __init__(self, reserved: Optional[List[str]] = None):
        self._aliases: Dict[str, str] = {}  # lowercased fqcn -> alias
        self._owners: Dict[str, str] = {}  # lowercased alias -> fqcn
        self._reserved = {name.lower() for name in reserved or []}
        self.entries: List[Tuple[str, str]] = []
        self.added: List[Tuple[str, str]] = []

    @classmethod
    def from_source(cls, tree: SourceFile) -> "ImportTable":
        statements = list(tree.statements)
        for statement in tree.statements:
            if isinstance(statement, Namespace) and statement.body is not None:
                statements.extend(statement.body)

        table = cls(reserved=[s.name for s in statements if isinstance(s, ClassDecl)])
        for statement in statements:
            if isinstance(statement, Use) and statement.kind is None:
                for clause in statement.clauses:
                    table._register(clause.name, clause.alias or short_name(clause.name))
        return table

    def alias_for(self, fqcn: str) -> Optional[str]:
        return self._aliases.get(fqcn.strip("\\").lower())

    def owner_of(self, alias: str) -> Optional[str]:
        return self._owners.get(alias.lower())

    def is_taken(self, alias: str) -> bool:
        lowered = alias.lower()
        return lowered in self._owners or lowered in self._reserved or lowered in BUILTIN_TYPES

    def _register(self, fqcn: str, alias: str):
        fqcn = fqcn.strip("\\")
        self._aliases[fqcn.lower()] = alias
        self._owners[alias.lower()] = fqcn
        self.entries.append((fqcn, alias))

    def add(self, fqcn: str, alias: str):
        """Registers a new import that has to be written to the file."""
        self._register(fqcn, alias)
        self.added.append((fqcn.strip("\\"), alias))


def alias_candidates(fqcn: str, preferred_alias: Optional[str] = None) -> List[str]:
    """
    Aliases to try, in order: the preferred alias (or the short name), the
    prefixed short name (`Plugin` -> `BasePlugin`), the short name qualified
    by its enclosing namespace segments (`CraftBasePlugin`), then numbered
    variants (`Plugin2`, `Plugin3`...).
    """
    short = short_name(fqcn)
    candidates = [preferred_alias or short, ALIAS_PREFIX + short]

    qualified = short
    for segment in reversed([s for s in namespace_of(fqcn).split("\\") if s]):
        qualified = segment[:1].upper() + segment[1:] + qualified
        candidates.append(qualified)

    number = 2
    while len(candidates) < MAX_ALIAS_ATTEMPTS:
        candidates.append(f"{short}{number}")
        number += 1

    unique = []
    for candidate in candidates:
        if candidate.lower() not in (c.lower() for c in unique):
            unique.append(candidate)
    return unique[:MAX_ALIAS_ATTEMPTS]


def ensure_import(table: ImportTable, fqcn: str, preferred_alias: Optional[str] = None) -> str:
    """
    Returns the alias under which `fqcn` can be referenced, registering a new
    import when needed. Raises `AliasExhaustedError` when every candidate alias
    is already in use.
    """
    fqcn = fqcn.strip("\\")
    existing = table.alias_for(fqcn)
    if existing is not None:
        return existing

    for candidate in alias_candidates(fqcn, preferred_alias):
        if not table.is_taken(candidate):
            table.add(fqcn, candidate)
            return candidate

    raise AliasExhaustedError(ErrorCode.ALIAS_EXHAUSTED, name=fqcn, attempts=MAX_ALIAS_ATTEMPTS)


def use_statement(fqcn: str, alias: str) -> Use:
    """A fresh `use` statement, omitting `as` when the alias is the short name."""
    return Use(clauses=[UseClause(name=fqcn, alias=None if alias == short_name(fqcn) else alias)])


def _insertion_index(statements: list) -> int:
    uses = [i for i, s in enumerate(statements) if isinstance(s, Use)]
    if uses:
        return uses[-1] + 1
    headers = [i for i, s in enumerate(statements) if isinstance(s, (Declare, Namespace)) and getattr(s, "body", None) is None]
    return headers[-1] + 1 if headers else 0


def add_imports(tree: SourceFile, imports: List[Tuple[str, str]]) -> SourceFile:
    """
    Returns a copy of `tree` with one `use` statement per import, placed after
    the last existing `use` (or after the namespace declaration). Imports
    inside a braced namespace go into the first namespace block.
    """
    if not imports:
        return tree
    new_uses = [use_statement(fqcn, alias) for fqcn, alias in imports]

    block_index = next((i for i, s in enumerate(tree.statements) if isinstance(s, Namespace) and s.body is not None), None)
    if block_index is not None:
        block = tree.statements[block_index]
        body = list(block.body)
        index = _insertion_index(body)
        body[index:index] = new_uses
        statements = list(tree.statements)
        statements[block_index] = block.model_copy(update={"body": body})
        return tree.model_copy(update={"statements": statements})

    statements = list(tree.statements)
    index = _insertion_index(statements)
    statements[index:index] = new_uses
    return tree.model_copy(update={"statements": statements})
