"""
Utility helpers for the retrofit CLI: terminal coloring and a JSON encoder
for syntax trees and other pydantic artifacts.
"""

import json
from dataclasses import asdict, is_dataclass

from lark import Token
from pydantic import BaseModel

from retrofit.parser.core.classes import ASTNode


class TerminalColors:
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    RESET = "\033[0m"


class ArtifactEncoder(json.JSONEncoder):
    def default(self, o):
        if isinstance(o, ASTNode):
            return o.to_dict()
        if isinstance(o, BaseModel):
            return o.model_dump(mode="json")
        if is_dataclass(o) and not isinstance(o, type):
            return asdict(o)
        if isinstance(o, Token):
            return o.value
        if isinstance(o, set):
            return sorted(o)
        return super().default(o)
