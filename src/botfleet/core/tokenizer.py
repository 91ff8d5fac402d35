"""Console line tokenizer."""

from __future__ import annotations

import re
from dataclasses import dataclass

_TOKEN_RE = re.compile(
    r"""
    \s*
    (?:-+(?P<flag>[^=\s'"]+)[=\s]?)?
    (?:
        (?P<quote>['"])(?P<quoted>.*?)(?P=quote)
        | ['"](?P<unterminated>.*)$
        | (?P<bare>[^\s'"-][^\s'"]*)
    )?
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class Token:
    """One flag and/or value parsed from a console line."""

    flag: str | None = None
    value: str | None = None

    @property
    def is_flag(self) -> bool:
        return self.flag is not None


def tokenize(line: str) -> list[Token]:
    """Split a console line into ordered flag/value tokens.

    Quoted values may contain whitespace and the other quote character.
    An unterminated quote swallows the rest of the line as one value.
    """

    tokens: list[Token] = []
    for match in _TOKEN_RE.finditer(line.strip()):
        flag = match.group("flag")
        value = _first_not_none(match.group("quoted"), match.group("unterminated"), match.group("bare"))
        if flag is None and value is None:
            continue
        tokens.append(Token(flag=flag, value=value))
    return tokens


def _first_not_none(*values: str | None) -> str | None:
    for value in values:
        if value is not None:
            return value
    return None
