"""Path normalization and display quoting.

Processes are always exec'd with an argument vector, so the raw
normalized path is what gets passed to a tool. The quoted form exists for
logs and for anyone copy-pasting a command into a shell.
"""

import os
import re
from dataclasses import dataclass

_NEEDS_QUOTING = re.compile(r"[\s'&]")


@dataclass(frozen=True)
class SanitizedPath:
    raw: str
    quoted: str

    def __str__(self) -> str:
        return self.raw


def normalize_separators(path: str, sep: str = os.sep) -> str:
    """Rewrite both ``/`` and ``\\`` to the host separator."""
    return re.sub(r"[\\/]", lambda _: sep, path)


def quote(token: str) -> str:
    """Single-quote *token* when it holds whitespace, ``'`` or ``&``."""
    if not _NEEDS_QUOTING.search(token):
        return token
    return "'" + token.replace("'", "'\\''") + "'"


def sanitize(path: str | os.PathLike, sep: str = os.sep) -> SanitizedPath:
    raw = normalize_separators(os.fspath(path), sep)
    return SanitizedPath(raw=raw, quoted=quote(raw))


def format_command(cmd: list[str]) -> str:
    """Render an argument vector as a single shell-pasteable line."""
    return " ".join(quote(str(token)) for token in cmd)
