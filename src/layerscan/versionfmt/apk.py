"""Alpine apk version format.

Versions look like ``1.2.3a_rc1-r2``: dot separated numbers, an optional
letter, any number of ``_suffix[N]`` parts, an optional ``~commit`` hash
and an optional ``-rN`` package revision. Ordering follows apk-tools:
pre-release suffixes (alpha, beta, pre, rc) sort below the plain release
and post-release suffixes (cvs, svn, git, hg, p) sort above it.
"""

import re
from enum import IntEnum
from typing import List, Tuple, Union

from .base import VersionParser, cmp

PARSER_NAME = "apk"

_VERSION_RE = re.compile(
    r"^(?P<numbers>[0-9]+(?:\.[0-9]+)*)"
    r"(?P<letter>[a-z])?"
    r"(?P<suffixes>(?:_(?:alpha|beta|pre|rc|cvs|svn|git|hg|p)[0-9]*)*)"
    r"(?:~(?P<hash>[0-9a-f]+))?"
    r"(?:-r(?P<revision>[0-9]+))?$"
)
_SUFFIX_RE = re.compile(r"_([a-z]+)([0-9]*)")

SUFFIX_ORDER = {
    "alpha": -4,
    "beta": -3,
    "pre": -2,
    "rc": -1,
    "cvs": 1,
    "svn": 2,
    "git": 3,
    "hg": 4,
    "p": 5,
}


class TokenKind(IntEnum):
    DIGIT = 0
    LETTER = 1
    SUFFIX = 2
    SUFFIX_NO = 3
    COMMIT_HASH = 4
    REVISION_NO = 5
    END = 6


# (kind, value, is_first_number)
Token = Tuple[TokenKind, Union[int, str], bool]

_END: Token = (TokenKind.END, 0, False)


def _compare_numbers(a: str, b: str, first: bool) -> int:
    # Fractional components with a leading zero compare as strings.
    if not first and (a.startswith("0") or b.startswith("0")):
        return cmp(a, b)
    return cmp(int(a), int(b))


def _compare_tokens(a: List[Token], b: List[Token]) -> int:
    for i in range(max(len(a), len(b)) + 1):
        ta = a[i] if i < len(a) else _END
        tb = b[i] if i < len(b) else _END
        kind_a, value_a, first_a = ta
        kind_b, value_b, _ = tb

        if kind_a == kind_b:
            if kind_a == TokenKind.END:
                return 0
            if kind_a == TokenKind.DIGIT:
                result = _compare_numbers(value_a, value_b, first_a)
            else:
                result = cmp(value_a, value_b)
            if result:
                return result
            continue

        # A pre-release suffix is lower than whatever the other side has.
        if kind_a == TokenKind.SUFFIX and value_a < 0:
            return -1
        if kind_b == TokenKind.SUFFIX and value_b < 0:
            return 1
        return -1 if kind_a > kind_b else 1

    return 0


class ApkVersionParser(VersionParser):
    """Parser for Alpine package versions."""

    @property
    def format_name(self) -> str:
        return PARSER_NAME

    def parse(self, version: str) -> List[Token]:
        s = version.strip()
        if not s:
            raise self._invalid(version, "no version at all")

        match = _VERSION_RE.match(s)
        if not match:
            raise self._invalid(version, "does not match apk version syntax")

        tokens: List[Token] = []
        for i, number in enumerate(match.group("numbers").split(".")):
            tokens.append((TokenKind.DIGIT, number, i == 0))

        if match.group("letter"):
            tokens.append((TokenKind.LETTER, match.group("letter"), False))

        for name, number in _SUFFIX_RE.findall(match.group("suffixes")):
            tokens.append((TokenKind.SUFFIX, SUFFIX_ORDER[name], False))
            if number:
                tokens.append((TokenKind.SUFFIX_NO, int(number), False))

        if match.group("hash"):
            tokens.append((TokenKind.COMMIT_HASH, match.group("hash"), False))

        if match.group("revision") is not None:
            tokens.append((TokenKind.REVISION_NO, int(match.group("revision")), False))

        return tokens

    def compare_parsed(self, a: List[Token], b: List[Token]) -> int:
        return _compare_tokens(a, b)
