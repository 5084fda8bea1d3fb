"""
Query File Scanner

Parses the tagged query format into a name -> raw text mapping.

FORMAT:
-------
    -- name: find-user-by-email
    SELECT id, email FROM users WHERE email = ?

    -- name: create-user
    INSERT INTO users (email) VALUES (?)

A tag line opens a named block; every following line up to the next tag (or
end of input) belongs to that block and is stored with a trailing newline.
Lines before the first tag are dropped.

STATE MACHINE:
--------------
    SEEKING     --tag-->  COLLECTING(name)
    COLLECTING  --tag-->  COLLECTING(new name)
    COLLECTING  --line--> COLLECTING(name) + append line

step() is pure: it takes the current state and one line and returns the next
state plus an optional Append action. scan() is the only place that mutates
the output mapping.
"""

import enum
import re
from dataclasses import dataclass
from typing import IO, Dict, Iterable, Iterator, Optional, Tuple

from namedsql.exceptions import LineTooLongError

TAG_PATTERN = re.compile(r"^\s*--\s*name:\s*(\S+)", re.ASCII)


def get_tag(line: str) -> Optional[str]:
    """
    Return the query name declared on a tag line.

    Args:
        line: One line of source text

    Returns:
        The identifier following "name:", or None if the line is not a tag
    """
    match = TAG_PATTERN.match(line)
    if match is None:
        return None
    return match.group(1)


class Phase(enum.Enum):
    """Scanner phases."""
    SEEKING = "seeking"
    COLLECTING = "collecting"


@dataclass(frozen=True)
class ScanState:
    phase: Phase = Phase.SEEKING
    current: Optional[str] = None


@dataclass(frozen=True)
class Append:
    """Append text to the body of a named query (creating it if needed)."""
    name: str
    text: str


INITIAL_STATE = ScanState()


def step(state: ScanState, line: str) -> Tuple[ScanState, Optional[Append]]:
    """
    Advance the scanner by one line.

    A tag registers its name with an empty append, so a tag with no body
    still produces an entry, and re-tagging never resets what was collected.
    """
    tag = get_tag(line)

    if state.phase is Phase.SEEKING:
        if tag is None:
            return state, None
        return ScanState(Phase.COLLECTING, tag), Append(tag, "")

    if tag is not None:
        return ScanState(Phase.COLLECTING, tag), Append(tag, "")

    return state, Append(state.current, line + "\n")


def scan(lines: Iterable[str]) -> Dict[str, str]:
    """
    Run the scanner over a sequence of lines (without line terminators).

    Returns:
        Mapping of query name to accumulated raw text
    """
    queries: Dict[str, str] = {}
    state = INITIAL_STATE

    for line in lines:
        state, action = step(state, line)
        if action is not None:
            queries[action.name] = queries.get(action.name, "") + action.text

    return queries


def iter_lines(
    stream: IO[str],
    max_line_length: Optional[int] = None,
    path: Optional[str] = None,
) -> Iterator[str]:
    """
    Yield the lines of a text stream, one read at a time.

    Trailing "\\n" or "\\r\\n" terminators are stripped. Only one line is held
    in memory, and a line longer than max_line_length characters raises
    LineTooLongError instead of growing the buffer. A falsy ceiling reads
    lines of any length.

    Args:
        stream: Text stream with a readline(size) method
        max_line_length: Per-line ceiling in characters (None/0 = unbounded)
        path: Source path, reported in errors
    """
    # Two extra characters leave room for a "\r\n" terminator
    limit = max_line_length + 2 if max_line_length else -1
    line_number = 0

    while True:
        raw = stream.readline(limit)
        if not raw:
            return

        line_number += 1
        line = raw[:-1] if raw.endswith("\n") else raw
        if line.endswith("\r"):
            line = line[:-1]

        if max_line_length and len(line) > max_line_length:
            raise LineTooLongError(line_number, max_line_length, path=path)

        yield line
