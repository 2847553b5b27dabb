"""Shared test utilities.

Hint fixtures are Rust source with caret annotations: a comment line made of
``//`` followed by carets marks the columns of the nearest preceding
non-annotation line, and the rest of the comment is the expected label::

    let test = 54;
      //^^^^ i32
"""

import re

from inlayhints.config import HintConfig
from inlayhints.hints import inlay_hints_for_source
from inlayhints.snapshot import SemanticSnapshot
from inlayhints.syntax import TextRange


def _annotations_on(line: str) -> list[tuple[int, int, str]]:
    """``(start_col, end_col, label)`` for each caret group on *line*.

    Several groups may share one line; each label runs up to the next group.
    """
    runs = list(re.finditer(r"\^+", line))
    found: list[tuple[int, int, str]] = []
    for i, run in enumerate(runs):
        label_end = runs[i + 1].start() if i + 1 < len(runs) else len(line)
        found.append((run.start(), run.end(), line[run.end() : label_end].strip()))
    return found


def is_annotation_line(line: str) -> bool:
    return line.lstrip().startswith("//^")


def extract_annotations(text: str) -> list[tuple[TextRange, str]]:
    """Expected ``(range, label)`` pairs in source order.

    Ranges are byte offsets into *text*.
    """
    result: list[tuple[TextRange, str]] = []
    offset = 0
    prev_start: int | None = None
    prev_line = ""
    for line in text.split("\n"):
        if is_annotation_line(line) and prev_start is not None:
            for start_col, end_col, label in _annotations_on(line):
                start = prev_start + len(prev_line[:start_col].encode("utf-8"))
                end = prev_start + len(prev_line[:end_col].encode("utf-8"))
                result.append((TextRange(start, end), label))
        else:
            prev_start, prev_line = offset, line
        offset += len(line.encode("utf-8")) + 1
    return sorted(result)


def hints_for(fixture: str, facts: dict | None = None, config: HintConfig | None = None):
    return inlay_hints_for_source(fixture, SemanticSnapshot.from_dict(facts or {}), config)


def check(fixture: str, facts: dict | None = None, config: HintConfig | None = None) -> None:
    """Assert that *fixture* yields exactly the hints its annotations describe."""
    expected = extract_annotations(fixture)
    actual = sorted((hint.range, hint.label) for hint in hints_for(fixture, facts, config))
    assert actual == expected, f"\nExpected: {expected}\nActual:   {actual}"


def range_of(text: str, needle: str, occurrence: int = 1) -> TextRange:
    """Byte range of the *occurrence*-th appearance of *needle* in *text*."""
    data, pattern = text.encode("utf-8"), needle.encode("utf-8")
    start = -1
    for _ in range(occurrence):
        start = data.index(pattern, start + 1)
    return TextRange(start, start + len(pattern))


def span(text: str, first: str, last: str) -> TextRange:
    """Byte range from the first *first* to the next *last* after it."""
    data = text.encode("utf-8")
    start = range_of(text, first).start
    last_bytes = last.encode("utf-8")
    return TextRange(start, data.index(last_bytes, start) + len(last_bytes))


def find_node(root, kind, text: str, occurrence: int = 1):
    """The *occurrence*-th node of *kind* spelled *text*, in pre-order."""
    matches = [node for node in root.descendants() if node.kind is kind and node.text == text]
    assert len(matches) >= occurrence, f"no {kind.name} {text!r} (#{occurrence}) in tree"
    return matches[occurrence - 1]
