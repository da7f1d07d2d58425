"""
Minimal path expression evaluator.

Supported grammar (nothing else is accepted):

    path     := ["$"] step ("." name | "[" bracket "]")*
    step     := name | "[" bracket "]"
    bracket  := digits                  array index
              | "'" text "'"            quoted member name
              | '"' text '"'            quoted member name
              | "?(@." name ")"         keep array items having member `name`

Navigation semantics:

- A member step on a non-object, or on an object without that member,
  yields no match.
- An index step on a non-array, or outside the array bounds, yields no
  match.
- A filter step applied to an array keeps the object items that contain
  the member (the member value may be anything, including null). Applied
  to anything else it yields no match.

No match is never an error: ``select`` returns an empty list. Only
syntax errors raise, and they raise at compile time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, List, Tuple, Union

from receipt.app.errors import InvalidPathExpressionError


_NAME_RE = re.compile(r"[^.\[\]\s'\"()?@$]+")
_INDEX_RE = re.compile(r"\d+")
_FILTER_RE = re.compile(r"\?\(@\.([^.\[\]\s'\"()?@$]+)\)")


@dataclass(frozen=True)
class MemberStep:
    name: str


@dataclass(frozen=True)
class IndexStep:
    index: int


@dataclass(frozen=True)
class HasMemberFilter:
    name: str


Step = Union[MemberStep, IndexStep, HasMemberFilter]


@dataclass(frozen=True)
class PathExpression:
    """A compiled, immutable path expression."""

    source: str
    steps: Tuple[Step, ...]

    def select(self, tree: Any) -> List[Any]:
        """
        Return every node the expression reaches, in document order.

        An empty list means the path does not resolve.
        """
        current: List[Any] = [tree]

        for step in self.steps:
            following: List[Any] = []
            for node in current:
                following.extend(_apply(step, node))
            if not following:
                return []
            current = following

        return current

    def select_one(self, tree: Any) -> Tuple[bool, Any]:
        """
        Resolve to a single node.

        Returns ``(found, node)``. When the path reaches several nodes
        the first one in document order is returned.
        """
        matches = self.select(tree)
        if not matches:
            return False, None
        return True, matches[0]


def _apply(step: Step, node: Any) -> List[Any]:
    if isinstance(step, MemberStep):
        if isinstance(node, dict) and step.name in node:
            return [node[step.name]]
        return []

    if isinstance(step, IndexStep):
        if isinstance(node, list) and step.index < len(node):
            return [node[step.index]]
        return []

    if isinstance(node, list):
        return [
            item
            for item in node
            if isinstance(item, dict) and step.name in item
        ]
    return []


@lru_cache(maxsize=512)
def compile_path(expression: str) -> PathExpression:
    """
    Compile a path expression.

    Raises InvalidPathExpressionError on any syntax outside the
    supported grammar.
    """
    if not isinstance(expression, str):
        raise InvalidPathExpressionError(
            repr(expression), "path must be a string"
        )

    text = expression.strip()
    if not text:
        raise InvalidPathExpressionError(expression, "empty path")

    pos = 0
    steps: List[Step] = []

    if text.startswith("$"):
        pos = 1
        if pos < len(text) and text[pos] == ".":
            pos += 1
            if pos == len(text):
                raise InvalidPathExpressionError(
                    expression, "trailing '.'"
                )
        elif pos < len(text) and text[pos] != "[":
            raise InvalidPathExpressionError(
                expression, "expected '.' or '[' after '$'"
            )

    expect_name = pos == 0 or text[pos - 1] == "."

    while pos < len(text):
        char = text[pos]

        if char == "[":
            close = _find_bracket_end(text, pos, expression)
            steps.append(_parse_bracket(text[pos + 1:close], expression))
            pos = close + 1
            expect_name = False
            continue

        if char == ".":
            if expect_name:
                raise InvalidPathExpressionError(
                    expression, f"empty member name at offset {pos}"
                )
            pos += 1
            if pos == len(text):
                raise InvalidPathExpressionError(
                    expression, "trailing '.'"
                )
            expect_name = True
            continue

        if not expect_name:
            raise InvalidPathExpressionError(
                expression, f"unexpected character '{char}' at offset {pos}"
            )

        match = _NAME_RE.match(text, pos)
        if match is None:
            raise InvalidPathExpressionError(
                expression, f"unexpected character '{char}' at offset {pos}"
            )
        steps.append(MemberStep(match.group(0)))
        pos = match.end()
        expect_name = False

    if not steps:
        # "$" alone addresses the root.
        return PathExpression(source=expression, steps=())

    return PathExpression(source=expression, steps=tuple(steps))


def _find_bracket_end(text: str, start: int, expression: str) -> int:
    pos = start + 1
    quote = None

    while pos < len(text):
        char = text[pos]
        if quote is not None:
            if char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char == "]":
            return pos
        pos += 1

    raise InvalidPathExpressionError(
        expression, f"unterminated '[' at offset {start}"
    )


def _parse_bracket(body: str, expression: str) -> Step:
    if _INDEX_RE.fullmatch(body):
        return IndexStep(int(body))

    if len(body) >= 2 and body[0] == body[-1] and body[0] in ("'", '"'):
        name = body[1:-1]
        if not name:
            raise InvalidPathExpressionError(
                expression, "empty quoted member name"
            )
        return MemberStep(name)

    filter_match = _FILTER_RE.fullmatch(body)
    if filter_match is not None:
        return HasMemberFilter(filter_match.group(1))

    raise InvalidPathExpressionError(
        expression, f"unsupported bracket expression '[{body}]'"
    )
