"""Textual normalizer for generated TypeScript.

The formatter never parses the program. A per-line scanner separates code
from strings, comments and template literals, and tracks open brackets so
that indentation, statement terminators, quotes and trailing commas can be
adjusted without touching literal text. Formatting formatted output is a
no-op.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from core.ir.models import CodeStyle

CODE, STRING, TEMPLATE, COMMENT = "code", "string", "template", "comment"

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {")": "(", "]": "[", "}": "{"}

# Brace kinds: statement block, or object literal / binding list
BLOCK, OBJECT = "block", "object"

_OBJECT_PRECEDERS = set("=([,:?")
_OBJECT_KEYWORDS = {"return", "import", "export", "const", "let", "var", "yield", "await"}
_CONTINUATION_ENDINGS = set("{([,;:=+-*/&|?<>.!~^%")
_CONTINUATION_STARTS = (".", "?", ":", "+", "-", "*", "/", "&&", "||", "=")
_ASI_HAZARD_STARTS = ("(", "[", "`")


def scan(text: str, in_template: bool = False, in_comment: bool = False) -> Tuple[List[Tuple[str, int, int]], bool, bool]:
    """Split one line into ``(kind, start, end)`` segments.

    Returns the segments plus whether the line ends inside a template
    literal or a block comment.
    """
    segments: List[Tuple[str, int, int]] = []
    mode = TEMPLATE if in_template else COMMENT if in_comment else CODE
    start = 0
    i = 0
    n = len(text)

    def flush(kind: str, end: int) -> None:
        if end > start:
            segments.append((kind, start, end))

    while i < n:
        char = text[i]
        if mode == CODE:
            if char in "'\"":
                flush(CODE, i)
                j = i + 1
                while j < n and text[j] != char:
                    j += 2 if text[j] == "\\" else 1
                end = min(j + 1, n)
                segments.append((STRING, i, end))
                i = start = end
                continue
            if char == "`":
                flush(CODE, i)
                mode, start = TEMPLATE, i
                i += 1
                continue
            if text.startswith("//", i):
                flush(CODE, i)
                segments.append((COMMENT, i, n))
                start = i = n
                break
            if text.startswith("/*", i):
                flush(CODE, i)
                mode, start = COMMENT, i
                i += 2
                continue
            i += 1
        elif mode == TEMPLATE:
            if char == "\\":
                i += 2
                continue
            if char == "`":
                segments.append((TEMPLATE, start, i + 1))
                mode = CODE
                i = start = i + 1
                continue
            i += 1
        else:
            if text.startswith("*/", i):
                segments.append((COMMENT, start, i + 2))
                mode = CODE
                i = start = i + 2
                continue
            i += 1

    flush(mode, n)
    return segments, mode == TEMPLATE, mode == COMMENT


@dataclass
class Line:
    """One source line with the facts the formatting rules need."""
    text: str
    starts_in_literal: bool = False
    starts_in_comment: bool = False
    ends_in_literal: bool = False
    ends_in_comment: bool = False
    segments: List[Tuple[str, int, int]] = field(default_factory=list)
    level: int = 0
    innermost: Optional[str] = None
    last_index: int = -1
    last_closed: Optional[str] = None

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()

    @property
    def has_code(self) -> bool:
        return self.last_index >= 0

    @property
    def last_char(self) -> str:
        return self.text[self.last_index] if self.has_code else ""

    @property
    def first_code(self) -> str:
        for kind, start, end in self.segments:
            if kind != COMMENT and self.text[start:end].strip():
                return self.text[start:end].lstrip()
        return ""


class CodeFormatter:
    """Normalizes indentation, terminators, quotes and trailing commas."""

    def __init__(self, style: Optional[CodeStyle] = None):
        self.style = style or CodeStyle()

    def format(self, code: str) -> str:
        text = code.replace("\r\n", "\n").replace("\r", "\n")
        lines = self._analyze(text.split("\n"))

        for index, line in enumerate(lines):
            if line.is_blank or line.starts_in_comment and line.ends_in_comment:
                continue
            following = self._next_code_line(lines, index)
            self._normalize_quotes(line)
            self._apply_trailing_comma(line, following)
            self._apply_semicolon(line, following)

        output = self._reindent(lines)
        return self._collapse_blank_lines(output)

    def _analyze(self, raw_lines: List[str]) -> List[Line]:
        lines: List[Line] = []
        # (brace kind or bracket char, level of the line that opened it)
        stack: List[Tuple[str, int]] = []
        in_literal = in_comment = False
        previous_tail = ""
        last_level = 0

        for raw in raw_lines:
            starts_in_literal, starts_in_comment = in_literal, in_comment
            text = raw if (starts_in_literal or starts_in_comment) else raw.lstrip()
            segments, ends_literal, ends_comment = scan(text, in_literal, in_comment)
            if not ends_literal:
                text = text.rstrip()
                segments = [(k, s, min(e, len(text))) for k, s, e in segments if s < len(text)]

            line = Line(
                text=text,
                starts_in_literal=starts_in_literal,
                starts_in_comment=starts_in_comment,
                ends_in_literal=ends_literal,
                ends_in_comment=ends_comment,
                segments=segments,
            )
            line.level = self._line_level(line, stack, last_level)

            for kind, start, end in segments:
                if kind != COMMENT:
                    stripped_end = len(text[start:end].rstrip()) + start
                    if stripped_end > start:
                        line.last_index = stripped_end - 1
                if kind != CODE:
                    continue
                for offset in range(start, end):
                    char = text[offset]
                    if char in OPENERS:
                        opened = self._classify_brace(text, offset, previous_tail) if char == "{" else char
                        stack.append((opened, line.level))
                    elif char in CLOSERS:
                        closed = stack.pop()[0] if stack else None
                        if offset == line.last_index or text[offset + 1:].strip() in ("", ";", ","):
                            line.last_closed = closed

            line.innermost = stack[-1][0] if stack else None
            if line.has_code:
                previous_tail = text[:line.last_index + 1]
            if not (line.starts_in_literal or line.is_blank):
                last_level = line.level
            in_literal, in_comment = ends_literal, ends_comment
            lines.append(line)

        return lines

    @staticmethod
    def _line_level(line: Line, stack: List[Tuple[str, int]], last_level: int) -> int:
        """Indent level: one past the line that opened the innermost bracket.

        Lines that start by closing brackets line up with the line that
        opened the outermost of them; method-chain lines get one extra level.
        """
        if line.starts_in_literal:
            return last_level
        if line.starts_in_comment:
            return stack[-1][1] + 1 if stack else 0

        closers = 0
        first = line.first_code
        for char in first:
            if char in CLOSERS:
                closers += 1
            elif not char.isspace():
                break
        closers = min(closers, len(stack))
        if closers:
            return stack[len(stack) - closers][1]

        level = stack[-1][1] + 1 if stack else 0
        if first.startswith(".") and not first.startswith("..."):
            level += 1
        return level

    @staticmethod
    def _classify_brace(text: str, offset: int, previous_tail: str) -> str:
        before = text[:offset].rstrip() or previous_tail.rstrip()
        if not before:
            return BLOCK
        if before[-1] in _OBJECT_PRECEDERS:
            return OBJECT
        if before.endswith("=>"):
            return BLOCK
        words = before.split()
        if words and words[-1] in _OBJECT_KEYWORDS:
            return OBJECT
        return BLOCK

    @staticmethod
    def _next_code_line(lines: List[Line], index: int) -> Optional[Line]:
        for line in lines[index + 1:]:
            if line.starts_in_literal or line.starts_in_comment:
                return line
            if line.has_code:
                return line
        return None

    def _normalize_quotes(self, line: Line) -> None:
        target = self.style.quote
        chars = list(line.text)
        for kind, start, end in line.segments:
            if kind != STRING or end - start < 2:
                continue
            literal = line.text[start:end]
            source = literal[0]
            body = literal[1:-1]
            if source == target or literal[-1] != source:
                continue
            if target in body or "\\" in body:
                continue
            chars[start] = target
            chars[end - 1] = target
        line.text = "".join(chars)

    def _closes_literal(self, line: Line, following: Optional[Line]) -> bool:
        if following is None or line.innermost not in (OBJECT, "["):
            return False
        closer = "}" if line.innermost == OBJECT else "]"
        return following.first_code.startswith(closer)

    def _apply_trailing_comma(self, line: Line, following: Optional[Line]) -> None:
        if not line.has_code or line.ends_in_literal or line.ends_in_comment:
            return
        if not self._closes_literal(line, following):
            return
        if line.text.lstrip().startswith("..."):
            return
        last = line.last_char
        if self.style.trailing_commas:
            if last not in ",{[(;":
                self._insert_after_last(line, ",")
        elif last == ",":
            self._remove_last(line)

    def _apply_semicolon(self, line: Line, following: Optional[Line]) -> None:
        if not line.has_code or line.ends_in_literal or line.ends_in_comment:
            return
        if line.innermost not in (None, BLOCK):
            return
        if line.first_code.startswith("@"):
            return

        next_start = following.first_code if following is not None else ""
        last = line.last_char

        if self.style.semicolons:
            if last in _CONTINUATION_ENDINGS:
                return
            if last == "}" and line.last_closed != OBJECT:
                return
            if next_start.startswith(_CONTINUATION_STARTS) and not next_start.startswith("..."):
                return
            if self._opens_statement_block(line):
                return
            self._insert_after_last(line, ";")
        elif last == ";" and line.text.strip() != ";":
            if next_start.startswith(_ASI_HAZARD_STARTS):
                return
            self._remove_last(line)

    @staticmethod
    def _opens_statement_block(line: Line) -> bool:
        """Brace-less heads such as ``else`` or ``if (x)`` followed by a
        block on the next line."""
        code = line.text[:line.last_index + 1].strip()
        return code in ("else", "try", "finally", "do") or code.startswith(("if (", "for (", "while (")) and code.endswith(")")

    @staticmethod
    def _insert_after_last(line: Line, token: str) -> None:
        position = line.last_index + 1
        line.text = line.text[:position] + token + line.text[position:]
        line.segments = [
            (kind, start + (1 if start >= position else 0), end + (1 if end > position or start >= position else 0))
            for kind, start, end in line.segments
        ]
        line.last_index = position

    @staticmethod
    def _remove_last(line: Line) -> None:
        position = line.last_index
        line.text = line.text[:position] + line.text[position + 1:]
        line.last_index = len(line.text[:position].rstrip()) - 1

    def _reindent(self, lines: List[Line]) -> List[Tuple[str, bool]]:
        """Re-indented text per line, flagged when it is literal content."""
        unit = self.style.indent
        output: List[Tuple[str, bool]] = []
        for line in lines:
            if line.starts_in_literal:
                output.append((line.text, True))
            elif line.is_blank:
                output.append(("", False))
            elif line.starts_in_comment:
                stripped = line.text.strip()
                if stripped.startswith("*"):
                    output.append((unit * line.level + " " + stripped, False))
                else:
                    output.append((line.text.rstrip(), False))
            else:
                output.append((unit * line.level + line.text, False))
        return output

    @staticmethod
    def _collapse_blank_lines(output: List[Tuple[str, bool]]) -> str:
        result: List[str] = []
        blank_run = 0
        for text, literal in output:
            if text == "" and not literal:
                blank_run += 1
                continue
            if blank_run and result:
                result.append("")
            blank_run = 0
            result.append(text)
        return "\n".join(result) + "\n"


def format_code(code: str, style: Optional[CodeStyle] = None) -> str:
    return CodeFormatter(style).format(code)
