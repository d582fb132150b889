from __future__ import annotations

import re
import textwrap
from dataclasses import dataclass, field

from ..config.model import C_DIALECT, Dialect
from .model import Block, CodeBlock, Document, ExtractionAnomaly, LineRange, ProseBlock

_PRINTS_RE = re.compile(r'^prints\s+"(?P<payload>.*)"\s*$', re.IGNORECASE)


@dataclass
class _Pending:
    kind: str
    start: int
    end: int
    lines: list[str] = field(default_factory=list)
    expected: list[str] = field(default_factory=list)


def annotation_text(comment: str, marker: str) -> str:
    """Strip the result marker and unwrap the `Prints "..."` convention."""
    text = comment[len(marker):].strip() if comment.startswith(marker) else comment.strip()
    match = _PRINTS_RE.match(text)
    if match:
        return match.group("payload")
    return text


class _Scanner:
    def __init__(self, dialect: Dialect) -> None:
        self.d = dialect
        self.blocks: list[Block] = []
        self.anomalies: list[ExtractionAnomaly] = []
        self.pending: _Pending | None = None
        self.depth = 0
        self.annotation_open = False
        self.in_string: str | None = None

    # block bookkeeping

    def _flush(self) -> None:
        pending = self.pending
        self.pending = None
        if pending is None:
            return
        block_id = len(self.blocks) + 1
        span = LineRange(pending.start, pending.end)
        if pending.kind == "code":
            source = textwrap.dedent("\n".join(pending.lines)).strip("\n")
            self.blocks.append(
                CodeBlock(
                    id=block_id,
                    source=source,
                    line_range=span,
                    declared_bindings=self._bindings(source),
                    expected_output=tuple(pending.expected) if pending.expected else None,
                )
            )
            return
        self.blocks.append(
            ProseBlock(id=block_id, text="\n".join(pending.lines), line_range=span, disabled=pending.kind == "disabled")
        )

    def _add(self, kind: str, lineno: int, text: str) -> _Pending:
        if self.pending is None or self.pending.kind != kind or kind == "block":
            self._flush()
            self.pending = _Pending(kind=kind, start=lineno, end=lineno)
        self.pending.lines.append(text)
        self.pending.end = lineno
        return self.pending

    def _bindings(self, source: str) -> frozenset[str]:
        regex = self.d.binding_regex
        if regex is None:
            return frozenset()
        names: set[str] = set()
        for match in regex.finditer(source):
            names.update(group for group in match.groups() if group)
        return frozenset(names)

    # block comments

    def _scan_comment(self, text: str, start: int, depth: int) -> tuple[int, int]:
        opener, closer = self.d.block_open or "", self.d.block_close or ""
        i = start
        while i < len(text):
            if text.startswith(opener, i):
                depth += 1
                i += len(opener)
            elif text.startswith(closer, i):
                depth -= 1
                i += len(closer)
                if depth == 0:
                    return 0, i
            else:
                i += 1
        return depth, i

    def _comment_chunk(self, lineno: int, text: str, start: int) -> str:
        self.depth, end = self._scan_comment(text, start, self.depth)
        self.pending.lines.append(text[start:end].rstrip())  # type: ignore[union-attr]
        self.pending.end = lineno  # type: ignore[union-attr]
        if self.depth > 0:
            return ""
        self._flush()
        return text[end:]

    def _open_comment(self, lineno: int, text: str, start: int) -> str:
        self._flush()
        self.annotation_open = False
        self.pending = _Pending(kind="block", start=lineno, end=lineno)
        return self._comment_chunk(lineno, text, start)

    # line classification

    def _opening_quote(self, line: str, i: int) -> str | None:
        for delimiter in self.d.multiline_quotes:
            if line.startswith(delimiter, i):
                return delimiter
        return line[i] if line[i] in self.d.quotes else None

    def _skip_string(self, line: str, i: int, quote: str) -> tuple[int, str | None]:
        """Advance past the closing `quote`; a multi-line string left open is returned."""
        while i < len(line):
            if line[i] == "\\":
                i += 2
                continue
            if line.startswith(quote, i):
                return i + len(quote), None
            i += 1
        return len(line), quote if quote in self.d.multiline_quotes else None

    def _split_code(self, line: str) -> tuple[str, str | None, int | None]:
        """Return code, trailing line comment and the offset of an unclosed block comment.

        Updates `in_string` when the line opens or closes a multi-line string.
        """
        d = self.d
        i = 0
        if self.in_string is not None:
            i, self.in_string = self._skip_string(line, 0, self.in_string)
        while i < len(line):
            quote = self._opening_quote(line, i)
            if quote is not None:
                i, self.in_string = self._skip_string(line, i + len(quote), quote)
                continue
            if line.startswith(d.comment_marker, i):
                return line[:i], line[i:], None
            if d.block_open and line.startswith(d.block_open, i):
                depth, end = self._scan_comment(line, i, 0)
                if depth > 0:
                    return line[:i], None, i
                i = end
                continue
            i += 1
        return line, None, None

    def _is_disabled(self, stripped: str) -> bool:
        marker = self.d.disable_marker
        if not stripped.startswith(marker) or len(stripped) == len(marker):
            return False
        rest = stripped[len(marker):]
        return not rest[0].isspace() and not rest.startswith(marker[-1])

    def _annotate(self, text: str) -> None:
        if text and self.pending is not None:
            self.pending.expected.append(text)

    def _comment_line(self, lineno: int, stripped: str) -> None:
        d = self.d
        is_result = stripped.startswith(d.result_marker)
        distinct = d.result_marker != d.comment_marker
        if self.annotation_open and is_result and (distinct or not self._is_disabled(stripped)):
            self._annotate(annotation_text(stripped, d.result_marker))
            self.pending.end = lineno  # type: ignore[union-attr]
            return
        self.annotation_open = False
        if self._is_disabled(stripped):
            self._add("disabled", lineno, stripped)
            return
        self._add("comment", lineno, stripped)

    def _balanced(self, lines: list[str]) -> bool:
        depth = 0
        quote: str | None = None
        for line in lines:
            i = 0
            if quote is not None:
                i, quote = self._skip_string(line, 0, quote)
            while i < len(line):
                opened = self._opening_quote(line, i)
                if opened is not None:
                    i, quote = self._skip_string(line, i + len(opened), opened)
                    continue
                if line[i] in "([{":
                    depth += 1
                elif line[i] in ")]}":
                    depth -= 1
                i += 1
        return depth <= 0

    def _starts_statement(self, lines: list[str], code: str) -> bool:
        indent = len(code) - len(code.lstrip())
        first = lines[0]
        return indent <= len(first) - len(first.lstrip()) and self._balanced(lines)

    def _code_line(self, lineno: int, line: str) -> None:
        continuing = self.in_string is not None
        code, comment, open_at = self._split_code(line)
        annotated = comment is not None and comment.startswith(self.d.result_marker)
        pending = self.pending
        if pending is not None and not continuing:
            if pending.kind != "code" or pending.expected:
                self._flush()
            elif annotated and code.strip() and self._starts_statement(pending.lines, code):
                # a same-line annotation reports the result of its own statement
                self._flush()
        if continuing or code.strip():
            # string bodies keep their trailing whitespace
            self._add("code", lineno, code if self.in_string is not None else code.rstrip())
            self.annotation_open = True
            if annotated:
                self._annotate(annotation_text(comment, self.d.result_marker))  # type: ignore[arg-type]
        if open_at is not None:
            self._open_comment(lineno, line, open_at)

    def _line(self, lineno: int, line: str) -> None:
        d = self.d
        if self.in_string is not None:
            self._code_line(lineno, line)
            return
        if self.depth > 0:
            line = self._comment_chunk(lineno, line, 0)
            if not line.strip():
                return
        stripped = line.strip()
        if not stripped:
            self._flush()
            self.annotation_open = False
            return
        if stripped.startswith(d.prose_marker):
            self.annotation_open = False
            self._add("prose", lineno, stripped)
            return
        if d.block_open and stripped.startswith(d.block_open):
            rest = self._open_comment(lineno, stripped, 0)
            if rest.strip():
                self._line(lineno, rest)
            return
        if d.block_close and stripped.startswith(d.block_close):
            self.anomalies.append(
                ExtractionAnomaly("stray_comment_close", lineno, f"`{d.block_close}` without an open block comment")
            )
            self.annotation_open = False
            self._add("comment", lineno, stripped)
            return
        if stripped.startswith(d.comment_marker):
            self._comment_line(lineno, stripped)
            return
        self._code_line(lineno, line)

    def scan(self, text: str, path: str) -> Document:
        lines = text.lstrip("\ufeff").splitlines()
        for lineno, line in enumerate(lines, start=1):
            self._line(lineno, line)
        if self.depth > 0 and self.pending is not None:
            self.anomalies.append(
                ExtractionAnomaly(
                    "unterminated_comment",
                    self.pending.start,
                    f"block comment opened on line {self.pending.start} is still open at end of document (depth {self.depth})",
                )
            )
            self.depth = 0
        if self.in_string is not None and self.pending is not None:
            self.anomalies.append(
                ExtractionAnomaly(
                    "unterminated_string",
                    self.pending.start,
                    f"`{self.in_string}` string in the block starting on line {self.pending.start} is still open at end of document",
                )
            )
            self.in_string = None
        self._flush()
        return Document(path=path, blocks=tuple(self.blocks), anomalies=tuple(self.anomalies), dialect=self.d.name)


def extract(document_text: str, dialect: Dialect = C_DIALECT, path: str = "<string>") -> Document:
    """Split a literate document into ordered prose and code blocks.

    Never raises on malformed input: unterminated or stray block comments
    degrade to prose and are recorded in `Document.anomalies`.
    """
    return _Scanner(dialect).scan(document_text, path)
