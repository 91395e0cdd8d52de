"""Lexical pre-pass for JavaScript/TypeScript sources.

The scanner produces a masked copy of the source in which comments, string
contents, template-literal text and regular-expression bodies are replaced by
spaces (newlines are kept so offsets and line numbers survive). Declaration
patterns then run over the masked text without ever matching inside a
literal. String literal values are kept in a side table keyed by the offset of
their opening quote, so import specifiers can still be read back.
"""

from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Optional

from ..errors import ParseError


OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {")": "(", "]": "[", "}": "{"}

# Previous significant token after which a '/' starts a regex literal
REGEX_PRECEDERS = set("(,=:[!&|?{};+-*%<>~^")
REGEX_KEYWORDS = {
    "return", "typeof", "case", "do", "else", "in", "of", "new", "delete",
    "void", "throw", "yield", "await", "instanceof"
}


@dataclass
class StringLiteral:
    """A quoted string found in the source."""
    start: int  # offset of the opening quote
    end: int  # offset one past the closing quote
    value: str


@dataclass
class ScannedSource:
    """Masked source plus the side tables the extractor needs."""
    path: str
    original: str
    masked: str
    depths: list[int]
    strings: dict[int, StringLiteral] = field(default_factory=dict)
    line_starts: list[int] = field(default_factory=list)

    def line_of(self, pos: int) -> int:
        """1-based line number of an offset."""
        return bisect_right(self.line_starts, pos)

    def depth_at(self, pos: int) -> int:
        """Bracket nesting depth just before the character at ``pos``."""
        if pos >= len(self.depths):
            return self.depths[-1] if self.depths else 0
        return self.depths[pos]

    def string_at(self, pos: int) -> Optional[StringLiteral]:
        return self.strings.get(pos)

    def previous_significant(self, pos: int) -> str:
        """Last non-whitespace masked character before ``pos`` ('' at start)."""
        i = pos - 1
        while i >= 0 and self.masked[i].isspace():
            i -= 1
        return self.masked[i] if i >= 0 else ""


class SourceScanner:
    """Single-pass scanner with a mode stack for template literals."""

    def __init__(self, path: str, text: str, jsx: bool = False):
        self.path = path
        self.text = text
        self.jsx = jsx
        self.n = len(text)
        self.out: list[str] = []
        self.depths: list[int] = []
        self.strings: dict[int, StringLiteral] = {}
        self.stack: list[tuple[str, int]] = []
        # Brace depth inside each open ${ } template expression
        self.template_frames: list[int] = []

    def scan(self) -> ScannedSource:
        text = self.text
        i = 0

        # Hashbang line
        if text.startswith("#!"):
            while i < self.n and text[i] != "\n":
                self._emit(" ")
                i += 1

        while i < self.n:
            c = text[i]
            nxt = text[i + 1] if i + 1 < self.n else ""

            if c == "/" and nxt == "/":
                i = self._skip_line_comment(i)
                continue
            if c == "/" and nxt == "*":
                i = self._skip_block_comment(i)
                continue
            if c in ("'", '"'):
                i = self._scan_string(i, c)
                continue
            if c == "`":
                self._emit("`")
                i = self._scan_template(i + 1)
                continue
            if c == "/" and self._regex_allowed(i):
                i = self._scan_regex(i)
                continue

            if c == "}" and self.template_frames and self.template_frames[-1] == 0:
                # End of a ${ } expression: back into template text
                self.template_frames.pop()
                self._emit("}")
                i = self._scan_template(i + 1)
                continue

            if c in OPENERS:
                self._emit(c)
                self.stack.append((c, i))
                if c == "{" and self.template_frames:
                    self.template_frames[-1] += 1
                i += 1
                continue

            if c in CLOSERS:
                if not self.stack:
                    raise ParseError(self.path, f"unexpected '{c}'", self._line(i))
                opener, opened_at = self.stack.pop()
                if opener != CLOSERS[c]:
                    raise ParseError(
                        self.path,
                        f"'{c}' does not match '{opener}' opened at line {self._line(opened_at)}",
                        self._line(i)
                    )
                if c == "}" and self.template_frames:
                    self.template_frames[-1] -= 1
                self._emit(c)
                i += 1
                continue

            self._emit(c)
            i += 1

        if self.template_frames:
            raise ParseError(self.path, "unterminated template literal", self._line(self.n - 1))
        if self.stack:
            opener, opened_at = self.stack[-1]
            raise ParseError(
                self.path,
                f"unclosed '{opener}' opened at line {self._line(opened_at)}",
                self._line(opened_at)
            )

        masked = "".join(self.out)
        self.depths.append(0)
        line_starts = [0] + [idx + 1 for idx, ch in enumerate(text) if ch == "\n"]
        return ScannedSource(
            path=self.path,
            original=text,
            masked=masked,
            depths=self.depths,
            strings=self.strings,
            line_starts=line_starts
        )

    # ── Emission helpers ──

    def _emit(self, ch: str) -> None:
        # Brackets are emitted outside their own nesting level
        self.out.append(ch)
        self.depths.append(len(self.stack))

    def _mask(self, ch: str) -> None:
        self._emit("\n" if ch == "\n" else " ")

    def _line(self, pos: int) -> int:
        return self.text.count("\n", 0, max(pos, 0)) + 1

    # ── Comments ──

    def _skip_line_comment(self, i: int) -> int:
        while i < self.n and self.text[i] != "\n":
            self._mask(self.text[i])
            i += 1
        return i

    def _skip_block_comment(self, i: int) -> int:
        start = i
        self._mask("/")
        self._mask("*")
        i += 2
        while i < self.n:
            if self.text[i] == "*" and i + 1 < self.n and self.text[i + 1] == "/":
                self._mask("*")
                self._mask("/")
                return i + 2
            self._mask(self.text[i])
            i += 1
        raise ParseError(self.path, "unterminated block comment", self._line(start))

    # ── Strings ──

    def _scan_string(self, i: int, quote: str) -> int:
        start = i
        j = i + 1
        chars: list[str] = []
        while j < self.n:
            ch = self.text[j]
            if ch == "\\" and j + 1 < self.n:
                chars.append(self.text[j + 1])
                j += 2
                continue
            if ch == quote:
                break
            if ch == "\n":
                if self.jsx:
                    # Apostrophe in JSX text: not a string at all
                    self._emit(" ")
                    return i + 1
                raise ParseError(self.path, "unterminated string literal", self._line(start))
            chars.append(ch)
            j += 1
        else:
            if self.jsx:
                self._emit(" ")
                return i + 1
            raise ParseError(self.path, "unterminated string literal", self._line(start))

        self._emit(quote)
        for ch in self.text[i + 1:j]:
            self._mask(ch)
        self._emit(quote)
        self.strings[start] = StringLiteral(start=start, end=j + 1, value="".join(chars))
        return j + 1

    def _scan_template(self, i: int) -> int:
        """Scan template text starting after '`' or after a closing '}'."""
        start = i
        while i < self.n:
            ch = self.text[i]
            if ch == "\\" and i + 1 < self.n:
                self._mask(ch)
                self._mask(self.text[i + 1])
                i += 2
                continue
            if ch == "`":
                self._emit("`")
                return i + 1
            if ch == "$" and i + 1 < self.n and self.text[i + 1] == "{":
                self._mask("$")
                self._mask("{")
                self.template_frames.append(0)
                return i + 2
            self._mask(ch)
            i += 1
        raise ParseError(self.path, "unterminated template literal", self._line(start))

    # ── Regular expressions ──

    def _regex_allowed(self, pos: int) -> bool:
        i = len(self.out) - 1
        while i >= 0 and self.out[i].isspace():
            i -= 1
        if i < 0:
            return True
        prev = self.out[i]
        if prev in "+-" and i > 0 and self.out[i - 1] == prev:
            # Postfix `n++ / 2` divides
            return False
        if self.jsx and self._jsx_tag_slash(prev, pos):
            return False
        if prev in REGEX_PRECEDERS:
            return True
        if prev.isalnum() or prev in "_$":
            j = i
            while j >= 0 and (self.out[j].isalnum() or self.out[j] in "_$"):
                j -= 1
            word = "".join(self.out[j + 1:i + 1])
            return word in REGEX_KEYWORDS
        return False

    def _jsx_tag_slash(self, prev: str, pos: int) -> bool:
        """`</div>` closers and `<Item key={i}/>` self-closing tags."""
        if prev == "<":
            return True
        return prev == "}" and self.text[pos + 1:pos + 2] == ">"

    def _scan_regex(self, i: int) -> int:
        start = i
        j = i + 1
        in_class = False
        while j < self.n:
            ch = self.text[j]
            if ch == "\\" and j + 1 < self.n:
                j += 2
                continue
            if ch == "\n":
                if self.jsx:
                    self._emit("/")
                    return i + 1
                raise ParseError(self.path, "unterminated regular expression", self._line(start))
            if in_class:
                if ch == "]":
                    in_class = False
            elif ch == "[":
                in_class = True
            elif ch == "/":
                break
            j += 1
        else:
            if self.jsx:
                self._emit("/")
                return i + 1
            raise ParseError(self.path, "unterminated regular expression", self._line(start))

        self._emit("/")
        for ch in self.text[i + 1:j]:
            self._mask(ch)
        self._emit("/")
        j += 1
        while j < self.n and self.text[j].isalpha():
            self._emit(self.text[j])
            j += 1
        return j


def scan_source(path: str, text: str, jsx: bool = False) -> ScannedSource:
    """Scan ``text`` into a ``ScannedSource``; raises ParseError on bad lexing."""
    return SourceScanner(path, text, jsx=jsx).scan()
