"""
PacmanConf — structured view of /etc/pacman.conf.

The file is held as its raw lines (line endings kept) so that
``render()`` of an unmodified parse reproduces the input byte for
byte.  Sections are derived from the lines on demand: a section
starts at an anchored ``[name]`` header and runs until the next
header or end of file.

Edits are expressed as line-list operations (insert before a
section, append, remove a stanza), never as pattern substitutions
over the text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

# Matched after inline comments are stripped, as pacman does:
# "[repo] # note" is a section, "#[core-testing]" is not.
_HEADER_RE = re.compile(r"^[ \t]*\[([^\[\]\s]+)\][ \t]*$")


def _strip_eol(line: str) -> str:
    return line.rstrip("\r\n")


def _content(line: str) -> str:
    """The line without its end-of-line and anything from ``#`` on."""
    return _strip_eol(line).split("#", 1)[0]


def _is_blank(line: str) -> bool:
    return not line.strip()


def _is_comment(line: str) -> bool:
    return line.lstrip().startswith("#")


@dataclass
class Section:
    """A named section and its directives, with its line span."""

    name: str
    start: int          # index of the header line
    end: int            # exclusive: next header or len(lines)
    directives: list[tuple[str, str]] = field(default_factory=list)

    def get(self, key: str, default: str | None = None) -> str | None:
        """First value for ``key`` (``""`` for bare flags)."""
        for k, v in self.directives:
            if k == key:
                return v
        return default

    def get_all(self, key: str) -> list[str]:
        """All values for a repeatable key such as ``Server``."""
        return [v for k, v in self.directives if k == key]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "directives": [{"key": k, "value": v} for k, v in self.directives],
        }


class PacmanConf:
    """Ordered, editable model of a pacman configuration file."""

    def __init__(self, lines: list[str] | None = None) -> None:
        self.lines: list[str] = list(lines or [])

    @classmethod
    def parse(cls, text: str) -> PacmanConf:
        return cls(text.splitlines(keepends=True))

    def render(self) -> str:
        return "".join(self.lines)

    # ── Queries ─────────────────────────────────────────────────

    @property
    def sections(self) -> list[Section]:
        headers: list[tuple[int, str]] = []
        for idx, line in enumerate(self.lines):
            m = _HEADER_RE.match(_content(line))
            if m:
                headers.append((idx, m.group(1)))

        sections: list[Section] = []
        for pos, (start, name) in enumerate(headers):
            end = headers[pos + 1][0] if pos + 1 < len(headers) else len(self.lines)
            sections.append(
                Section(
                    name=name,
                    start=start,
                    end=end,
                    directives=self._parse_directives(start + 1, end),
                )
            )
        return sections

    def _parse_directives(self, start: int, end: int) -> list[tuple[str, str]]:
        directives: list[tuple[str, str]] = []
        for line in self.lines[start:end]:
            content = _content(line)
            if not content.strip():
                continue
            key, sep, value = content.partition("=")
            directives.append((key.strip(), value.strip() if sep else ""))
        return directives

    @property
    def section_names(self) -> list[str]:
        return [s.name for s in self.sections]

    def find(self, name: str) -> Section | None:
        """First section called ``name`` (exact, case-sensitive)."""
        for section in self.sections:
            if section.name == name:
                return section
        return None

    def has_section(self, name: str) -> bool:
        return self.find(name) is not None

    def count(self, name: str) -> int:
        return sum(1 for s in self.sections if s.name == name)

    # ── Edits ───────────────────────────────────────────────────

    def insert_before(self, anchor: str, text: str) -> None:
        """Insert ``text`` plus a blank separator line right before ``anchor``'s header.

        Raises:
            KeyError: If ``anchor`` is not a section of this file.
        """
        section = self.find(anchor)
        if section is None:
            raise KeyError(anchor)
        new_lines = text.splitlines(keepends=True) + ["\n"]
        self.lines[section.start:section.start] = new_lines

    def append(self, text: str) -> None:
        """Append ``text`` at end of file, separated from prior content by a blank line."""
        if self.lines:
            if not self.lines[-1].endswith(("\n", "\r")):
                self.lines[-1] += "\n"
            if not _is_blank(self.lines[-1]):
                self.lines.append("\n")
        self.lines.extend(text.splitlines(keepends=True))

    def remove_section(self, name: str) -> bool:
        """Remove the whole section ``name``, from its header to the next one.

        A comment block at the tail of the section, directly above the
        next header, is kept: it usually describes that next section
        (stock pacman.conf puts ``#[core-testing]`` there).

        Returns:
            True if a section was removed.
        """
        section = self.find(name)
        if section is None:
            return False

        tail = section.end
        while tail > section.start + 1 and (
            _is_blank(self.lines[tail - 1]) or _is_comment(self.lines[tail - 1])
        ):
            tail -= 1
        stop = section.end
        for idx in range(tail, section.end):
            if _is_comment(self.lines[idx]):
                stop = idx
                break

        del self.lines[section.start:stop]
        return True
