"""Bounded-section editor for XML-like text documents.

AndroidManifest.xml の `<queries>` や entitlements の keychain 配列のように、
「開始タグ行〜終了タグ行」で区切られたセクションの中身だけを差し替える。

方針:
- 木構造にはパースしない。行の並びとして扱い、anchor 行を正規表現で探す
- セクション外の行は1バイトも変えない
- セクション内でも entry_line_matcher に当たらない行（コメント等）は残す
- セクションが無ければ insert_before の anchor 行の直前に作る。
  anchor も無ければ StructureNotFoundError（ファイル末尾に足したりしない）

NOTE:
- 開始タグは最初の1つ、終了タグはその後の最初の1つだけを見る。
  同名セクションの入れ子は AmbiguousSectionError、後続の同名セクションは警告のみ。
- 開始タグ行・終了タグ行に別の要素が同居している場合も AmbiguousSectionError。
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from appprep.reporting import Reporter, ensure_reporter
from appprep.textfile import read_text, write_text_atomic

log = logging.getLogger(__name__)

_LEADING_WS = re.compile(r"^[ \t]*")
_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+$")


class SectionError(RuntimeError):
    """Base class for section editing failures. Nothing is written when raised."""


class StructureNotFoundError(SectionError):
    """The section is absent and so is the anchor it should be created at."""


class AmbiguousSectionError(SectionError):
    """The section exists but in a shape the line matcher cannot edit safely."""


@dataclass(frozen=True)
class SectionSpec:
    """A named section and how its entries are rendered/recognised.

    `key` is for property lists: the section is the value element that
    follows `<key>{key}</key>` instead of the first `<tag>` in the file.
    """

    tag: str
    render_entry: Callable[[str], str]
    entry_line_matcher: Callable[[str], bool]
    insert_before: str
    anchor_occurrence: str = "first"  # first | last
    nest_under_anchor: bool = False
    key: str | None = None
    indent_unit: str = "  "
    blank_after: bool = False

    def __post_init__(self) -> None:
        if self.anchor_occurrence not in {"first", "last"}:
            raise ValueError(f"anchor_occurrence must be 'first' or 'last': {self.anchor_occurrence}")

    @property
    def label(self) -> str:
        return f"<key>{self.key}</key>" if self.key else f"<{self.tag}>"

    def open_re(self) -> re.Pattern[str]:
        return re.compile(rf"<{re.escape(self.tag)}(?:\s[^<>]*)?(?<!/)>")

    def close_re(self) -> re.Pattern[str]:
        return re.compile(rf"</{re.escape(self.tag)}\s*>")

    def self_closing_re(self) -> re.Pattern[str]:
        return re.compile(rf"<{re.escape(self.tag)}(?:\s[^<>]*)?/>")

    def empty_pair_re(self) -> re.Pattern[str]:
        return re.compile(rf"<{re.escape(self.tag)}(?:\s[^<>]*)?(?<!/)>\s*</{re.escape(self.tag)}\s*>")

    def key_re(self) -> re.Pattern[str]:
        return re.compile(rf"<key>\s*{re.escape(self.key or '')}\s*</key>")


@dataclass(frozen=True)
class SectionEdit:
    text: str
    created: bool = False
    normalized: bool = False
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    changed: bool = False


def reconcile_section(
    document: str,
    section: SectionSpec,
    desired_entries: list[str],
    *,
    reporter: Reporter | None = None,
) -> SectionEdit:
    """Return `document` with `section` holding exactly `desired_entries`.

    Entries keep the supplied order (duplicates collapse to the first one).
    Raises StructureNotFoundError / AmbiguousSectionError instead of guessing.
    """

    rep = ensure_reporter(reporter)
    entries = list(dict.fromkeys(desired_entries))
    # 各行は自分の改行コードを持ったまま扱う（CRLF/LF 混在でも崩さない）
    lines = _LINE_RE.findall(document)
    newline = _dominant_newline(document)

    open_idx = _find_open(lines, section)
    if open_idx is None:
        rep.info(f"No {section.label} section found; creating one")
        out, rendered = _create(lines, section, entries, newline)
        text = "".join(out)
        return SectionEdit(
            text=text,
            created=True,
            added=[r.strip() for r in rendered],
            changed=text != document,
        )

    normalized = False
    if _is_empty_form(lines[open_idx], section):
        rep.info(f"Expanding empty {section.label} section")
        lines = _expand_empty(lines, open_idx, section, newline)
        normalized = True

    close_idx = _find_close(lines, open_idx, section)
    _check_repeated(lines, close_idx, section, rep)
    log.debug("section %s spans lines %d-%d", section.label, open_idx + 1, close_idx + 1)

    indent = _leading_ws(lines[open_idx])
    entry_indent = indent + _indent_unit(indent, section.indent_unit)

    kept: list[str] = []
    previous: list[str] = []
    for line in lines[open_idx + 1 : close_idx]:
        if section.entry_line_matcher(line):
            previous.append(line.strip())
        else:
            kept.append(line)

    rendered = [entry_indent + section.render_entry(e) + newline for e in entries]
    wanted = [r.strip() for r in rendered]

    out = lines[: open_idx + 1] + rendered + kept + lines[close_idx:]
    text = "".join(out)

    removed = [p for p in previous if p not in wanted]
    added = [w for w in wanted if w not in previous]
    for r in removed:
        rep.warn(f"Removing entry: {r}")
    for a in added:
        rep.info(f"Adding entry: {a}")

    return SectionEdit(
        text=text,
        normalized=normalized,
        added=added,
        removed=removed,
        changed=text != document,
    )


def reconcile_file(
    path: Path,
    section: SectionSpec,
    desired_entries: list[str],
    *,
    reporter: Reporter | None = None,
) -> SectionEdit:
    """Reconcile a section in the file at `path` and overwrite it once.

    The edit is computed fully in memory; on any error the file is untouched.
    """

    document = read_text(path)
    edit = reconcile_section(document, section, desired_entries, reporter=reporter)
    if edit.changed:
        write_text_atomic(path, edit.text)
        log.info("updated %s in %s", section.label, path)
    else:
        log.info("%s in %s already up to date", section.label, path)
    return edit


def _leading_ws(line: str) -> str:
    m = _LEADING_WS.match(line)
    return m.group(0) if m else ""


def _line_ending(line: str) -> str:
    return line[len(line.rstrip("\r\n")) :]


def _dominant_newline(document: str) -> str:
    """新しく足す行の改行コード。CRLF が多数派なら CRLF。"""
    crlf = document.count("\r\n")
    return "\r\n" if crlf > document.count("\n") - crlf else "\n"


def _indent_unit(indent: str, default: str) -> str:
    if indent.startswith("\t"):
        return "\t"
    if indent.startswith(" ") and "\t" in default:
        return "  "
    return default


def _first_index(lines: list[str], pattern: re.Pattern[str], start: int = 0) -> int | None:
    for i in range(start, len(lines)):
        if pattern.search(lines[i]):
            return i
    return None


def _starts_section(line: str, section: SectionSpec) -> bool:
    return bool(section.open_re().search(line) or section.self_closing_re().search(line))


def _find_open(lines: list[str], section: SectionSpec) -> int | None:
    if section.key is None:
        for i, line in enumerate(lines):
            if _starts_section(line, section):
                return i
        return None

    key_re = section.key_re()
    key_idx = _first_index(lines, key_re)
    if key_idx is None:
        return None

    key_line = lines[key_idx]
    tail = key_line[key_re.search(key_line).end() :]  # type: ignore[union-attr]
    if tail.strip():
        raise AmbiguousSectionError(f"{section.label} shares line {key_idx + 1} with its value")

    for i in range(key_idx + 1, len(lines)):
        if not lines[i].strip():
            continue
        if _starts_section(lines[i], section):
            return i
        raise AmbiguousSectionError(
            f"{section.label} at line {key_idx + 1} is not followed by <{section.tag}>"
        )
    raise AmbiguousSectionError(f"{section.label} at line {key_idx + 1} has no value")


def _is_empty_form(line: str, section: SectionSpec) -> bool:
    return bool(section.self_closing_re().search(line) or section.empty_pair_re().search(line))


def _expand_empty(lines: list[str], idx: int, section: SectionSpec, newline: str) -> list[str]:
    line = lines[idx]
    body = line.strip()
    m = section.self_closing_re().fullmatch(body) or section.empty_pair_re().fullmatch(body)
    if m is None:
        raise AmbiguousSectionError(
            f"empty {section.label} shares line {idx + 1} with other markup"
        )
    indent = _leading_ws(line)
    opener = section.open_re().match(body)
    if opener is not None:
        open_tag = opener.group(0)
    else:
        open_tag = re.sub(r"\s*/>$", ">", body)
    ending = _line_ending(line)
    expanded = [indent + open_tag + (ending or newline), indent + f"</{section.tag}>" + ending]
    return lines[:idx] + expanded + lines[idx + 1 :]


def _find_close(lines: list[str], open_idx: int, section: SectionSpec) -> int:
    open_line = lines[open_idx]
    opener = section.open_re().search(open_line)
    if opener is not None and open_line[opener.end() :].strip():
        if section.close_re().search(open_line, opener.end()):
            raise AmbiguousSectionError(
                f"{section.label} opens and closes on line {open_idx + 1} with content in between"
            )
        raise AmbiguousSectionError(
            f"{section.label} at line {open_idx + 1} has content after the opening tag"
        )

    close_re = section.close_re()
    for i in range(open_idx + 1, len(lines)):
        closer = close_re.search(lines[i])
        if closer is not None:
            if lines[i][: closer.start()].strip():
                raise AmbiguousSectionError(
                    f"{section.label} closes on line {i + 1} after other content on the same line"
                )
            return i
        if _starts_section(lines[i], section):
            raise AmbiguousSectionError(
                f"nested <{section.tag}> at line {i + 1} inside {section.label}"
            )
    raise AmbiguousSectionError(f"{section.label} at line {open_idx + 1} is never closed")


def _check_repeated(lines: list[str], close_idx: int, section: SectionSpec, rep: Reporter) -> None:
    pattern = section.key_re() if section.key else None
    for i in range(close_idx + 1, len(lines)):
        hit = pattern.search(lines[i]) if pattern else _starts_section(lines[i], section)
        if hit:
            rep.warn(f"Another {section.label} at line {i + 1} is left unchanged; only the first is edited")
            return


def _create(
    lines: list[str], section: SectionSpec, entries: list[str], newline: str
) -> tuple[list[str], list[str]]:
    anchor_re = re.compile(section.insert_before)
    hits = [i for i, line in enumerate(lines) if anchor_re.search(line)]
    if not hits:
        raise StructureNotFoundError(
            f"cannot create {section.label}: no line matches {section.insert_before!r}"
        )
    at = hits[0] if section.anchor_occurrence == "first" else hits[-1]

    base = _leading_ws(lines[at])
    unit = _indent_unit(base, section.indent_unit)
    if section.nest_under_anchor:
        base += unit

    block: list[str] = []
    if section.key:
        block.append(f"{base}<key>{section.key}</key>{newline}")
    block.append(f"{base}<{section.tag}>{newline}")
    rendered = [base + unit + section.render_entry(e) + newline for e in entries]
    block.extend(rendered)
    block.append(f"{base}</{section.tag}>{newline}")
    if section.blank_after:
        block.append(newline)

    log.debug("creating %s before line %d", section.label, at + 1)
    return lines[:at] + block + lines[at:], rendered
