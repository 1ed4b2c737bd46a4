"""textfile のテスト。"""

import stat
from pathlib import Path

from appprep.textfile import read_text, write_text_atomic


def test_read_keeps_crlf(tmp_path: Path) -> None:
    p = tmp_path / "a.xml"
    p.write_bytes(b"<a>\r\n</a>\r\n")
    assert read_text(p) == "<a>\r\n</a>\r\n"


def test_write_text_atomic_keeps_mode(tmp_path: Path) -> None:
    p = tmp_path / "a.xml"
    p.write_text("old", encoding="utf-8")
    p.chmod(0o600)

    write_text_atomic(p, "new\r\n")

    assert p.read_bytes() == b"new\r\n"
    assert stat.S_IMODE(p.stat().st_mode) == 0o600
    assert [x.name for x in tmp_path.iterdir()] == ["a.xml"]
