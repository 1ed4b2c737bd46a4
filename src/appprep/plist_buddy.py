"""PlistBuddy ラッパー（macOS の /usr/libexec/PlistBuddy）。

Info.plist の書式を崩さずに値を差し替えるため外部ツールを呼ぶ。
同期実行のみ。失敗は RuntimeError にしてそのまま上げる。
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

PLIST_BUDDY = "/usr/libexec/PlistBuddy"


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


@dataclass
class PlistBuddy:
    path: Path
    binary: str = PLIST_BUDDY

    def run(self, command: str) -> str:
        try:
            proc = subprocess.run(
                [self.binary, "-c", command, str(self.path)],
                text=True,
                capture_output=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise RuntimeError(f"PlistBuddy not found: {self.binary}") from e

        if proc.returncode != 0:
            msg = proc.stderr.strip() or proc.stdout.strip() or f"PlistBuddy failed: {command}"
            raise RuntimeError(msg)
        return proc.stdout.strip()

    def set(self, key: str, value: str) -> None:
        self.run(f"Set :{key} {_quote(value)}")

    def add(self, key: str, type_: str, value: str | None = None) -> None:
        if value is None:
            self.run(f"Add :{key} {type_}")
        else:
            self.run(f"Add :{key} {type_} {_quote(value)}")

    def delete(self, key: str) -> None:
        self.run(f"Delete :{key}")

    def print_value(self, key: str) -> str | None:
        """値を返す。キーが無ければ None。"""
        try:
            return self.run(f"Print :{key}")
        except RuntimeError:
            return None
