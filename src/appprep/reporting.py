"""進捗/診断メッセージの出力先。

editor や各セットアップ処理は print しない。
呼び出し側が Reporter を渡し、CLI なら rich、テストなら記録用、
何も渡さなければ logging に流す。
"""

from __future__ import annotations

import logging
from typing import Protocol


class Reporter(Protocol):
    def info(self, message: str) -> None: ...
    def warn(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...
    def success(self, message: str) -> None: ...


class LoggingReporter:
    """Reporter that only writes to the `logging` tree."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or logging.getLogger("appprep")

    def info(self, message: str) -> None:
        self._log.info(message)

    def warn(self, message: str) -> None:
        self._log.warning(message)

    def error(self, message: str) -> None:
        self._log.error(message)

    def success(self, message: str) -> None:
        self._log.info(message)


def ensure_reporter(reporter: Reporter | None) -> Reporter:
    return reporter if reporter is not None else LoggingReporter()
