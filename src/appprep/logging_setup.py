"""logging の初期化。

- 詳細ログ: `<root>/.appprep/logs/appprep.log`
- 人間向けの進捗は Reporter（CLI では rich）が出す

同じプロセスで root を変えて呼ばれたら（テストや --settings 切り替え）、
古いファイルハンドラは閉じて差し替える。同じ root ならレベルだけ更新する。
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

_handler: RotatingFileHandler | None = None


def log_file(root: Path) -> Path:
    return root / ".appprep" / "logs" / "appprep.log"


def setup_logging(*, root: Path, level: str = "INFO") -> Path:
    global _handler

    log_path = log_file(root)
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if _handler is not None:
        if _handler.baseFilename == os.path.abspath(log_path) and _handler in root_logger.handlers:
            return log_path
        root_logger.removeHandler(_handler)
        _handler.close()
        _handler = None

    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_path, maxBytes=2_000_000, backupCount=3, encoding="utf-8")
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
    root_logger.addHandler(handler)
    _handler = handler
    return log_path
