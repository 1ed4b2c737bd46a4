"""settings: ツール自体の設定（パスとログ）。

設定ファイル: `appprep.toml`（デフォルト、無ければ全部デフォルト値）

アプリ側の値（bundle_id 等）は build.config.json に置く。こちらには書かない。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

try:
    import tomllib
except ModuleNotFoundError:  # Python < 3.11
    import tomli as tomllib  # type: ignore[no-redef]


@dataclass
class PathSettings:
    config_file: str = "build.config.json"
    android_dir: str = "android"
    ios_dir: str = "ios"


@dataclass
class LoggingSettings:
    level: str = "INFO"
    root: str = "."  # ログは <root>/.appprep/logs/appprep.log


@dataclass
class ToolSettings:
    paths: PathSettings = field(default_factory=PathSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


@dataclass(frozen=True)
class AndroidPaths:
    manifest: Path
    gradle: Path
    strings: Path
    colors: Path
    colors_night: Path

    @classmethod
    def from_root(cls, android_dir: Path) -> AndroidPaths:
        app = android_dir / "app"
        res = app / "src" / "main" / "res"
        return cls(
            manifest=app / "src" / "main" / "AndroidManifest.xml",
            gradle=app / "build.gradle",
            strings=res / "values" / "strings.xml",
            colors=res / "values" / "colors.xml",
            colors_night=res / "values-night" / "colors.xml",
        )


def load_settings(path: Path | None = None) -> ToolSettings:
    if path is None:
        path = Path("appprep.toml")
    if not path.exists():
        return ToolSettings()

    raw = tomllib.loads(path.read_text(encoding="utf-8"))

    paths = raw.get("paths", {})
    logging_ = raw.get("logging", {})

    return ToolSettings(
        paths=PathSettings(
            config_file=str(paths.get("config_file", "build.config.json")),
            android_dir=str(paths.get("android_dir", "android")),
            ios_dir=str(paths.get("ios_dir", "ios")),
        ),
        logging=LoggingSettings(
            level=str(logging_.get("level", "INFO")),
            root=str(logging_.get("root", ".")),
        ),
    )
