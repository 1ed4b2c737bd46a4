"""build.config.json のロード。

受け付けるキーはすべて BuildConfig のフィールドとして列挙する。
知らないキーはマージせず unknown_keys に残して警告に回す。

```json
{
  "bundle_id": "com.example.app",
  "team_id": "ABCDE12345",
  "display_name": "Example",
  "platform": "all",
  "ios_project_name": "Example",
  "version": "1.2.0",
  "keychains": ["com.example.other"],
  "bundle_urls": ["example"]
}
```
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path

DEFAULT_CONFIG_FILE = Path("build.config.json")


class ConfigError(ValueError):
    pass


@dataclass
class BuildConfig:
    bundle_id: str = "com.myapp.default"
    team_id: str = "ABCDEF1234"
    display_name: str = "My App"
    app_icon: str = ""
    logo_icon: str = ""
    primary_color: str = "#FFFFFF"
    theme_color: str = "#000000"
    platform: str = "all"  # ios | android | all
    ios_project_name: str = "MyApp"
    version: str = "1.0.0"
    keychains: list[str] = field(default_factory=list)
    bundle_urls: list[str] = field(default_factory=list)

    unknown_keys: list[str] = field(default_factory=list)

    @property
    def app_name(self) -> str:
        return self.display_name

    @property
    def android_app_id(self) -> str:
        return self.bundle_id

    def targets(self, platform: str) -> bool:
        return self.platform in {platform, "all"}


_LIST_KEYS = frozenset({"keychains", "bundle_urls"})
_KNOWN_KEYS = frozenset(f.name for f in fields(BuildConfig) if f.name != "unknown_keys")


def parse_build_config(raw: object) -> BuildConfig:
    if not isinstance(raw, dict):
        raise ConfigError("config must be a JSON object")

    values: dict[str, object] = {}
    for key in sorted(_KNOWN_KEYS):
        v = raw.get(key)
        # null / "" はデフォルト扱い
        if v is None or v == "":
            continue
        if key in _LIST_KEYS:
            if not isinstance(v, list) or not all(isinstance(x, str) for x in v):
                raise ConfigError(f"`{key}` must be a list of strings")
            values[key] = [x.strip() for x in v if x.strip()]
        elif isinstance(v, str):
            if v.strip():
                values[key] = v.strip()
        elif key == "version" and isinstance(v, (int, float)) and not isinstance(v, bool):
            values[key] = str(v)
        else:
            raise ConfigError(f"`{key}` must be a string")

    unknown = sorted(str(k) for k in raw if k not in _KNOWN_KEYS)
    return BuildConfig(**values, unknown_keys=unknown)  # type: ignore[arg-type]


def load_build_config(path: Path | None = None) -> BuildConfig:
    """build.config.json を読む。無い/壊れている場合は ConfigError。"""
    if path is None:
        path = DEFAULT_CONFIG_FILE
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid JSON in {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise ConfigError(f"{path} is not UTF-8: {e}") from e
    return parse_build_config(raw)
