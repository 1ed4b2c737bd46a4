"""build.config.json の中身のバリデーション。

型は load 時に見ているので、ここでは値の形を見る。
デフォルト値のまま / 未知のキーは warnings、壊れた値は errors。
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from appprep.build_config import BuildConfig

PLATFORMS = ("ios", "android", "all")

_BUNDLE_ID_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*(\.[A-Za-z0-9_-]+)+$")
_TEAM_ID_RE = re.compile(r"^[A-Z0-9]{10}$")
_COLOR_RE = re.compile(r"^#(?:[0-9A-Fa-f]{6}|[0-9A-Fa-f]{8})$")
_VERSION_RE = re.compile(r"^\d+(\.\d+){0,2}$")


@dataclass
class ValidationResult:
    ok: bool
    warnings: list[str]
    errors: list[str]


def validate_config(config: BuildConfig, *, strict: bool = False) -> ValidationResult:
    """設定値を検証して問題点を返す。

    strict=True のときはデフォルト値のままの項目も errors にする（CI 用）。
    """
    errors: list[str] = []
    warnings: list[str] = []
    defaults = BuildConfig()

    if config.platform not in PLATFORMS:
        errors.append(f"platform は {' / '.join(PLATFORMS)} のいずれかです: {config.platform}")

    if not _BUNDLE_ID_RE.match(config.bundle_id):
        errors.append(f"bundle_id の形式が不正です: {config.bundle_id}")

    if not _TEAM_ID_RE.match(config.team_id):
        warnings.append(f"team_id は通常10桁の英大文字/数字です: {config.team_id}")

    if not _VERSION_RE.match(config.version):
        errors.append(f"version は 1.2.3 形式で指定してください: {config.version}")

    for key in ("primary_color", "theme_color"):
        value = getattr(config, key)
        if not _COLOR_RE.match(value):
            errors.append(f"{key} は #RRGGBB / #AARRGGBB 形式で指定してください: {value}")

    for kc in config.keychains:
        if not _BUNDLE_ID_RE.match(kc):
            errors.append(f"keychains の値が package/bundle id の形式ではありません: {kc}")
    if len(set(config.keychains)) != len(config.keychains):
        warnings.append("keychains に重複があります（1つにまとめて反映します）。")

    for key in ("bundle_id", "team_id", "ios_project_name"):
        if getattr(config, key) == getattr(defaults, key):
            msg = f"{key} がデフォルト値のままです: {getattr(config, key)}"
            if strict:
                errors.append(msg)
            else:
                warnings.append(msg)

    for key in config.unknown_keys:
        warnings.append(f"未知のキーは無視されます: {key}")

    return ValidationResult(
        ok=len(errors) == 0,
        warnings=warnings,
        errors=errors,
    )
