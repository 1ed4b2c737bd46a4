"""Android 側のブランディング反映。

- app/build.gradle: applicationId / versionName / versionCode
- res/values/strings.xml: app_name
- res/values(-night)/colors.xml: primary_color / theme_color

すべて正規表現置換。パターンが見つからないときは警告だけ出して続ける。
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from appprep.build_config import BuildConfig
from appprep.reporting import Reporter, ensure_reporter
from appprep.settings import AndroidPaths
from appprep.textfile import read_text, write_text_atomic

log = logging.getLogger(__name__)

_APPLICATION_ID_RE = re.compile(r'applicationId "[^"]*"')
_VERSION_NAME_RE = re.compile(r'versionName "[^"]*"')
_VERSION_CODE_RE = re.compile(r"versionCode (\d+)")
_APP_NAME_RE = re.compile(r'<string name="app_name">.*</string>')


def _color_re(name: str) -> re.Pattern[str]:
    return re.compile(rf'<color name="{re.escape(name)}">.*</color>')


def android_string(value: str) -> str:
    """strings.xml に入れられる形にエスケープする。"""
    return (
        value.replace("\\", "\\\\")
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace("'", "\\'")
        .replace('"', '\\"')
    )


@dataclass
class GradleUpdate:
    text: str
    version_code: int | None = None
    previous_version_code: int | None = None
    missing: list[str] = field(default_factory=list)


def update_gradle(text: str, *, app_id: str, version: str, auto_version_code: bool) -> GradleUpdate:
    missing: list[str] = []

    text, n = _APPLICATION_ID_RE.subn(lambda _m: f'applicationId "{app_id}"', text, count=1)
    if n == 0:
        missing.append("applicationId")
    text, n = _VERSION_NAME_RE.subn(lambda _m: f'versionName "{version}"', text, count=1)
    if n == 0:
        missing.append("versionName")

    m = _VERSION_CODE_RE.search(text)
    current = int(m.group(1)) if m else None
    if m is None:
        missing.append("versionCode")

    new_code = current
    if auto_version_code and current is not None:
        new_code = current + 1
        text = _VERSION_CODE_RE.sub(f"versionCode {new_code}", text, count=1)

    return GradleUpdate(text=text, version_code=new_code, previous_version_code=current, missing=missing)


def update_strings(text: str, app_name: str) -> tuple[str, bool]:
    value = android_string(app_name)
    updated, n = _APP_NAME_RE.subn(lambda _m: f'<string name="app_name">{value}</string>', text, count=1)
    return updated, n > 0


def update_colors(text: str, colors: dict[str, str]) -> tuple[str, list[str]]:
    missing: list[str] = []
    for name, value in colors.items():
        text, n = _color_re(name).subn(
            lambda _m, name=name, value=value: f'<color name="{name}">{value}</color>',
            text,
            count=1,
        )
        if n == 0:
            missing.append(name)
    return text, missing


def update_android_branding(
    config: BuildConfig,
    *,
    paths: AndroidPaths,
    auto_version_code: bool = False,
    reporter: Reporter | None = None,
) -> bool:
    """build.gradle / strings.xml / colors.xml を config に合わせる。"""

    rep = ensure_reporter(reporter)
    rep.info("Updating Android configuration...")

    for required in (paths.gradle, paths.strings, paths.colors):
        if not required.exists():
            rep.error(f"{required} not found!")
            return False

    colors = {"primary_color": config.primary_color, "theme_color": config.theme_color}

    try:
        # 先に全部計算してから書く
        gradle = update_gradle(
            read_text(paths.gradle),
            app_id=config.android_app_id,
            version=config.version,
            auto_version_code=auto_version_code,
        )
        strings, found_app_name = update_strings(read_text(paths.strings), config.app_name)
        colors_text, missing_colors = update_colors(read_text(paths.colors), colors)
        night = None
        if paths.colors_night.exists():
            night, _ = update_colors(read_text(paths.colors_night), colors)

        for name in gradle.missing:
            rep.warn(f"{name} not found in {paths.gradle}")
        if not found_app_name:
            rep.warn(f"app_name not found in {paths.strings}")
        for name in missing_colors:
            rep.warn(f"{name} not found in {paths.colors}")

        write_text_atomic(paths.gradle, gradle.text)
        write_text_atomic(paths.strings, strings)
        write_text_atomic(paths.colors, colors_text)
        if night is not None:
            write_text_atomic(paths.colors_night, night)
    except (OSError, UnicodeDecodeError) as e:
        rep.error(f"Cannot update Android project files: {e}")
        return False

    if auto_version_code and gradle.version_code is not None:
        rep.info(
            f"Auto-incrementing version code from {gradle.previous_version_code} to {gradle.version_code}"
        )
        rep.success(f"Android version updated to {config.version} (code {gradle.version_code})")
    else:
        rep.info(f"Keeping current version code: {gradle.previous_version_code or 0}")
        rep.success(f"Android version updated to {config.version} (code unchanged)")

    rep.success("Android configuration updated successfully.")
    return True
