"""iOS プロジェクト側の設定反映。

- Info.plist: 表示名 / bundle id / バージョン / ビルド番号（PlistBuddy 経由）
- project.pbxproj: DEVELOPMENT_TEAM
- entitlements: aps-environment を production に
- Info.plist: CFBundleURLTypes を bundle_urls から作り直す
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable

from appprep.build_config import BuildConfig
from appprep.ios_keychains import find_entitlements_files
from appprep.plist_buddy import PlistBuddy
from appprep.reporting import Reporter, ensure_reporter
from appprep.sections import StructureNotFoundError
from appprep.textfile import read_text, write_text_atomic

log = logging.getLogger(__name__)

PlistFactory = Callable[[Path], PlistBuddy]

_TEAM_RE = re.compile(r'DEVELOPMENT_TEAM = (?:"[^"\n]*"|[^;\n]*);')
_BUILD_SETTINGS_RE = re.compile(r"buildSettings = \{")
_APS_KEY = "<key>aps-environment</key>"
_APS_DEV_RE = re.compile(r"(<key>aps-environment</key>\s*<string>)development(</string>)")


def update_development_team(text: str, team_id: str) -> str:
    """DEVELOPMENT_TEAM を全 buildSettings で team_id にする。"""
    if "DEVELOPMENT_TEAM" in text:
        return _TEAM_RE.sub(lambda _m: f"DEVELOPMENT_TEAM = {team_id};", text)
    return _BUILD_SETTINGS_RE.sub(
        lambda m: f"{m.group(0)}\n\t\t\t\tDEVELOPMENT_TEAM = {team_id};",
        text,
    )


def ensure_aps_environment(text: str) -> str:
    if _APS_KEY in text:
        return _APS_DEV_RE.sub(r"\1production\2", text)

    newline = "\r\n" if "\r\n" in text else "\n"
    lines = text.split(newline)
    closes = [i for i, line in enumerate(lines) if "</dict>" in line]
    if not closes:
        raise StructureNotFoundError("no </dict> in entitlements file")
    at = closes[-1]
    indent = re.match(r"^[ \t]*", lines[at]).group(0) + "\t"  # type: ignore[union-attr]
    block = [f"{indent}{_APS_KEY}", f"{indent}<string>production</string>"]
    return newline.join(lines[:at] + block + lines[at:])


def next_build_number(current: str | None) -> str:
    try:
        return str(int((current or "").strip()) + 1)
    except ValueError:
        return "1"


def update_info_plist(
    config: BuildConfig,
    plist: PlistBuddy,
    *,
    auto_version_code: bool,
    reporter: Reporter | None = None,
) -> None:
    rep = ensure_reporter(reporter)
    plist.set("CFBundleDisplayName", config.display_name)
    plist.set("CFBundleIdentifier", config.bundle_id)
    plist.set("CFBundleShortVersionString", config.version)

    current = plist.print_value("CFBundleVersion") or "0"
    if auto_version_code:
        new_build = next_build_number(current)
        rep.info(f"Auto-incrementing iOS build number from {current} to {new_build}")
        plist.set("CFBundleVersion", new_build)
        rep.success(f"iOS version updated to {config.version} (build {new_build})")
    else:
        rep.info(f"Keeping current iOS build number: {current}")
        rep.success(f"iOS version updated to {config.version} (build unchanged)")


def update_entitlements_aps(project_dir: Path, reporter: Reporter | None = None) -> bool:
    """最初の entitlements の aps-environment を production にする。無ければ False。"""
    rep = ensure_reporter(reporter)
    found = find_entitlements_files(project_dir)
    if not found:
        rep.warn("No entitlements file found. Push notifications might not work properly.")
        return False

    path = found[0]
    text = read_text(path)
    updated = ensure_aps_environment(text)
    if updated != text:
        write_text_atomic(path, updated)
        rep.info(f"Set aps-environment to production in {path.name}")
    return True


def update_ios_project(
    config: BuildConfig,
    *,
    ios_dir: Path = Path("ios"),
    auto_version_code: bool = False,
    plist_factory: PlistFactory = PlistBuddy,
    reporter: Reporter | None = None,
) -> bool:
    """Info.plist / project.pbxproj / entitlements を config に合わせる。"""

    rep = ensure_reporter(reporter)
    rep.info("Updating iOS configuration...")

    project_dir = ios_dir / config.ios_project_name
    info_plist = project_dir / "Info.plist"
    pbxproj = ios_dir / f"{config.ios_project_name}.xcodeproj" / "project.pbxproj"

    for required in (info_plist, pbxproj):
        if not required.exists():
            rep.error(f"{required} not found!")
            return False

    try:
        update_info_plist(
            config,
            plist_factory(info_plist),
            auto_version_code=auto_version_code,
            reporter=rep,
        )
    except RuntimeError as e:
        rep.error(f"Cannot update {info_plist}: {e}")
        return False

    try:
        text = read_text(pbxproj)
        updated = update_development_team(text, config.team_id)
        if updated != text:
            write_text_atomic(pbxproj, updated)
        rep.info(f"DEVELOPMENT_TEAM set to {config.team_id}")

        update_entitlements_aps(project_dir, reporter=rep)
    except StructureNotFoundError as e:
        rep.error(f"Cannot update entitlements: {e}")
        return False
    except (OSError, UnicodeDecodeError) as e:
        rep.error(f"Cannot update iOS project files: {e}")
        return False

    rep.success("iOS configuration updated successfully.")
    return True


def update_bundle_urls(
    config: BuildConfig,
    *,
    ios_dir: Path = Path("ios"),
    plist_factory: PlistFactory = PlistBuddy,
    reporter: Reporter | None = None,
) -> bool:
    """CFBundleURLTypes を config.bundle_urls で作り直す。"""

    rep = ensure_reporter(reporter)
    if not config.bundle_urls:
        rep.info("No bundle_urls configured; skipping CFBundleURLTypes")
        return True

    info_plist = ios_dir / config.ios_project_name / "Info.plist"
    if not info_plist.exists():
        rep.error(f"Info.plist not found at {info_plist}")
        return False

    plist = plist_factory(info_plist)
    rep.info(f"Found {len(config.bundle_urls)} bundle URLs: {', '.join(config.bundle_urls)}")

    try:
        if plist.print_value("CFBundleURLTypes") is not None:
            plist.delete("CFBundleURLTypes")
            rep.warn("Removed existing CFBundleURLTypes")

        plist.add("CFBundleURLTypes", "array")
        for i, url in enumerate(config.bundle_urls):
            rep.info(f"Adding bundle URL: {url} (index: {i})")
            plist.add(f"CFBundleURLTypes:{i}", "dict")
            plist.add(f"CFBundleURLTypes:{i}:CFBundleTypeRole", "string", "Editor")
            plist.add(f"CFBundleURLTypes:{i}:CFBundleURLSchemes", "array")
            plist.add(f"CFBundleURLTypes:{i}:CFBundleURLSchemes:0", "string", url)
    except RuntimeError as e:
        rep.error(f"Cannot update bundle URLs in {info_plist}: {e}")
        return False

    rep.success("Info.plist updated with bundle URLs")
    return True
