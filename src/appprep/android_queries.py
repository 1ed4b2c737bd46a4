"""AndroidManifest.xml の `<queries>` に package 宣言を揃える。

build.config.json の `keychains` を、他アプリとの連携先 package として扱う。
既存の `<package android:name=...>` 行は入れ替え、それ以外（`<intent>` 等）は残す。
"""

from __future__ import annotations

import logging
from pathlib import Path

from appprep.build_config import BuildConfig
from appprep.reporting import Reporter, ensure_reporter
from appprep.sections import SectionError, SectionSpec, reconcile_file

log = logging.getLogger(__name__)

DEFAULT_MANIFEST_PATH = Path("android/app/src/main/AndroidManifest.xml")


def _render_package(name: str) -> str:
    return f'<package android:name="{name}" />'


def _is_package_line(line: str) -> bool:
    return "<package" in line and "android:name" in line


QUERIES_SECTION = SectionSpec(
    tag="queries",
    render_entry=_render_package,
    entry_line_matcher=_is_package_line,
    insert_before=r"<application\b",
    blank_after=True,
)


def setup_android_queries(
    config: BuildConfig,
    *,
    manifest_path: Path = DEFAULT_MANIFEST_PATH,
    packages: list[str] | None = None,
    reporter: Reporter | None = None,
) -> bool:
    """`<queries>` を packages（省略時は config.keychains）で更新する。"""

    rep = ensure_reporter(reporter)
    rep.info("Starting Android manifest package queries setup")

    pkgs = list(packages) if packages else list(config.keychains)
    if not pkgs:
        rep.error("No packages specified. Provide them in the config file under 'keychains' or as options.")
        return False

    if not manifest_path.exists():
        rep.error(f"AndroidManifest.xml not found at {manifest_path}")
        return False

    try:
        edit = reconcile_file(manifest_path, QUERIES_SECTION, pkgs, reporter=rep)
    except SectionError as e:
        rep.error(f"Cannot update <queries> in {manifest_path}: {e}")
        return False
    except (OSError, UnicodeDecodeError) as e:
        rep.error(f"Cannot update {manifest_path}: {e}")
        return False

    if edit.created:
        rep.success("Added new <queries> section with specified packages")
    elif edit.changed:
        rep.success("Updated queries section with new packages")
    else:
        rep.success("Queries section already up to date")
    for pkg in pkgs:
        rep.info(f"  - {pkg}")
    return True
