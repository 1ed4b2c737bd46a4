"""iOS entitlements の keychain-access-groups を揃える。

- ios/<project>/ 以下の `.entitlements` を探す（無ければ作る）
- `<key>keychain-access-groups</key>` の `<array>` を
  メイン bundle id + keychains で置き換える
- project.pbxproj が entitlements を参照しているかを確認する（参照は追加しない）
"""

from __future__ import annotations

import logging
from pathlib import Path

from appprep.build_config import BuildConfig
from appprep.reporting import Reporter, ensure_reporter
from appprep.sections import SectionError, SectionSpec, reconcile_file

log = logging.getLogger(__name__)

APP_IDENTIFIER_PREFIX = "$(AppIdentifierPrefix)"

_SKIP_DIRS = {"Pods", "build", "Frameworks", "node_modules"}

DEFAULT_ENTITLEMENTS = """<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" "http://www.apple.com/DTDs/PropertyList-1.0.dtd">
<plist version="1.0">
<dict>
\t<key>aps-environment</key>
\t<string>production</string>
</dict>
</plist>
"""


def _render_group(group: str) -> str:
    return f"<string>{APP_IDENTIFIER_PREFIX}{group}</string>"


def _is_string_line(line: str) -> bool:
    return "<string>" in line and "</string>" in line


KEYCHAIN_SECTION = SectionSpec(
    tag="array",
    key="keychain-access-groups",
    render_entry=_render_group,
    entry_line_matcher=_is_string_line,
    insert_before=r"</dict>",
    anchor_occurrence="last",
    nest_under_anchor=True,
    indent_unit="\t",
)


def keychain_groups(bundle_id: str, keychains: list[str]) -> list[str]:
    """メイン bundle id を先頭に、重複を除いた並び。"""
    return list(dict.fromkeys([bundle_id, *keychains]))


def find_ios_project_dir(ios_dir: Path) -> str | None:
    """ios/ 配下から Xcode プロジェクト名を推定する。"""
    try:
        entries = sorted(ios_dir.iterdir())
    except OSError as e:
        log.warning("cannot scan %s: %s", ios_dir, e)
        return None

    candidates = [
        p for p in entries
        if p.is_dir() and not p.name.startswith(".") and p.name not in _SKIP_DIRS
    ]
    for d in candidates:
        if d.suffix == ".xcodeproj":
            continue
        try:
            if any(child.name.endswith(".xcodeproj") for child in d.iterdir()):
                return d.name
        except OSError:
            continue

    for p in entries:
        if p.is_dir() and p.name.endswith(".xcodeproj"):
            return p.name[: -len(".xcodeproj")]
    return None


def find_entitlements_files(project_dir: Path) -> list[Path]:
    return sorted(p for p in project_dir.rglob("*.entitlements") if p.is_file())


def create_entitlements_file(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_ENTITLEMENTS, encoding="utf-8")


def pbxproj_references(pbxproj_path: Path, file_name: str) -> bool:
    if not pbxproj_path.exists():
        return False
    return file_name.encode("utf-8") in pbxproj_path.read_bytes()


def resolve_project_dir(ios_dir: Path, project_name: str, rep: Reporter) -> tuple[str, Path] | None:
    project_dir = ios_dir / project_name
    if project_dir.is_dir():
        return project_name, project_dir

    rep.warn(f"iOS project directory not found at {project_dir}")
    detected = find_ios_project_dir(ios_dir)
    if not detected:
        rep.error("No iOS project directories found. Cannot continue.")
        return None
    project_dir = ios_dir / detected
    if not project_dir.is_dir():
        rep.error(f"iOS project directory still not found at {project_dir}. Cannot continue.")
        return None
    rep.info(f"Auto-detected iOS project name: {detected}")
    return detected, project_dir


def setup_ios_keychains(
    config: BuildConfig,
    *,
    ios_dir: Path = Path("ios"),
    keychains: list[str] | None = None,
    reporter: Reporter | None = None,
) -> bool:
    """entitlements の keychain-access-groups を更新する。"""

    rep = ensure_reporter(reporter)
    rep.info("Starting keychain setup for iOS")

    groups = keychain_groups(config.bundle_id, list(keychains) if keychains else config.keychains)
    rep.info(f"Main Bundle ID: {config.bundle_id}")
    rep.info(f"Keychains: {', '.join(groups[1:]) or '(none)'}")

    if not ios_dir.is_dir():
        rep.error(f"'{ios_dir}' directory not found. Run from the React Native project root.")
        return False

    resolved = resolve_project_dir(ios_dir, config.ios_project_name, rep)
    if resolved is None:
        return False
    project_name, project_dir = resolved

    found = find_entitlements_files(project_dir)
    if found:
        entitlements = found[0]
        rep.info(f"Found existing entitlements file: {entitlements}")
        if len(found) > 1:
            rep.warn(f"{len(found)} entitlements files found; only {entitlements.name} is updated")
    else:
        entitlements = project_dir / f"{project_name}.entitlements"
        rep.info(f"Creating new entitlements file: {entitlements}")
        try:
            create_entitlements_file(entitlements)
        except OSError as e:
            rep.error(f"Failed to create entitlements file: {e}")
            return False

    try:
        edit = reconcile_file(entitlements, KEYCHAIN_SECTION, groups, reporter=rep)
    except SectionError as e:
        rep.error(f"Cannot update keychain-access-groups in {entitlements}: {e}")
        return False
    except (OSError, UnicodeDecodeError) as e:
        rep.error(f"Cannot update {entitlements}: {e}")
        return False

    if edit.created:
        rep.success("Added new keychain access groups")
    else:
        rep.success("Updated existing keychain access groups")

    pbxproj = ios_dir / f"{project_name}.xcodeproj" / "project.pbxproj"
    if not pbxproj.exists():
        rep.warn(f"Xcode project file not found: {pbxproj}")
        rep.warn("Make sure to configure the entitlements file in Xcode manually")
    elif pbxproj_references(pbxproj, entitlements.name):
        rep.success("Entitlements file is already referenced in the Xcode project")
    else:
        rep.warn("Entitlements file not referenced in project. You need to manually add it in Xcode.")
        rep.warn("1. Open Xcode project")
        rep.warn("2. Select your target")
        rep.warn("3. Go to 'Signing & Capabilities'")
        rep.warn("4. Add the 'Keychain Sharing' capability")

    rep.success("Keychain setup complete")
    return True
