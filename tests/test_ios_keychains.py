"""ios_keychains のテスト。"""

from pathlib import Path

from appprep.build_config import BuildConfig
from appprep.ios_keychains import (
    DEFAULT_ENTITLEMENTS,
    find_entitlements_files,
    find_ios_project_dir,
    keychain_groups,
    pbxproj_references,
    setup_ios_keychains,
)


def test_keychain_groups_puts_bundle_id_first() -> None:
    assert keychain_groups("com.a", ["com.b", "com.a", "com.c"]) == ["com.a", "com.b", "com.c"]


def test_setup_creates_entitlements_when_missing(config, ios_root: Path, reporter) -> None:
    ok = setup_ios_keychains(config, ios_dir=ios_root, reporter=reporter)
    assert ok is True

    ent = ios_root / "Example" / "Example.entitlements"
    text = ent.read_text(encoding="utf-8")
    assert "<key>aps-environment</key>" in text
    assert (
        "\t<key>keychain-access-groups</key>\n"
        "\t<array>\n"
        "\t\t<string>$(AppIdentifierPrefix)com.example.app</string>\n"
        "\t\t<string>$(AppIdentifierPrefix)com.example.partner</string>\n"
        "\t\t<string>$(AppIdentifierPrefix)com.example.wallet</string>\n"
        "\t</array>\n"
        "</dict>\n"
    ) in text
    # pbxproj は Example.entitlements を参照している
    assert "already referenced" in reporter.text("success")


def test_setup_updates_existing_entitlements(config, ios_root: Path, reporter) -> None:
    ent = ios_root / "Example" / "Custom.entitlements"
    ent.write_text(
        "<plist version=\"1.0\">\n<dict>\n"
        "\t<key>keychain-access-groups</key>\n"
        "\t<array>\n"
        "\t\t<string>$(AppIdentifierPrefix)com.stale</string>\n"
        "\t</array>\n"
        "</dict>\n</plist>\n",
        encoding="utf-8",
    )

    ok = setup_ios_keychains(config, ios_dir=ios_root, keychains=["com.only"], reporter=reporter)
    assert ok is True

    text = ent.read_text(encoding="utf-8")
    assert "com.stale" not in text
    assert "$(AppIdentifierPrefix)com.example.app" in text
    assert "$(AppIdentifierPrefix)com.only" in text
    assert not (ios_root / "Example" / "Example.entitlements").exists()
    assert "Keychain Sharing" in reporter.text("warn")


def test_setup_autodetects_project_name(ios_root: Path, reporter) -> None:
    cfg = BuildConfig(bundle_id="com.example.app", ios_project_name="Missing")
    ok = setup_ios_keychains(cfg, ios_dir=ios_root, reporter=reporter)
    assert ok is True
    assert (ios_root / "Example" / "Example.entitlements").exists()
    assert "Auto-detected iOS project name: Example" in reporter.text("info")


def test_setup_fails_without_ios_dir(config, tmp_path: Path, reporter) -> None:
    ok = setup_ios_keychains(config, ios_dir=tmp_path / "ios", reporter=reporter)
    assert ok is False
    assert "directory not found" in reporter.text("error")


def test_find_ios_project_dir_prefers_dir_with_xcodeproj(tmp_path: Path) -> None:
    (tmp_path / "Pods" / "X.xcodeproj").mkdir(parents=True)
    (tmp_path / "App" / "App.xcodeproj").mkdir(parents=True)
    assert find_ios_project_dir(tmp_path) == "App"


def test_find_ios_project_dir_none(tmp_path: Path) -> None:
    (tmp_path / "build").mkdir()
    assert find_ios_project_dir(tmp_path) is None


def test_find_entitlements_files_recurses(tmp_path: Path) -> None:
    (tmp_path / "a" / "b").mkdir(parents=True)
    (tmp_path / "a" / "b" / "X.entitlements").write_text(DEFAULT_ENTITLEMENTS, encoding="utf-8")
    (tmp_path / "Info.plist").write_text("", encoding="utf-8")
    assert [p.name for p in find_entitlements_files(tmp_path)] == ["X.entitlements"]


def test_pbxproj_references(tmp_path: Path) -> None:
    p = tmp_path / "project.pbxproj"
    p.write_text("CODE_SIGN_ENTITLEMENTS = App/App.entitlements;", encoding="utf-8")
    assert pbxproj_references(p, "App.entitlements") is True
    assert pbxproj_references(p, "Other.entitlements") is False
    assert pbxproj_references(tmp_path / "missing", "App.entitlements") is False


def test_setup_fails_on_non_utf8_entitlements(config, ios_root: Path, reporter) -> None:
    ent = ios_root / "Example" / "Example.entitlements"
    original = "<plist>\n<dict>\n\t<key>note</key>\n\t<string>café</string>\n</dict>\n</plist>\n".encode("latin-1")
    ent.write_bytes(original)

    ok = setup_ios_keychains(config, ios_dir=ios_root, reporter=reporter)
    assert ok is False
    assert ent.read_bytes() == original
    assert "Cannot update" in reporter.text("error")
