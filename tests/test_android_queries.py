"""android_queries のテスト。"""

from pathlib import Path

from appprep.android_queries import setup_android_queries
from appprep.build_config import BuildConfig


def test_setup_adds_queries_from_keychains(config, manifest_path: Path, reporter) -> None:
    ok = setup_android_queries(config, manifest_path=manifest_path, reporter=reporter)
    assert ok is True

    text = manifest_path.read_text(encoding="utf-8")
    assert (
        "    <queries>\n"
        '      <package android:name="com.example.partner" />\n'
        '      <package android:name="com.example.wallet" />\n'
        "    </queries>\n"
        "\n"
        "    <application\n"
    ) in text
    assert "Added new <queries> section" in reporter.text("success")


def test_explicit_packages_override_config(config, manifest_path: Path, reporter) -> None:
    ok = setup_android_queries(
        config, manifest_path=manifest_path, packages=["org.other"], reporter=reporter
    )
    assert ok is True
    text = manifest_path.read_text(encoding="utf-8")
    assert 'android:name="org.other"' in text
    assert "com.example.partner" not in text


def test_rerun_replaces_previous_packages(config, manifest_path: Path, reporter) -> None:
    setup_android_queries(config, manifest_path=manifest_path, reporter=reporter)
    setup_android_queries(
        config, manifest_path=manifest_path, packages=["com.example.wallet"], reporter=reporter
    )

    text = manifest_path.read_text(encoding="utf-8")
    assert text.count("<queries>") == 1
    assert "com.example.partner" not in text
    assert "Removing entry" in reporter.text("warn")


def test_no_packages_fails(manifest_path: Path, reporter) -> None:
    before = manifest_path.read_text(encoding="utf-8")
    ok = setup_android_queries(BuildConfig(), manifest_path=manifest_path, reporter=reporter)
    assert ok is False
    assert "No packages specified" in reporter.text("error")
    assert manifest_path.read_text(encoding="utf-8") == before


def test_missing_manifest_fails(config, tmp_path: Path, reporter) -> None:
    ok = setup_android_queries(config, manifest_path=tmp_path / "nope.xml", reporter=reporter)
    assert ok is False
    assert "not found" in reporter.text("error")


def test_manifest_without_application_is_left_alone(config, tmp_path: Path, reporter) -> None:
    p = tmp_path / "AndroidManifest.xml"
    original = "<manifest>\n</manifest>\n"
    p.write_text(original, encoding="utf-8")

    ok = setup_android_queries(config, manifest_path=p, reporter=reporter)
    assert ok is False
    assert p.read_text(encoding="utf-8") == original
    assert "<application" in reporter.text("error")


def test_manifest_that_is_not_utf8_fails(config, tmp_path: Path, reporter) -> None:
    p = tmp_path / "AndroidManifest.xml"
    original = '<manifest android:label="café">\n  <application />\n</manifest>\n'.encode("latin-1")
    p.write_bytes(original)

    ok = setup_android_queries(config, manifest_path=p, reporter=reporter)
    assert ok is False
    assert p.read_bytes() == original
    assert "Cannot update" in reporter.text("error")
