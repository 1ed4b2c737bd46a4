from __future__ import annotations

from pathlib import Path

import pytest

from appprep.build_config import BuildConfig


class RecordingReporter:
    """Reporter that keeps every message for assertions."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def warn(self, message: str) -> None:
        self.messages.append(("warn", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def text(self, level: str | None = None) -> str:
        return "\n".join(m for lv, m in self.messages if level is None or lv == level)


@pytest.fixture()
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture()
def config() -> BuildConfig:
    return BuildConfig(
        bundle_id="com.example.app",
        team_id="ABCDE12345",
        display_name="Example",
        ios_project_name="Example",
        version="2.1.0",
        keychains=["com.example.partner", "com.example.wallet"],
    )


MANIFEST = """<manifest xmlns:android="http://schemas.android.com/apk/res/android">

    <uses-permission android:name="android.permission.INTERNET" />

    <application
      android:name=".MainApplication"
      android:label="@string/app_name">
      <activity android:name=".MainActivity" />
    </application>
</manifest>
"""


ENTITLEMENTS = """<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" "http://www.apple.com/DTDs/PropertyList-1.0.dtd">
<plist version="1.0">
<dict>
\t<key>aps-environment</key>
\t<string>development</string>
</dict>
</plist>
"""


PBXPROJ = """// !$*UTF8*$!
{
\t\t13B07F941A680F5B00A75B9A /* Debug */ = {
\t\t\tisa = XCBuildConfiguration;
\t\t\tbuildSettings = {
\t\t\t\tCODE_SIGN_ENTITLEMENTS = Example/Example.entitlements;
\t\t\t\tDEVELOPMENT_TEAM = "";
\t\t\t\tPRODUCT_NAME = Example;
\t\t\t};
\t\t};
\t\t13B07F951A680F5B00A75B9A /* Release */ = {
\t\t\tisa = XCBuildConfiguration;
\t\t\tbuildSettings = {
\t\t\t\tDEVELOPMENT_TEAM = OLDTEAM123;
\t\t\t\tPRODUCT_NAME = Example;
\t\t\t};
\t\t};
}
"""


@pytest.fixture()
def manifest_path(tmp_path: Path) -> Path:
    p = tmp_path / "AndroidManifest.xml"
    p.write_text(MANIFEST, encoding="utf-8")
    return p


@pytest.fixture()
def ios_root(tmp_path: Path) -> Path:
    """ios/Example + ios/Example.xcodeproj の最小構成。"""
    ios = tmp_path / "ios"
    (ios / "Example").mkdir(parents=True)
    (ios / "Example" / "Info.plist").write_text("<plist/>\n", encoding="utf-8")
    xcodeproj = ios / "Example.xcodeproj"
    xcodeproj.mkdir()
    (xcodeproj / "project.pbxproj").write_text(PBXPROJ, encoding="utf-8")
    return ios
