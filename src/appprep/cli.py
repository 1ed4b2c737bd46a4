"""appprep CLI エントリポイント。"""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console

from appprep.android_branding import update_android_branding
from appprep.android_queries import setup_android_queries
from appprep.build_config import BuildConfig, ConfigError, load_build_config
from appprep.ios_keychains import setup_ios_keychains
from appprep.ios_project import update_bundle_urls, update_ios_project
from appprep.logging_setup import setup_logging
from appprep.settings import AndroidPaths, ToolSettings, load_settings
from appprep.validate import validate_config

APP_HELP = "📦 appprep: build.config.json をもとにネイティブプロジェクトをリリース前に書き換えるCLI"

app = typer.Typer(add_completion=False, help=APP_HELP)
console = Console()
log = logging.getLogger("appprep")


class RichReporter:
    """Reporter を rich で表示しつつ logging にも流す。"""

    def info(self, message: str) -> None:
        console.print(f"  {message}", style="blue")
        log.info(message)

    def warn(self, message: str) -> None:
        console.print(f"  ⚠️  {message}", style="yellow")
        log.warning(message)

    def error(self, message: str) -> None:
        console.print(f"  ❌ {message}", style="red")
        log.error(message)

    def success(self, message: str) -> None:
        console.print(f"  ✅ {message}", style="green")
        log.info(message)

    def section(self, title: str) -> None:
        console.print(f"\n{'=' * 60}", style="cyan")
        console.print(f"  {title}", style="bold cyan")
        console.print(f"{'=' * 60}\n", style="cyan")


def _load(config_file: Path | None, settings_file: Path | None) -> tuple[ToolSettings, BuildConfig]:
    settings = load_settings(settings_file)
    setup_logging(root=Path(settings.logging.root), level=settings.logging.level)

    path = config_file or Path(settings.paths.config_file)
    try:
        cfg = load_build_config(path)
    except ConfigError as e:
        console.print(f"❌ {e}", style="red")
        raise typer.Exit(code=1)

    log.info("loaded %s", path)
    for key in cfg.unknown_keys:
        log.warning("unknown config key ignored: %s", key)
    return settings, cfg


def _finish(ok: bool) -> None:
    if not ok:
        raise typer.Exit(code=1)


_CONFIG_OPT = typer.Option(None, "--file", help="設定ファイルのパス (default: build.config.json)")
_SETTINGS_OPT = typer.Option(None, "--settings", help="ツール設定 appprep.toml のパス")


@app.command()
def queries(
    config_file: Path | None = _CONFIG_OPT,
    settings_file: Path | None = _SETTINGS_OPT,
    manifest: Path | None = typer.Option(None, "--manifest", help="AndroidManifest.xml のパス"),
    packages: list[str] | None = typer.Option(
        None, "--package", "-p", help="追加する package（指定すると keychains より優先）"
    ),
) -> None:
    """AndroidManifest.xml の <queries> を package 一覧で揃える。"""
    settings, cfg = _load(config_file, settings_file)
    ui = RichReporter()
    ui.section("🤖 Android manifest package queries")

    path = manifest or AndroidPaths.from_root(Path(settings.paths.android_dir)).manifest
    _finish(setup_android_queries(cfg, manifest_path=path, packages=packages, reporter=ui))


@app.command()
def keychains(
    config_file: Path | None = _CONFIG_OPT,
    settings_file: Path | None = _SETTINGS_OPT,
    ios_dir: Path | None = typer.Option(None, "--ios-dir", help="ios ディレクトリ"),
    groups: list[str] | None = typer.Option(
        None, "--keychain", "-k", help="追加する keychain group（指定すると keychains より優先）"
    ),
) -> None:
    """entitlements の keychain-access-groups を揃える。"""
    settings, cfg = _load(config_file, settings_file)
    ui = RichReporter()
    ui.section("🍎 iOS keychain access groups")

    _finish(
        setup_ios_keychains(
            cfg,
            ios_dir=ios_dir or Path(settings.paths.ios_dir),
            keychains=groups,
            reporter=ui,
        )
    )


@app.command()
def android(
    config_file: Path | None = _CONFIG_OPT,
    settings_file: Path | None = _SETTINGS_OPT,
    android_dir: Path | None = typer.Option(None, "--android-dir", help="android ディレクトリ"),
    auto_version_code: bool = typer.Option(
        False, "--auto-version-code/--no-auto-version-code", help="versionCode を +1 する"
    ),
) -> None:
    """build.gradle / strings.xml / colors.xml を設定値で書き換える。"""
    settings, cfg = _load(config_file, settings_file)
    if not cfg.targets("android"):
        console.print(f"platform={cfg.platform} のため Android はスキップします", style="dim")
        return

    ui = RichReporter()
    ui.section("🤖 Android configuration")
    paths = AndroidPaths.from_root(android_dir or Path(settings.paths.android_dir))
    _finish(update_android_branding(cfg, paths=paths, auto_version_code=auto_version_code, reporter=ui))


@app.command()
def ios(
    config_file: Path | None = _CONFIG_OPT,
    settings_file: Path | None = _SETTINGS_OPT,
    ios_dir: Path | None = typer.Option(None, "--ios-dir", help="ios ディレクトリ"),
    auto_version_code: bool = typer.Option(
        False, "--auto-version-code/--no-auto-version-code", help="CFBundleVersion を +1 する"
    ),
) -> None:
    """Info.plist / project.pbxproj / entitlements / URL scheme を設定値で書き換える。"""
    settings, cfg = _load(config_file, settings_file)
    if not cfg.targets("ios"):
        console.print(f"platform={cfg.platform} のため iOS はスキップします", style="dim")
        return

    ui = RichReporter()
    ui.section("🍎 iOS configuration")
    root = ios_dir or Path(settings.paths.ios_dir)
    ok = update_ios_project(cfg, ios_dir=root, auto_version_code=auto_version_code, reporter=ui)
    if ok:
        ok = update_bundle_urls(cfg, ios_dir=root, reporter=ui)
    _finish(ok)


@app.command()
def validate(
    config_file: Path | None = _CONFIG_OPT,
    settings_file: Path | None = _SETTINGS_OPT,
    strict: bool = typer.Option(False, "--strict", help="デフォルト値のままの項目もエラーにする"),
) -> None:
    """build.config.json の内容を検証して問題点を表示。"""
    _, cfg = _load(config_file, settings_file)
    result = validate_config(cfg, strict=strict)

    if result.errors:
        for e in result.errors:
            console.print(f"  ❌ {e}", style="red")
    if result.warnings:
        for w in result.warnings:
            console.print(f"  ⚠️  {w}", style="yellow")
    if result.ok:
        console.print("  ✅ 設定に問題はありません。", style="green")
    else:
        raise typer.Exit(code=1)
