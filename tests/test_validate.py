"""validate モジュールのテスト。"""

from appprep.build_config import BuildConfig, parse_build_config
from appprep.validate import validate_config


def test_valid_config(config) -> None:
    result = validate_config(config)
    assert result.ok is True
    assert result.errors == []


def test_defaults_warn_but_pass() -> None:
    result = validate_config(BuildConfig())
    assert result.ok is True
    assert any("bundle_id" in w for w in result.warnings)


def test_defaults_fail_in_strict_mode() -> None:
    result = validate_config(BuildConfig(), strict=True)
    assert result.ok is False


def test_bad_values() -> None:
    cfg = BuildConfig(
        bundle_id="not a bundle",
        platform="web",
        version="v1",
        primary_color="red",
        keychains=["ok.pkg", "bad pkg", "ok.pkg"],
    )
    result = validate_config(cfg)
    assert result.ok is False
    joined = "\n".join(result.errors)
    assert "platform" in joined
    assert "bundle_id" in joined
    assert "version" in joined
    assert "primary_color" in joined
    assert "bad pkg" in joined
    assert any("重複" in w for w in result.warnings)


def test_unknown_keys_warn() -> None:
    cfg = parse_build_config({"bundle_id": "com.a.b", "colour": "#fff"})
    result = validate_config(cfg)
    assert any("colour" in w for w in result.warnings)
