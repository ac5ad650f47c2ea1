import tomllib

import pytest

from mobkit import prompt
from mobkit.app_config import AppConfigError
from mobkit.apple_config import AppleConfigError
from mobkit.project_config import (
    Config,
    GenError,
    LoadError,
    Origin,
    detect_raw,
    discover_root,
    prompt_raw,
)
from mobkit.report import ActionRequest
from mobkit.schema import RawApp, RawConfig, SchemaError


def test_discover_root_walks_up(app_root):
    nested = app_root / "src" / "deep"
    nested.mkdir(parents=True)
    assert discover_root(nested) == app_root.resolve()


def test_load_from_subdirectory(app_root):
    nested = app_root / "src"
    nested.mkdir()
    config = Config.load(nested, platform="linux")
    assert config.app.name == "my-app"
    assert config.app.root_dir == app_root.resolve()
    assert config.path == app_root.resolve() / "mobile.toml"
    assert config.apple is None


def test_load_or_raise_without_config(tmp_path):
    with pytest.raises(ActionRequest, match="No mobile.toml found"):
        Config.load_or_raise(tmp_path, platform="linux")


def test_unknown_keys_are_rejected(app_root):
    (app_root / "mobile.toml").write_text(
        '[app]\nname = "my-app"\ndomain = "example.com"\ncolour = "red"\n', encoding="utf-8"
    )
    with pytest.raises(SchemaError) as exc_info:
        Config.load(app_root, platform="linux")
    assert "app.colour" in exc_info.value.details


def test_broken_toml_is_a_load_error(app_root):
    (app_root / "mobile.toml").write_text("[app\n", encoding="utf-8")
    with pytest.raises(LoadError):
        Config.load(app_root, platform="linux")


def test_apple_section_required_on_macos(app_root):
    with pytest.raises(AppleConfigError, match="development-team"):
        Config.load(app_root, platform="darwin")


def test_env_table_is_kept(app_root):
    (app_root / "mobile.toml").write_text(
        '[app]\nname = "my-app"\ndomain = "example.com"\n\n[env]\nRUST_LOG = "debug"\n',
        encoding="utf-8",
    )
    config = Config.load(app_root, platform="linux")
    assert config.env == {"RUST_LOG": "debug"}
    assert config.to_dict()["env"] == {"RUST_LOG": "debug"}


def test_to_dict_uses_kebab_case(config):
    data = config.to_dict()
    assert data["app"]["stylized-name"] == "My App"
    assert data["android"]["min-sdk-version"] == 24
    assert "apple" not in data


async def test_detect_raw_transliterates_dir_name(tmp_path):
    root = tmp_path / "My Cool_App"
    root.mkdir()
    raw = await detect_raw(root, platform="linux")
    assert raw.app.name == "my-cool_app"
    assert raw.app.domain == "example.com"
    assert raw.apple is None


async def test_detect_raw_fails_for_unusable_names(tmp_path):
    root = tmp_path / "123"
    root.mkdir()
    with pytest.raises(GenError, match="Failed to detect `app` config"):
        await detect_raw(root, platform="linux")


async def test_detect_raw_needs_a_team_on_macos(tmp_path, recorder):
    root = tmp_path / "game"
    root.mkdir()
    recorder.respond(["security", "find-identity"], out="     0 valid identities found\n")
    with pytest.raises(GenError, match="apple"):
        await detect_raw(root, platform="darwin")


async def test_prompt_raw_reprompts_invalid_answers(tmp_path, monkeypatch):
    root = tmp_path / "game"
    root.mkdir()
    answers = iter(["1bad", "good-name", None, None])

    def fake_default(msg, default_value=None):
        answer = next(answers)
        return answer if answer is not None else (default_value or "")

    monkeypatch.setattr(prompt, "default", fake_default)
    raw = await prompt_raw(root, platform="linux")
    assert raw.app.name == "good-name"
    assert raw.app.stylized_name is None
    assert raw.app.domain == "example.com"


async def test_gen_writes_validated_config(tmp_path):
    root = tmp_path / "hello-world"
    root.mkdir()
    config, origin = await Config.load_or_gen(root, non_interactive=True, platform="linux")
    assert origin is Origin.FRESHLY_MINTED
    assert origin.freshly_minted
    written = tomllib.loads((root / "mobile.toml").read_text(encoding="utf-8"))
    assert written == {"app": {"name": "hello-world", "domain": "example.com"}}

    again, origin = await Config.load_or_gen(root, non_interactive=True, platform="linux")
    assert origin is Origin.LOADED
    assert again.app == config.app


def test_invalid_generated_config_is_not_written(tmp_path):
    raw = RawConfig(app=RawApp(name="fn", domain="example.com"))
    with pytest.raises(AppConfigError):
        Config.from_raw(tmp_path, raw, platform="linux")
    assert not (tmp_path / "mobile.toml").exists()
