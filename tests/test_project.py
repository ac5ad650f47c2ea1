import pytest

from mobkit import config as settings
from mobkit import project, prompt
from mobkit.project import OverwriteDenied
from mobkit.project_config import Origin


def _answer(monkeypatch, answer):
    asked = []

    def yes_no(msg, default_value=None):
        asked.append(msg)
        return answer

    monkeypatch.setattr(prompt, "yes_no", yes_no)
    return asked


def test_confirm_overwrite_denied(tmp_path, monkeypatch, capsys):
    asked = _answer(monkeypatch, False)
    existing = [tmp_path / "Cargo.toml"]

    with pytest.raises(OverwriteDenied) as exc_info:
        project.confirm_overwrite(existing, non_interactive=False)

    assert asked == ["Do you want to continue?"]
    assert exc_info.value.paths == existing
    assert exc_info.value.label == "action request"
    assert str(tmp_path / "Cargo.toml") in capsys.readouterr().out


def test_confirm_overwrite_accepted(tmp_path, monkeypatch):
    asked = _answer(monkeypatch, True)
    project.confirm_overwrite([tmp_path / "Cargo.toml"], non_interactive=False)
    assert asked == ["Do you want to continue?"]


def test_confirm_overwrite_non_interactive_proceeds(tmp_path, monkeypatch):
    asked = _answer(monkeypatch, False)
    project.confirm_overwrite([tmp_path / "Cargo.toml"], non_interactive=True)
    project.confirm_overwrite([], non_interactive=False)
    assert asked == []


async def test_gen_leaves_files_alone_when_overwrite_is_denied(config, recorder, monkeypatch):
    _answer(monkeypatch, False)
    cargo_toml = config.app.root_dir / "Cargo.toml"
    cargo_toml.write_text("# mine\n", encoding="utf-8")

    with pytest.raises(OverwriteDenied) as exc_info:
        await project.gen(config, Origin.FRESHLY_MINTED)

    assert exc_info.value.paths == [cargo_toml]
    assert cargo_toml.read_text(encoding="utf-8") == "# mine\n"
    assert recorder.commands == [[settings.GIT_BIN, "init"]]


async def test_gen_skips_prompt_for_loaded_projects(config, recorder, monkeypatch):
    asked = _answer(monkeypatch, False)
    (config.app.root_dir / "Cargo.toml").write_text("# mine\n", encoding="utf-8")

    written = await project.gen(config, Origin.LOADED)

    assert asked == []
    assert config.app.root_dir / "Cargo.toml" in written
    assert config.app.asset_dir.is_dir()
