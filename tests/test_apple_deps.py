import json

import pytest

from mobkit import apple_deps, prompt, shell
from mobkit import config as settings
from mobkit.apple_deps import PackageSpec

BREW_OUTDATED = json.dumps({
    "formulae": [
        {"name": "xcodegen", "installed_versions": ["2.38.0"], "current_version": "2.42.0"},
        {"name": "python@3.12", "installed_versions": ["3.12.1"], "current_version": "3.12.4"},
    ],
    "casks": [],
})


def test_parse_brew_outdated_filters_names():
    stale = apple_deps.parse_brew_outdated(BREW_OUTDATED, ["xcodegen", "ios-deploy"])
    assert [f.name for f in stale] == ["xcodegen"]
    assert stale[0].notice() == "  - `xcodegen` is at 2.38.0; latest version is 2.42.0"


def test_parse_gem_outdated():
    stale = apple_deps.parse_gem_outdated("cocoapods (1.10.0 < 1.15.2)\nrake (13.0 < 13.1)\n", ["cocoapods"])
    assert len(stale) == 1
    assert stale[0].installed_versions == ["1.10.0"]
    assert stale[0].current_version == "1.15.2"


async def test_present_package_is_not_installed(recorder, monkeypatch):
    monkeypatch.setattr(shell, "which", lambda name: f"/usr/local/bin/{name}")
    assert await PackageSpec.brew("xcodegen").install() is False
    assert recorder.passthrough == []


async def test_missing_packages_are_installed(recorder, monkeypatch):
    monkeypatch.setattr(shell, "which", lambda name: None)
    assert await PackageSpec.brew("ios-deploy").install() is True
    assert await PackageSpec.gem("cocoapods", "pod").install() is True
    assert recorder.passthrough_commands == [
        [settings.BREW_BIN, "reinstall", "ios-deploy"],
        [settings.GEM_BIN, "install", "cocoapods"],
    ]


async def test_reinstall_forces_install(recorder, monkeypatch):
    monkeypatch.setattr(shell, "which", lambda name: f"/usr/local/bin/{name}")
    await PackageSpec.brew("bundletool", tap="example/tap").install(reinstall=True)
    assert recorder.passthrough_commands == [
        [settings.BREW_BIN, "tap", "example/tap"],
        [settings.BREW_BIN, "reinstall", "bundletool"],
    ]


async def test_failed_install_raises(recorder, monkeypatch):
    monkeypatch.setattr(shell, "which", lambda name: None)
    recorder.respond([settings.BREW_BIN, "reinstall"], rc=1)
    with pytest.raises(apple_deps.DepsError) as exc_info:
        await PackageSpec.brew("xcodegen").install()
    assert exc_info.value.msg == "Failed to install `xcodegen`"


async def test_install_all_non_interactive_only_reports(recorder, monkeypatch, capsys):
    monkeypatch.setattr(shell, "which", lambda name: f"/usr/local/bin/{name}")
    monkeypatch.setattr(prompt, "yes_no", lambda *a, **k: pytest.fail("should not prompt"))
    recorder.respond([settings.BREW_BIN, "outdated"], out=BREW_OUTDATED)
    recorder.respond([settings.GEM_BIN, "outdated"], out="")

    await apple_deps.install_all(non_interactive=True, reinstall_deps=False)

    assert "`xcodegen` is at 2.38.0" in capsys.readouterr().out
    assert recorder.passthrough == []


async def test_install_all_upgrades_when_accepted(recorder, monkeypatch):
    monkeypatch.setattr(shell, "which", lambda name: f"/usr/local/bin/{name}")
    monkeypatch.setattr(prompt, "yes_no", lambda *a, **k: True)
    recorder.respond([settings.BREW_BIN, "outdated"], out=BREW_OUTDATED)
    recorder.respond([settings.GEM_BIN, "outdated"], out="cocoapods (1.10.0 < 1.15.2)\n")

    await apple_deps.install_all(non_interactive=False, reinstall_deps=False)

    assert recorder.passthrough_commands == [
        [settings.BREW_BIN, "upgrade", "xcodegen"],
        [settings.GEM_BIN, "update", "cocoapods"],
    ]
