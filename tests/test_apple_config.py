import pytest

from mobkit.app_config import App
from mobkit.apple_config import AppleConfig, AppleConfigError, IpaNotFound
from mobkit.schema import RawApp, RawApple
from mobkit.versions import VersionDouble, VersionTriple


@pytest.fixture
def app(tmp_path):
    return App.from_raw(tmp_path, RawApp(name="my-app", domain="example.com"))


def test_development_team_is_required(app):
    with pytest.raises(AppleConfigError) as exc_info:
        AppleConfig.from_raw(app, None)
    assert exc_info.value.msg == "`apple.development-team` must be specified"
    with pytest.raises(AppleConfigError, match="is empty"):
        AppleConfig.from_raw(app, RawApple(development_team="  "))


def test_defaults(app, tmp_path):
    apple = AppleConfig.from_raw(app, RawApple(development_team="ABCDE12345"))
    assert apple.project_dir == tmp_path / "gen" / "apple"
    assert apple.ios_version == VersionDouble(9, 0)
    assert apple.macos_version == VersionDouble(11, 0)
    assert str(apple.bundle_version) == "1.0.0"
    assert apple.short_version == VersionTriple(1, 0, 0)
    assert apple.use_legacy_build_system is True
    assert apple.scheme == "my-app_iOS"


def test_versions_are_parsed(app):
    apple = AppleConfig.from_raw(app, RawApple(
        development_team="ABCDE12345",
        ios_version="13",
        bundle_version="1.2.3.4",
    ))
    assert apple.ios_version == VersionDouble(13, 0)
    assert apple.bundle_version.extra == (4,)
    assert apple.short_version == VersionTriple(1, 2, 3)

    apple = AppleConfig.from_raw(app, RawApple(
        development_team="ABCDE12345", bundle_version="1.2.3", bundle_version_short="2.0",
    ))
    assert apple.short_version == VersionTriple(2, 0, 0)


def test_bad_version_names_its_key(app):
    with pytest.raises(AppleConfigError) as exc_info:
        AppleConfig.from_raw(app, RawApple(development_team="ABCDE12345", ios_version="thirteen"))
    assert exc_info.value.msg == "`apple.ios-version` invalid"


def test_non_ascii_version_names_its_key(app):
    with pytest.raises(AppleConfigError) as exc_info:
        AppleConfig.from_raw(app, RawApple(development_team="ABCDE12345", ios_version="1.²"))
    assert exc_info.value.msg == "`apple.ios-version` invalid"


def test_project_dir_must_stay_under_root(app):
    with pytest.raises(AppleConfigError, match="project-dir"):
        AppleConfig.from_raw(app, RawApple(development_team="ABCDE12345", project_dir="/tmp/apple"))


def test_workspace_prefers_cocoapods_workspace(app):
    apple = AppleConfig.from_raw(app, RawApple(development_team="ABCDE12345"))
    assert apple.workspace_path == apple.project_dir / "my-app.xcodeproj" / "project.xcworkspace"
    (apple.project_dir / "my-app.xcworkspace").mkdir(parents=True)
    assert apple.workspace_path == apple.project_dir / "my-app.xcworkspace"


def test_build_paths(app):
    apple = AppleConfig.from_raw(app, RawApple(development_team="ABCDE12345"))
    assert apple.archive_path == apple.project_dir / "build" / "my-app_iOS.xcarchive"
    assert apple.export_plist_path == apple.project_dir / "ExportOptions.plist"
    assert apple.app_path == apple.project_dir / "build" / "Payload" / "my-app.app"


def test_ipa_path_tries_scheme_then_name(app):
    apple = AppleConfig.from_raw(app, RawApple(development_team="ABCDE12345"))
    with pytest.raises(IpaNotFound) as exc_info:
        apple.ipa_path()
    assert [p.name for p in exc_info.value.tried] == ["my-app_iOS.ipa", "my-app.ipa"]

    apple.export_dir.mkdir(parents=True)
    (apple.export_dir / "my-app.ipa").write_bytes(b"")
    assert apple.ipa_path() == apple.export_dir / "my-app.ipa"
