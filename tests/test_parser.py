import pytest

from mobkit.parser import Command, parse


def test_global_flags():
    cmd = parse(["-vv", "--non-interactive", "doctor"])
    assert cmd == Command(name="doctor", noise=2, non_interactive=True)


def test_new():
    cmd = parse(["new", "my-app", "--domain", "example.com", "--skip-dev-tools", "--open"])
    assert cmd.name == "new"
    assert cmd.app_name == "my-app"
    assert cmd.domain == "example.com"
    assert cmd.skip_dev_tools
    assert cmd.open
    assert not cmd.reinstall_deps


def test_android_build_targets():
    cmd = parse(["android", "apk", "aarch64", "x86_64", "--release", "--features", "audio video"])
    assert cmd.sub == "apk"
    assert cmd.targets == ["aarch64", "x86_64"]
    assert cmd.release
    assert cmd.features == "audio video"


def test_android_check_defaults_to_no_targets():
    cmd = parse(["android", "check"])
    assert cmd.targets == []
    assert not cmd.release


def test_check_has_no_release_flag():
    with pytest.raises(SystemExit):
        parse(["android", "check", "--release"])


def test_android_run():
    cmd = parse(["android", "run", "--app-bundle", "--filter", "debug"])
    assert cmd.app_bundle
    assert cmd.filter == "debug"


def test_apple_archive_build_number():
    cmd = parse(["apple", "archive", "--build-number", "42"])
    assert cmd.build_number == 42


def test_apple_pod_passes_arguments_through():
    cmd = parse(["apple", "pod", "install", "--repo-update"])
    assert cmd.args == ["install", "--repo-update"]


def test_apple_pod_needs_arguments():
    with pytest.raises(SystemExit):
        parse(["apple", "pod"])


def test_xcode_script():
    cmd = parse([
        "apple", "xcode-script", "--platform", "iphoneos", "--sdk-root", "/sdk",
        "--configuration", "Release", "arm64", "x86_64",
    ])
    assert cmd.sub == "xcode-script"
    assert cmd.args == ["arm64", "x86_64"]
    assert cmd.platform_name == "iphoneos"
    assert cmd.sdk_root == "/sdk"
    assert cmd.release


def test_xcode_script_debug_configuration():
    cmd = parse([
        "apple", "xcode-script", "--platform", "macosx", "--sdk-root", "/sdk",
        "--configuration", "debug", "arm64",
    ])
    assert not cmd.release


def test_subcommand_required():
    with pytest.raises(SystemExit):
        parse(["android"])
