import io

from rich.console import Console

from mobkit import config, doctor
from mobkit.doctor import Item, Section, Status
from mobkit.report import MobkitError


def _console():
    return Console(file=io.StringIO(), width=120, color_system=None)


def test_section_is_as_bad_as_its_worst_item():
    section = Section("Tools")
    assert section.status is Status.VICTORY
    section.add(Item.victory("ok")).add(Item.warning("hmm"))
    assert section.status is Status.WARNING
    section.add(Item.failure(MobkitError("broken", "badly")))
    assert section.status is Status.FAILURE
    assert section.items[-1].msg == "broken: badly"


def test_check_android_without_sdk():
    section = doctor.check_android({"HOME": "/home/me", "PATH": "/usr/bin"})
    assert section.status is Status.FAILURE
    assert "ANDROID_SDK_ROOT" in section.items[0].msg


def test_check_android_reports_versions(tmp_path):
    sdk = tmp_path / "sdk"
    (sdk / "platform-tools").mkdir(parents=True)
    (sdk / "platform-tools" / "source.properties").write_text("Pkg.Revision = 34.0.5\n", encoding="utf-8")
    ndk = tmp_path / "ndk"
    ndk.mkdir()
    (ndk / "source.properties").write_text("Pkg.Revision = 25.2.9519653\n", encoding="utf-8")

    section = doctor.check_android({
        "HOME": "/home/me", "PATH": "/usr/bin",
        "ANDROID_SDK_ROOT": str(sdk), "NDK_HOME": str(ndk),
    })

    assert section.status is Status.VICTORY
    assert section.items[0].msg.startswith("SDK v34.0.5 installed at")
    assert section.items[1].msg.startswith("NDK r25c installed at")


def _android_environ(tmp_path):
    sdk = tmp_path / "sdk"
    (sdk / "platform-tools").mkdir(parents=True)
    ndk = tmp_path / "ndk"
    ndk.mkdir()
    (ndk / "source.properties").write_text("Pkg.Revision = 25.2.9519653\n", encoding="utf-8")
    return {"HOME": "/home/me", "PATH": "/usr/bin", "ANDROID_SDK_ROOT": str(sdk), "NDK_HOME": str(ndk)}


async def test_check_devices_without_android_env(recorder):
    section = await doctor.check_devices("linux", {"HOME": "/home/me", "PATH": "/usr/bin"})
    assert [item.status for item in section.items] == [Status.VICTORY]
    assert section.items[0].msg == "No connected devices were found"
    # the missing SDK is reported by check_android, adb isn't tried
    assert recorder.calls == []


async def test_check_devices_reports_adb_failure(tmp_path, recorder):
    recorder.respond([config.ADB_BIN, "devices"], rc=1, err="daemon not running")
    section = await doctor.check_devices("linux", _android_environ(tmp_path))
    assert [item.status for item in section.items] == [Status.FAILURE]
    assert section.items[0].msg.startswith("Failed to get Android device list:")
    assert "daemon not running" in section.items[0].msg


async def test_check_devices_lists_android_devices(tmp_path, recorder):
    recorder.respond([config.ADB_BIN, "devices"], out="List of devices attached\nemulator-5554\tdevice\n")
    recorder.respond([config.ADB_BIN, "-s", "emulator-5554", "shell", "getprop", "ro.product.model"], out="Pixel 7\n")
    recorder.respond([config.ADB_BIN, "-s", "emulator-5554", "shell", "getprop", "ro.product.cpu.abi"], out="arm64-v8a\n")
    section = await doctor.check_devices("linux", _android_environ(tmp_path))
    assert [item.msg for item in section.items] == ["Pixel 7 (Android arm64-v8a)"]


def test_print_report():
    console = _console()
    ok = doctor.print_report([Section("Rust", [Item.victory("rustc v1.79.0")])], console)
    assert ok
    assert "No problems found." in console.file.getvalue()

    console = _console()
    ok = doctor.print_report([
        Section("Rust", [Item.victory("rustc v1.79.0")]),
        Section("Android developer tools", [Item.failure("Have you installed the NDK?")]),
    ], console)
    output = console.file.getvalue()
    assert not ok
    assert "Have you installed the NDK?" in output
    assert "Problems found in: Android developer tools" in output
