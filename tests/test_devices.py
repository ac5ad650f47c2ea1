import json

import pytest

from mobkit import config as settings
from mobkit import devices, prompt
from mobkit.report import ActionRequest
from mobkit.targets import ANDROID_TARGETS, APPLE_TARGETS

ADB_DEVICES = """List of devices attached
* daemon started successfully
emulator-5554\tdevice
0A1B2C3D\tunauthorized

"""


def test_parse_adb_devices():
    assert devices.parse_adb_devices(ADB_DEVICES) == ["emulator-5554"]


async def test_list_android_devices(recorder):
    adb = [settings.ADB_BIN, "-s", "emulator-5554", "shell"]
    recorder.respond([settings.ADB_BIN, "devices"], out=ADB_DEVICES)
    recorder.respond([*adb, "getprop", "ro.product.model"], out="sdk_gphone64_arm64\n")
    recorder.respond([*adb, "getprop", "ro.product.cpu.abi"], out="arm64-v8a\n")
    recorder.respond([*adb, "settings", "get", "global", "device_name"], out="null\n")

    found = await devices.list_android_devices({"PATH": "/sdk/platform-tools"})

    assert len(found) == 1
    device = found[0]
    assert device.serial == "emulator-5554"
    assert device.name == device.model == "sdk_gphone64_arm64"
    assert device.target is ANDROID_TARGETS["aarch64"]
    assert str(device) == "sdk_gphone64_arm64"
    assert all(call.env == {"PATH": "/sdk/platform-tools"} for call in recorder.calls)


async def test_adb_failure_is_reported(recorder):
    recorder.respond([settings.ADB_BIN, "devices"], rc=1, err="adb: no server")
    with pytest.raises(devices.DeviceError, match="Failed to list Android devices"):
        await devices.list_android_devices()


def test_parse_ios_deploy_json():
    events = [
        {"Event": "BonjourServiceAdded"},
        {"Event": "DeviceDetected", "Device": {
            "DeviceIdentifier": "00008030-001", "DeviceName": "Jo's iPhone",
            "modelName": "iPhone 12", "modelArch": "arm64e",
        }},
        {"Event": "DeviceDetected", "Device": {"DeviceIdentifier": "00008030-001"}},
    ]
    text = "\n".join(json.dumps(event, indent=2) for event in events)

    found = devices.parse_ios_deploy_json(text)

    assert len(found) == 1
    assert found[0].name == "Jo's iPhone"
    assert found[0].target is APPLE_TARGETS["aarch64"]
    assert str(found[0]) == "Jo's iPhone (iPhone 12)"


async def test_no_ios_devices(recorder):
    recorder.respond([settings.IOS_DEPLOY_BIN, "--detect"], rc=253)
    assert await devices.list_ios_devices() == []


def test_select_device_requires_a_device():
    with pytest.raises(ActionRequest, match="No connected Android devices"):
        devices.select_device([], "Android")


def test_select_device_single_or_non_interactive(monkeypatch):
    monkeypatch.setattr(prompt, "select", lambda *a, **k: pytest.fail("should not prompt"))
    assert devices.select_device(["only"], "iOS") == "only"
    assert devices.select_device(["a", "b"], "iOS", non_interactive=True) == "a"


def test_select_device_prompts_for_many(monkeypatch):
    monkeypatch.setattr(prompt, "select", lambda msg, choices, default_index=None: 1)
    assert devices.select_device(["a", "b"], "iOS") == "b"
