"""
devices.py — Connected Android (adb) and iOS (ios-deploy) devices.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, TypeVar

from mobkit import config, prompt, shell
from mobkit.report import ActionRequest, MobkitError
from mobkit.targets import APPLE_TARGETS, AndroidTarget, AppleTarget, android_target_for_abi

logger = logging.getLogger(__name__)

D = TypeVar("D")


class DeviceError(MobkitError):
    pass


# ── Android ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AndroidDevice:
    serial: str
    name: str
    model: str
    abi: str

    @property
    def target(self) -> Optional[AndroidTarget]:
        return android_target_for_abi(self.abi)

    def __str__(self) -> str:
        return f"{self.name} ({self.model})" if self.name != self.model else self.model


def parse_adb_devices(text: str) -> list[str]:
    serials = []
    for line in text.splitlines():
        if not line.strip() or line.startswith("List of devices") or line.startswith("*"):
            continue
        parts = line.split()
        if len(parts) >= 2 and parts[1] == "device":
            serials.append(parts[0])
        elif len(parts) >= 2:
            logger.info("skipping %s device %s", parts[1], parts[0])
    return serials


async def _adb_shell(serial: str, *args: str, env: Optional[dict[str, str]] = None) -> str:
    rc, out, err = await shell.run([config.ADB_BIN, "-s", serial, "shell", *args], env=env)
    if rc != 0:
        raise DeviceError(f"`adb shell {' '.join(args)}` failed on {serial}", (out + err).strip())
    return out.strip()


async def list_android_devices(env: Optional[dict[str, str]] = None) -> list[AndroidDevice]:
    rc, out, err = await shell.run([config.ADB_BIN, "devices"], env=env)
    if rc != 0:
        raise DeviceError("Failed to list Android devices", (out + err).strip())
    devices = []
    for serial in parse_adb_devices(out):
        model = await _adb_shell(serial, "getprop", "ro.product.model", env=env)
        abi = await _adb_shell(serial, "getprop", "ro.product.cpu.abi", env=env)
        name = await _adb_shell(serial, "settings", "get", "global", "device_name", env=env)
        if not name or name == "null":
            name = model
        devices.append(AndroidDevice(serial=serial, name=name, model=model, abi=abi))
    return devices


# ── iOS ──────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class IosDevice:
    id: str
    name: str
    model: str
    arch: str

    @property
    def target(self) -> Optional[AppleTarget]:
        # arm64e devices run arm64 code
        if self.arch.startswith("arm64"):
            return APPLE_TARGETS["aarch64"]
        return None

    def __str__(self) -> str:
        return f"{self.name} ({self.model})"


def parse_ios_deploy_json(text: str) -> list[IosDevice]:
    """ios-deploy --json prints a stream of concatenated JSON objects."""
    decoder = json.JSONDecoder()
    devices: dict[str, IosDevice] = {}
    index = 0
    text = text.strip()
    while index < len(text):
        obj, end = decoder.raw_decode(text, index)
        index = end
        while index < len(text) and text[index].isspace():
            index += 1
        if obj.get("Event") != "DeviceDetected":
            continue
        info = obj.get("Device", {})
        device_id = info.get("DeviceIdentifier")
        if not device_id or device_id in devices:
            continue
        devices[device_id] = IosDevice(
            id=device_id,
            name=info.get("DeviceName", device_id),
            model=info.get("modelName", info.get("DeviceClass", "unknown")),
            arch=info.get("modelArch", "arm64"),
        )
    return list(devices.values())


async def list_ios_devices() -> list[IosDevice]:
    rc, out, err = await shell.run(
        [config.IOS_DEPLOY_BIN, "--detect", "--timeout", "1", "--json", "--no-wifi"], timeout=30
    )
    # ios-deploy exits 253 when nothing is attached
    if rc not in (0, 253):
        raise DeviceError("Failed to list iOS devices", (out + err).strip())
    try:
        return parse_ios_deploy_json(out)
    except json.JSONDecodeError as exc:
        raise DeviceError("Failed to parse ios-deploy output", str(exc)) from exc


# ── Selection ────────────────────────────────────────────────────────────────

def select_device(devices: Sequence[D], kind: str, non_interactive: bool = False) -> D:
    if not devices:
        raise ActionRequest(f"No connected {kind} devices detected", "Connect a device and try again.")
    if len(devices) == 1 or non_interactive:
        device = devices[0]
        print(f"Detected connected device: {device}")
        return device
    print(f"Detected {kind} devices:")
    index = prompt.select("Enter device index", [str(device) for device in devices], 0)
    return devices[index]
