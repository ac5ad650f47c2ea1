"""
platforms.py — Build, install, and run for Android and Apple targets.

Each platform has:
  - check()       → `cargo check` for a target
  - build()       → compile the Rust lib, then the native project
  - run()         → install on a device and launch
  - open()        → open the generated project in its IDE
"""

import enum
import logging
import plistlib
import shutil
import sys
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from mobkit import bundletool, jnilibs, shell, targets
from mobkit import config as settings
from mobkit.devices import AndroidDevice, IosDevice
from mobkit.env import AndroidEnv, Env
from mobkit.metadata import Metadata
from mobkit.project_config import Config
from mobkit.report import ActionRequest, MobkitError
from mobkit.versions import VersionNumber

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    success: bool
    output: str
    error: str = ""


@dataclass
class DeployResult:
    success: bool
    message: str


class PlatformError(MobkitError):
    pass


class Unsupported(MobkitError):
    def __init__(self, platform: str):
        super().__init__(
            f"{platform} is marked as unsupported in your Cargo.toml metadata",
            f"If your project should support {platform}, modify your Cargo.toml, "
            "then run `mobkit init` and try again.",
        )
        self.platform = platform


class ProjectDirAbsent(ActionRequest):
    def __init__(self, kind: str, project_dir: Path):
        super().__init__(
            "Please run `mobkit init` and try again!",
            f"{kind} project directory {str(project_dir)!r} doesn't exist.",
        )
        self.project_dir = project_dir


# ── Shared helpers ───────────────────────────────────────────────────────────

def extract_build_error(raw_output: str, max_lines: int = 60) -> str:
    lines = raw_output.splitlines()
    # Gradle errors
    for i, line in enumerate(lines):
        if "FAILURE:" in line or "BUILD FAILED" in line:
            return "\n".join(lines[i:i + max_lines])
    # Xcode errors
    for i, line in enumerate(lines):
        if "** BUILD FAILED **" in line or "** ARCHIVE FAILED **" in line or "** EXPORT FAILED **" in line:
            return "\n".join(lines[max(0, i - max_lines):i + 1])
    # rustc errors: keep each diagnostic with its context
    for i, line in enumerate(lines):
        if line.startswith("error[") or line.startswith("error:"):
            return "\n".join(lines[i:i + max_lines])
    error_lines = [l for l in lines if l.strip().startswith("e:") or "error:" in l.lower()]
    if error_lines:
        return "\n".join(error_lines[:max_lines])
    return "\n".join(lines[-max_lines:])


def _result(rc: int, out: str, err: str) -> BuildResult:
    raw = out + err
    if rc == 0:
        return BuildResult(success=True, output=raw)
    return BuildResult(success=False, output=raw, error=extract_build_error(raw))


def _android_features(config: Config, metadata: Metadata) -> list[str]:
    return list(dict.fromkeys([*metadata.android_features(), *config.android.features]))


def build_type(release: bool) -> str:
    return "release" if release else "debug"


def camel_case(text: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in text.replace("-", "_").split("_") if part)


async def open_path(path: Path, app: Optional[str] = None, platform: str = sys.platform) -> DeployResult:
    if platform == "darwin":
        cmd = ["open", "-a", app, str(path)] if app else ["open", str(path)]
    elif app == "Android Studio" and shell.which(settings.ANDROID_STUDIO_BIN):
        cmd = [settings.ANDROID_STUDIO_BIN, str(path)]
    else:
        cmd = ["xdg-open", str(path)]
    rc, out, err = await shell.run(cmd)
    if rc != 0:
        return DeployResult(False, f"❌ Failed to open {path}:\n{(out + err).strip()}")
    return DeployResult(True, f"✅ Opened {path}")


class LogcatLevel(enum.Enum):
    ERROR = "E"
    WARN = "W"
    INFO = "I"
    DEBUG = "D"
    VERBOSE = "V"

    @classmethod
    def parse(cls, text: str) -> "LogcatLevel":
        for level in cls:
            if text.lower() in (level.name.lower(), level.value.lower()):
                return level
        names = ", ".join(level.name.lower() for level in cls)
        raise PlatformError(f"`{text}` isn't a valid log filter level", f"Valid levels are {names}")

    @classmethod
    def for_noise(cls, noise: int) -> "LogcatLevel":
        if noise >= 2:
            return cls.VERBOSE
        if noise == 1:
            return cls.INFO
        return cls.WARN


# ═══════════════════════════════════════════════════════════════════════════════
# ANDROID
# ═══════════════════════════════════════════════════════════════════════════════

class AndroidPlatform:

    @staticmethod
    def ensure_init(config: Config):
        if not config.android.project_dir_exists():
            raise ProjectDirAbsent("Android Studio", config.android.project_dir)

    @staticmethod
    def gradlew(config: Config) -> list[str]:
        project_dir = config.android.project_dir
        return [str(project_dir / "gradlew"), "--project-dir", str(project_dir)]

    @staticmethod
    def _suffix(release: bool) -> str:
        # TODO: pick up a signing config so release builds aren't left unsigned
        return "release-unsigned" if release else "debug"

    @staticmethod
    def apk_path(config: Config, release: bool, flavor: str) -> Path:
        ty, suffix = build_type(release), AndroidPlatform._suffix(release)
        return config.android.project_dir / f"app/build/outputs/apk/{flavor}/{ty}/app-{flavor}-{suffix}.apk"

    @staticmethod
    def apks_path(config: Config, release: bool, flavor: str) -> Path:
        ty, suffix = build_type(release), AndroidPlatform._suffix(release)
        return config.android.project_dir / f"app/build/outputs/apk/{flavor}/{ty}/app-{flavor}-{suffix}.apks"

    @staticmethod
    def aab_path(config: Config, release: bool, flavor: str) -> Path:
        ty, suffix = build_type(release), AndroidPlatform._suffix(release)
        return config.android.project_dir / f"app/build/outputs/bundle/{flavor}{camel_case(ty)}/app-{flavor}-{suffix}.aab"

    @staticmethod
    def _cargo_env(config: Config, env: AndroidEnv, target: targets.AndroidTarget) -> dict[str, str]:
        return {
            **env.explicit_env(),
            **target.cargo_env(env.ndk, config.android.min_sdk_version),
        }

    @staticmethod
    async def check(
        config: Config, metadata: Metadata, env: AndroidEnv, target: targets.AndroidTarget, noise: int = 0
    ) -> BuildResult:
        cmd = targets.cargo_command(
            "check", target.triple,
            features=_android_features(config, metadata),
            no_default_features=metadata.android.no_default_features or config.android.no_default_features,
            noise=noise,
        )
        rc, out, err = await shell.run(
            cmd, cwd=str(config.app.root_dir),
            env=AndroidPlatform._cargo_env(config, env, target), timeout=settings.BUILD_TIMEOUT,
        )
        return _result(rc, out, err)

    @staticmethod
    async def build_lib(
        config: Config,
        metadata: Metadata,
        env: AndroidEnv,
        target: targets.AndroidTarget,
        release: bool = False,
        noise: int = 0,
    ) -> BuildResult:
        """Compile the Rust cdylib and link it (plus libc++_shared if needed) into jniLibs."""
        cmd = targets.cargo_command(
            "build", target.triple,
            features=_android_features(config, metadata),
            no_default_features=metadata.android.no_default_features or config.android.no_default_features,
            release=release,
            noise=noise,
        )
        rc, out, err = await shell.run(
            cmd, cwd=str(config.app.root_dir),
            env=AndroidPlatform._cargo_env(config, env, target), timeout=settings.BUILD_TIMEOUT,
        )
        result = _result(rc, out, err)
        if not result.success:
            return result

        lib = targets.built_lib_path(config.app.root_dir, target.triple, config.android.so_name, release)
        if not lib.is_file():
            return BuildResult(False, result.output, f"Built library not found at {lib}")
        libs = jnilibs.JniLibs.create(config.android, target)
        libs.remove_broken_links()
        libs.symlink_lib(lib)
        if "libc++_shared.so" in await env.ndk.required_libs(lib, target.binutils_triple):
            libs.symlink_lib(env.ndk.libcxx_shared_path(target.abi))
        return result

    @staticmethod
    async def build_apk(
        config: Config, env: AndroidEnv, target: targets.AndroidTarget, release: bool = False, noise: int = 0
    ) -> BuildResult:
        flavor = camel_case(target.arch)
        task = f"assemble{flavor}{camel_case(build_type(release))}"
        verbosity = {0: "--warn", 1: "--info"}.get(noise, "--debug")
        rc, out, err = await shell.run(
            [*AndroidPlatform.gradlew(config), task, verbosity],
            env=env.explicit_env(), timeout=settings.BUILD_TIMEOUT,
        )
        return _result(rc, out, err)

    @staticmethod
    async def build_aab(
        config: Config, env: AndroidEnv, target: targets.AndroidTarget, release: bool = False
    ) -> BuildResult:
        task = f":app:bundle{camel_case(target.arch)}{camel_case(build_type(release))}"
        rc, out, err = await shell.run(
            [*AndroidPlatform.gradlew(config), task],
            env=env.explicit_env(), timeout=settings.BUILD_TIMEOUT,
        )
        return _result(rc, out, err)

    @staticmethod
    async def build(
        config: Config,
        metadata: Metadata,
        env: AndroidEnv,
        target: targets.AndroidTarget,
        release: bool = False,
        noise: int = 0,
        app_bundle: bool = False,
    ) -> BuildResult:
        result = await AndroidPlatform.build_lib(config, metadata, env, target, release, noise)
        if not result.success:
            return result
        if app_bundle:
            return await AndroidPlatform.build_aab(config, env, target, release)
        return await AndroidPlatform.build_apk(config, env, target, release, noise)

    @staticmethod
    async def install_apk(config: Config, env: AndroidEnv, device: AndroidDevice, release: bool) -> DeployResult:
        apk = AndroidPlatform.apk_path(config, release, device.target.arch)
        rc, out, err = await shell.run(
            [settings.ADB_BIN, "-s", device.serial, "install", str(apk)],
            env=env.explicit_env(), timeout=settings.BUILD_TIMEOUT,
        )
        if rc != 0:
            return DeployResult(False, f"❌ Failed to install APK:\n{(out + err).strip()}")
        return DeployResult(True, f"✅ Installed {apk.name} on {device}")

    @staticmethod
    async def install_aab(config: Config, env: AndroidEnv, device: AndroidDevice, release: bool) -> DeployResult:
        flavor = device.target.arch
        apks = AndroidPlatform.apks_path(config, release, flavor)
        aab = AndroidPlatform.aab_path(config, release, flavor)
        apks.unlink(missing_ok=True)
        tool = bundletool.command()
        device_env = {**env.explicit_env(), "ANDROID_SERIAL": device.serial}
        rc, out, err = await shell.run(
            [*tool, "build-apks", f"--bundle={aab}", f"--output={apks}", "--connected-device"],
            env=device_env, timeout=settings.BUILD_TIMEOUT,
        )
        if rc != 0:
            return DeployResult(False, f"❌ Failed to build APKs from AAB:\n{(out + err).strip()}")
        rc, out, err = await shell.run(
            [*tool, "install-apks", f"--apks={apks}"], env=device_env, timeout=settings.BUILD_TIMEOUT,
        )
        if rc != 0:
            return DeployResult(False, f"❌ Failed to install APKs:\n{(out + err).strip()}")
        return DeployResult(True, f"✅ Installed {apks.name} on {device}")

    @staticmethod
    async def start(config: Config, env: AndroidEnv, device: AndroidDevice) -> DeployResult:
        activity = f"{config.app.identifier}/android.app.NativeActivity"
        adb = [settings.ADB_BIN, "-s", device.serial]
        rc, out, err = await shell.run([*adb, "shell", "am", "start", "-n", activity], env=env.explicit_env())
        if rc != 0:
            return DeployResult(False, f"❌ Failed to start {activity}:\n{(out + err).strip()}")
        rc, out, err = await shell.run(
            [*adb, "shell", "input", "keyevent", "KEYCODE_WAKEUP"], env=env.explicit_env()
        )
        if rc != 0:
            logger.warning("failed to wake screen on %s: %s", device.serial, (out + err).strip())
        return DeployResult(True, f"✅ Started {activity} on {device}")

    @staticmethod
    async def run(
        config: Config,
        metadata: Metadata,
        env: AndroidEnv,
        device: AndroidDevice,
        release: bool = False,
        noise: int = 0,
        filter_level: Optional[LogcatLevel] = None,
        app_bundle: bool = False,
    ) -> DeployResult:
        target = device.target
        if target is None:
            return DeployResult(False, f"❌ {device} has unsupported ABI {device.abi}")
        if app_bundle:
            await bundletool.install()
        result = await AndroidPlatform.build(config, metadata, env, target, release, noise, app_bundle)
        if not result.success:
            return DeployResult(False, f"❌ Android build failed:\n{result.error}")
        install = AndroidPlatform.install_aab if app_bundle else AndroidPlatform.install_apk
        deployed = await install(config, env, device, release)
        if not deployed.success:
            return deployed
        started = await AndroidPlatform.start(config, env, device)
        if not started.success:
            return started
        print(started.message)
        level = filter_level or LogcatLevel.for_noise(noise)
        rc = await shell.run_passthrough(
            [settings.ADB_BIN, "-s", device.serial, "logcat", "-v", "color", "-s",
             f"{config.app.name}:{level.value}"],
            env=env.explicit_env(),
        )
        # logcat only exits when interrupted or the device goes away
        if rc not in (0, -2, 130):
            return DeployResult(False, f"❌ logcat exited with {rc}")
        return started

    @staticmethod
    async def stacktrace(config: Config, env: AndroidEnv, device: AndroidDevice) -> str:
        if device.target is None:
            raise PlatformError(
                f"Can't symbolicate a stack trace from {device}",
                f"{device.abi!r} isn't a supported ABI",
            )
        rc, log, err = await shell.run(
            [settings.ADB_BIN, "-s", device.serial, "logcat", "-d"], env=env.explicit_env()
        )
        if rc != 0:
            raise PlatformError("Failed to dump logcat", (log + err).strip())
        # ndk-stack mishandles spaces in -sym, so pass it relative to the app root
        sym_dir = config.app.unprefix_path(jnilibs.path(config.android, device.target.abi))
        stack_env = env.base.prepend_to_path(env.ndk.home).explicit_env()
        rc, out, err = await shell.run(
            [str(env.ndk.ndk_stack_path()), "-sym", str(sym_dir)],
            cwd=str(config.app.root_dir), env=stack_env, stdin=log,
        )
        if rc != 0:
            raise PlatformError("Failed to symbolicate stack trace", (out + err).strip())
        return out.strip() or "  -- no stacktrace --"

    @staticmethod
    async def open(config: Config, platform: str = sys.platform) -> DeployResult:
        AndroidPlatform.ensure_init(config)
        return await open_path(config.android.project_dir, "Android Studio", platform)


# ═══════════════════════════════════════════════════════════════════════════════
# APPLE
# ═══════════════════════════════════════════════════════════════════════════════

class ApplePlatform:

    @staticmethod
    def ensure_init(config: Config):
        apple = config.require_apple()
        if not apple.project_dir_exists():
            raise ProjectDirAbsent("Xcode", apple.project_dir)

    @staticmethod
    def _xcodebuild(config: Config, target: targets.AppleTarget, release: bool) -> list[str]:
        apple = config.require_apple()
        cmd = [
            settings.XCODEBUILD,
            "-scheme", apple.scheme,
            "-workspace", str(apple.workspace_path),
            "-sdk", target.sdk,
            "-configuration", build_type(release),
            "-arch", target.arch,
            "-allowProvisioningUpdates",
        ]
        if apple.use_legacy_build_system:
            cmd.append("-UseModernBuildSystem=NO")
        return cmd

    @staticmethod
    async def check(
        config: Config, metadata: Metadata, env: Env, target: targets.AppleTarget, noise: int = 0
    ) -> BuildResult:
        cmd = targets.cargo_command(
            "check", target.triple,
            features=metadata.ios_features(),
            no_default_features=metadata.apple.ios.no_default_features,
            noise=noise,
        )
        rc, out, err = await shell.run(
            cmd, cwd=str(config.app.root_dir), env=env.explicit_env(), timeout=settings.BUILD_TIMEOUT
        )
        return _result(rc, out, err)

    @staticmethod
    async def build(
        config: Config, env: Env, target: targets.AppleTarget, release: bool = False, noise: int = 0
    ) -> BuildResult:
        """xcodebuild compiles the Rust lib itself, through the xcode-script build phase."""
        cmd = ApplePlatform._xcodebuild(config, target, release)
        if noise == 0:
            cmd.append("-quiet")
        rc, out, err = await shell.run(
            [*cmd, "build"], env=env.explicit_env(), timeout=settings.BUILD_TIMEOUT
        )
        return _result(rc, out, err)

    @staticmethod
    async def archive(
        config: Config,
        env: Env,
        target: targets.AppleTarget,
        release: bool = False,
        version: Optional[VersionNumber] = None,
    ) -> BuildResult:
        apple = config.require_apple()
        version = version or apple.bundle_version
        cmd = [
            *ApplePlatform._xcodebuild(config, target, release),
            "-archivePath", str(apple.archive_path),
            f"CURRENT_PROJECT_VERSION={version}",
            f"MARKETING_VERSION={apple.short_version}",
            "archive",
        ]
        rc, out, err = await shell.run(cmd, env=env.explicit_env(), timeout=settings.BUILD_TIMEOUT)
        return _result(rc, out, err)

    @staticmethod
    def write_export_options(config: Config, method: str = "development") -> Path:
        apple = config.require_apple()
        path = apple.export_plist_path
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            plistlib.dump(
                {"method": method, "teamID": apple.development_team, "signingStyle": "automatic"},
                f,
            )
        return path

    @staticmethod
    async def export(config: Config, env: Env) -> BuildResult:
        apple = config.require_apple()
        plist = ApplePlatform.write_export_options(config)
        rc, out, err = await shell.run([
            settings.XCODEBUILD,
            "-exportArchive",
            "-archivePath", str(apple.archive_path),
            "-exportOptionsPlist", str(plist),
            "-exportPath", str(apple.export_dir),
            "-allowProvisioningUpdates",
        ], env=env.explicit_env(), timeout=settings.BUILD_TIMEOUT)
        return _result(rc, out, err)

    @staticmethod
    def unpack_ipa(config: Config) -> Path:
        apple = config.require_apple()
        ipa = apple.ipa_path()
        payload = apple.export_dir / "Payload"
        if payload.exists():
            shutil.rmtree(payload)
        with zipfile.ZipFile(ipa) as archive:
            archive.extractall(apple.export_dir)
        if not apple.app_path.is_dir():
            raise PlatformError(f"{ipa.name} didn't contain {apple.app_path.name}", f"Unpacked into {payload}")
        return apple.app_path

    @staticmethod
    async def run(
        config: Config,
        env: Env,
        device: IosDevice,
        release: bool = False,
        noise: int = 0,
        non_interactive: bool = False,
    ) -> DeployResult:
        target = device.target
        if target is None:
            return DeployResult(False, f"❌ {device} has unsupported arch {device.arch}")
        result = await ApplePlatform.build(config, env, target, release, noise)
        if not result.success:
            return DeployResult(False, f"❌ iOS build failed:\n{result.error}")
        result = await ApplePlatform.archive(config, env, target, release)
        if not result.success:
            return DeployResult(False, f"❌ iOS archive failed:\n{result.error}")
        result = await ApplePlatform.export(config, env)
        if not result.success:
            return DeployResult(False, f"❌ IPA export failed:\n{result.error}")
        app_path = ApplePlatform.unpack_ipa(config)
        cmd = [settings.IOS_DEPLOY_BIN, "--bundle", str(app_path), "--id", device.id]
        if non_interactive:
            cmd.append("--justlaunch")
        else:
            cmd.append("--debug")
        rc = await shell.run_passthrough(cmd, env=env.explicit_env())
        if rc != 0:
            return DeployResult(False, f"❌ ios-deploy exited with {rc}")
        return DeployResult(True, f"✅ {config.app.stylized_name} deployed to {device}")

    @staticmethod
    async def pod(config: Config, args: Sequence[str]) -> int:
        apple = config.require_apple()
        return await shell.run_passthrough(
            [settings.POD_BIN, *args, f"--project-directory={apple.project_dir}"],
            timeout=settings.BUILD_TIMEOUT,
        )

    @staticmethod
    async def open(config: Config, platform: str = sys.platform) -> DeployResult:
        ApplePlatform.ensure_init(config)
        return await open_path(config.require_apple().project_dir, "Xcode", platform)

    # ── Xcode build phase ─────────────────────────────────────────────────

    @staticmethod
    def xcode_script_env(sdk_root: Path, target: targets.AppleTarget) -> dict[str, str]:
        """Host and target flags for build scripts run while Xcode compiles the lib."""
        sdk_root = Path(sdk_root)
        if not sdk_root.is_dir():
            raise PlatformError(
                "SDK root provided by Xcode was invalid",
                f"{str(sdk_root)!r} doesn't exist or isn't a directory",
            )
        include_dir = sdk_root / "usr" / "include"
        if not include_dir.is_dir():
            raise PlatformError(
                "Include dir was invalid", f"{str(include_dir)!r} doesn't exist or isn't a directory"
            )
        macos_sdk_root = sdk_root / "../../../../MacOSX.platform/Developer/SDKs/MacOSX.sdk"
        macos_isysroot = f"-isysroot {macos_sdk_root}"
        key = target.triple.replace("-", "_")
        isysroot = f"-isysroot {sdk_root}"
        return {
            "MAC_FLAGS": macos_isysroot,
            "CFLAGS_x86_64_apple_darwin": macos_isysroot,
            "CXXFLAGS_x86_64_apple_darwin": macos_isysroot,
            "OBJC_INCLUDE_PATH_x86_64_apple_darwin": str(include_dir),
            "RUST_BACKTRACE": "1",
            f"CFLAGS_{key}": isysroot,
            f"CXXFLAGS_{key}": isysroot,
            f"OBJC_INCLUDE_PATH_{key}": str(include_dir),
            "LIBRARY_PATH": f"{macos_sdk_root}/usr/lib",
        }

    @staticmethod
    async def xcode_script(
        config: Config,
        metadata: Metadata,
        env: Env,
        arches: Sequence[str],
        sdk_root: Path,
        platform_name: str,
        release: bool = False,
        noise: int = 0,
    ):
        # Xcode's PATH is missing the user's profile additions
        env = env.prepend_to_path(Path(env.home) / ".cargo" / "bin")
        macos = platform_name == "macosx"
        for arch in arches:
            target = targets.apple_target_for_arch(arch, platform_name)
            if target is None:
                raise PlatformError("Arch specified by Xcode was invalid", f"{arch!r} isn't a known arch")
            platform_meta = metadata.apple.macos if macos else metadata.apple.ios
            features = metadata.macos_features() if macos else metadata.ios_features()
            cmd = targets.cargo_command(
                "build", target.triple,
                features=features,
                no_default_features=platform_meta.no_default_features,
                release=release,
                noise=noise,
            )
            target_env = {**env.explicit_env(), **ApplePlatform.xcode_script_env(sdk_root, target)}
            await targets.run_cargo(cmd, config.app.root_dir, target_env)


# ═══════════════════════════════════════════════════════════════════════════════
# DISPATCHER: route by platform string
# ═══════════════════════════════════════════════════════════════════════════════

PLATFORMS = {
    "android": AndroidPlatform,
    "apple": ApplePlatform,
}


def require_supported(name: str, metadata: Metadata):
    if name == "android" and not metadata.android.supported:
        raise Unsupported("Android")
    if name == "apple" and not metadata.apple.supported:
        raise Unsupported("iOS")


async def open_platform(name: str, config: Config) -> DeployResult:
    cls = PLATFORMS.get(name)
    if not cls:
        return DeployResult(success=False, message=f"Unknown platform: {name}")
    return await cls.open(config)
