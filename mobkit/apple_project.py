"""
apple_project.py — Generates the Xcode project via xcodegen.

project.yml is YAML, and JSON flow collections are valid YAML, so list and
table values from the Cargo metadata are rendered with json.dumps.
"""

import json
import logging
from pathlib import Path
from typing import Any, Sequence

from mobkit import apple_deps, paths, rustc, shell, targets, templating
from mobkit import config as settings
from mobkit.metadata import AppleMetadata, ApplePlatformMetadata, BuildScript
from mobkit.project_config import Config
from mobkit.report import MobkitError

logger = logging.getLogger(__name__)

TEMPLATE_PACK = "xcode"


class AppleGenError(MobkitError):
    pass


XCODE_SCRIPT = (
    'mobkit -v apple xcode-script --platform "${PLATFORM_NAME}" --sdk-root "${SDKROOT}" '
    '--configuration "${CONFIGURATION}" ${ARCHS}'
)


def _flow(value: Any) -> str:
    return json.dumps(value)


def _scripts(scripts: Sequence[BuildScript]) -> list[dict[str, Any]]:
    return [script.to_xcodegen() for script in scripts]


def _dependencies(meta: ApplePlatformMetadata) -> list[dict[str, Any]]:
    deps: list[dict[str, Any]] = []
    deps += [{"sdk": f"{name}.framework"} for name in meta.frameworks]
    deps += [{"sdk": name} for name in meta.libraries]
    deps += [{"framework": path, "embed": False} for path in meta.vendor_frameworks]
    deps += [{"sdk": name} for name in meta.vendor_sdks]
    deps += [{"target": name} for name in meta.additional_targets]
    return deps


def _platform_data(prefix: str, meta: ApplePlatformMetadata, sources: list[dict[str, Any]]) -> dict[str, Any]:
    build_rust = {"name": "Build Rust Code", "script": XCODE_SCRIPT, "basedOnDependencyAnalysis": False}
    return {
        f"{prefix}-sources": _flow(sources),
        f"{prefix}-dependencies": _flow(_dependencies(meta)),
        f"{prefix}-valid-archs": " ".join(meta.valid_archs),
        f"{prefix}-pods": [f"  {pod.podfile_line()}" for pod in meta.pods],
        f"{prefix}-pod-options": [f"  {option}" for option in meta.pod_options],
        f"{prefix}-pre-build-scripts": _flow([build_rust, *_scripts(meta.pre_build_scripts)]),
        f"{prefix}-post-compile-scripts": _flow(_scripts(meta.post_compile_scripts)),
        f"{prefix}-post-build-scripts": _flow(_scripts(meta.post_build_scripts)),
        f"{prefix}-command-line-arguments": _flow(
            {argument: True for argument in meta.command_line_arguments}
        ),
    }


def template_data(config: Config, metadata: AppleMetadata) -> dict[str, Any]:
    apple = config.require_apple()
    rel_prefix = paths.relativize_path(config.app.root_dir, apple.project_dir)
    assets = {"path": config.app.asset_dir.name, "type": "folder", "buildPhase": "resources"}
    catalogs = [{"path": (rel_prefix / c).as_posix()} for c in metadata.ios.asset_catalogs]
    data = templating.template_data(config)
    data.update({
        "file-groups": _flow([(rel_prefix / "src").as_posix()]),
        "root-dir-rel": rel_prefix.as_posix(),
        "scheme": apple.scheme,
    })
    data.update(_platform_data("ios", metadata.ios, [{"path": "Sources"}, assets, *catalogs]))
    data.update(_platform_data("macos", metadata.macos, [{"path": "Sources"}, assets]))
    return data


def has_pods(metadata: AppleMetadata) -> bool:
    return bool(metadata.ios.pods or metadata.macos.pods)


async def check_rust_version():
    version = await rustc.check_version()
    if not version.valid():
        raise AppleGenError(
            f"Rust {version} can't link iOS binaries",
            "Versions after 1.45.2 and before 1.49.0 have a bug that breaks iOS linking. "
            "Run `rustup update` and try again.",
        )


async def xcodegen(project_dir: Path):
    cmd = [settings.XCODEGEN_BIN, "generate", "--spec", str(project_dir / "project.yml")]
    rc = await shell.run_passthrough(cmd, timeout=settings.BUILD_TIMEOUT)
    if rc != 0:
        raise AppleGenError("Failed to run `xcodegen`", f"{shell.display(cmd)} exited with {rc}")


async def pod_install(project_dir: Path):
    cmd = [settings.POD_BIN, "install", f"--project-directory={project_dir}"]
    rc = await shell.run_passthrough(cmd, timeout=settings.BUILD_TIMEOUT)
    if rc != 0:
        raise AppleGenError("Failed to run `pod install`", f"{shell.display(cmd)} exited with {rc}")


async def gen(
    config: Config,
    metadata: AppleMetadata,
    non_interactive: bool = False,
    skip_dev_tools: bool = False,
    reinstall_deps: bool = False,
    filter: templating.Filter = templating.Filter.ALL,
) -> list[Path]:
    apple = config.require_apple()
    print("Installing iOS toolchains...")
    await targets.install_all([t.triple for t in targets.APPLE_TARGETS.values()])
    await check_rust_version()
    if skip_dev_tools:
        logger.info("skipping Apple developer tool installation")
    else:
        await apple_deps.install_all(non_interactive, reinstall_deps)

    project_dir = apple.project_dir
    pack = templating.Pack.lookup(TEMPLATE_PACK)
    written = templating.process_chain(
        pack.resolve_chain(), project_dir, template_data(config, metadata), filter
    )

    config.app.asset_dir.mkdir(parents=True, exist_ok=True)
    try:
        paths.force_symlink_relative(config.app.asset_dir, project_dir)
    except OSError as exc:
        raise AppleGenError("Asset dir couldn't be symlinked into Xcode project", str(exc)) from exc
    for catalog in metadata.ios.asset_catalogs:
        config.app.prefix_path(catalog).mkdir(parents=True, exist_ok=True)

    print("Generating Xcode project...")
    await xcodegen(project_dir)
    if has_pods(metadata):
        await pod_install(project_dir)
    return written
