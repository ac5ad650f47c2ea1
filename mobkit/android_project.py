"""
android_project.py — Generates the Android Studio (Gradle) project.

Renders the `android-studio` pack into `<root>/<project-dir>/<name>`, copies
any extra app sources, lays out asset pack modules, links the app's asset
dir into the Gradle assets dir, and records NDK linkers in .cargo/config.toml.
"""

import logging
import shutil
from pathlib import Path
from typing import Any

from mobkit import paths, targets, templating
from mobkit.dot_cargo import DotCargo
from mobkit.env import AndroidEnv
from mobkit.metadata import AndroidMetadata, AssetPack
from mobkit.project_config import Config
from mobkit.report import MobkitError

logger = logging.getLogger(__name__)

TEMPLATE_PACK = "android-studio"


class AndroidGenError(MobkitError):
    pass


class AssetSourceInvalid(AndroidGenError):
    def __init__(self, source: Path):
        super().__init__(
            f"Asset source at {str(source)!r} invalid",
            "Asset sources must be files",
        )
        self.source = source


def _flavor_block(target: targets.AndroidTarget) -> str:
    return (
        f'        create("{target.arch}") {{\n'
        f'            dimension = "abi"\n'
        f'            ndk {{ abiFilters += listOf("{target.abi}") }}\n'
        f"        }}"
    )


def _universal_block() -> str:
    abis = ", ".join(f'"{t.abi}"' for t in targets.ANDROID_TARGETS.values())
    return (
        '        create("universal") {\n'
        '            dimension = "abi"\n'
        f"            ndk {{ abiFilters += listOf({abis}) }}\n"
        "        }"
    )


def template_data(config: Config, metadata: AndroidMetadata) -> dict[str, Any]:
    project_dir = config.android.project_dir
    all_targets = list(targets.ANDROID_TARGETS.values())
    data = templating.template_data(config)
    data.update({
        "root-dir-rel": paths.relativize_path(config.app.root_dir, project_dir).as_posix(),
        "root-dir": config.app.root_dir.as_posix(),
        "target-names": ", ".join(t.name for t in all_targets),
        "arches": ", ".join(t.arch for t in all_targets),
        "abi-list": ", ".join(f'"{t.abi}"' for t in all_targets),
        "so-name": config.android.so_name,
        "has-code": metadata.has_code,
        "android-app-plugins": [f'    id("{p}")' for p in metadata.app_plugins],
        "android-project-dependencies": [
            f'        classpath("{d}")' for d in metadata.project_dependencies
        ],
        "android-app-dependencies": [f'    implementation("{d}")' for d in metadata.app_dependencies],
        "android-app-dependencies-platform": [
            f'    implementation(platform("{d}"))' for d in metadata.app_dependencies_platform
        ],
        "abi-flavors": [_flavor_block(t) for t in all_targets] + [_universal_block()],
        "asset-pack-includes": [f'include(":{pack.name}")' for pack in metadata.asset_packs],
        "asset-pack-refs": ", ".join(f'":{pack.name}"' for pack in metadata.asset_packs),
    })
    return data


def copy_app_sources(config: Config, metadata: AndroidMetadata) -> list[Path]:
    dest_dir = config.android.project_dir / "app"
    dest_dir.mkdir(parents=True, exist_ok=True)
    copied = []
    for source in metadata.app_sources:
        src = config.app.prefix_path(source)
        if not src.is_file():
            raise AssetSourceInvalid(src)
        dest = dest_dir / src.name
        shutil.copyfile(src, dest)
        logger.info("copied app source %s to %s", src, dest)
        copied.append(dest)
    return copied


def gen_asset_pack(project_dir: Path, pack: AssetPack) -> Path:
    module_dir = project_dir / pack.name
    (module_dir / "src" / "main" / "assets").mkdir(parents=True, exist_ok=True)
    build_file = module_dir / "build.gradle.kts"
    build_file.write_text(
        "plugins {\n"
        '    id("com.android.asset-pack")\n'
        "}\n"
        "\n"
        "assetPack {\n"
        f'    packName.set("{pack.name}")\n'
        "    dynamicDelivery {\n"
        f'        deliveryType.set("{pack.delivery_type}")\n'
        "    }\n"
        "}\n",
        encoding="utf-8",
    )
    logger.info("generated asset pack module %s (%s)", pack.name, pack.delivery_type)
    return module_dir


def link_asset_dir(config: Config) -> Path:
    main_dir = config.android.project_dir / "app" / "src" / "main"
    main_dir.mkdir(parents=True, exist_ok=True)
    config.app.asset_dir.mkdir(parents=True, exist_ok=True)
    try:
        return paths.force_symlink_relative(config.app.asset_dir, main_dir, "assets")
    except OSError as exc:
        raise AndroidGenError("Asset dir couldn't be symlinked into Android project", str(exc)) from exc


def add_dot_cargo_targets(config: Config, env: AndroidEnv, dot_cargo: DotCargo):
    for target in targets.ANDROID_TARGETS.values():
        dot_cargo.insert_target(
            target.triple, target.dot_cargo_target(env.ndk, config.android.min_sdk_version)
        )


async def gen(
    config: Config,
    metadata: AndroidMetadata,
    env: AndroidEnv,
    dot_cargo: DotCargo,
    filter: templating.Filter = templating.Filter.ALL,
) -> list[Path]:
    print("Installing Android toolchains...")
    await targets.install_all([t.triple for t in targets.ANDROID_TARGETS.values()])

    print("Generating Android Studio project...")
    project_dir = config.android.project_dir
    pack = templating.Pack.lookup(TEMPLATE_PACK)
    written = templating.process_chain(
        pack.resolve_chain(), project_dir, template_data(config, metadata), filter
    )
    written += copy_app_sources(config, metadata)
    for asset_pack in metadata.asset_packs:
        gen_asset_pack(project_dir, asset_pack)
    link_asset_dir(config)
    add_dot_cargo_targets(config, env, dot_cargo)
    return written
