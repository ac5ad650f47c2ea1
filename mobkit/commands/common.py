"""commands/common.py — Helpers shared by the platform command handlers."""

import logging
import sys
from typing import Awaitable, Callable, Mapping, Optional, Sequence, TypeVar

from mobkit import platforms, targets
from mobkit.metadata import Metadata
from mobkit.platforms import BuildResult, DeployResult
from mobkit.project_config import Config
from mobkit.report import MobkitError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def load_project(cwd, platform_key: str, features: Optional[str] = None,
                 platform: str = sys.platform) -> tuple[Config, Metadata]:
    config = Config.load_or_raise(cwd, platform)
    metadata = Metadata.load(config.app.root_dir)
    platforms.require_supported(platform_key, metadata)
    metadata.add_features(features)
    return config, metadata


async def targets_with_fallback(
    names: Sequence[str],
    table: Mapping[str, T],
    kind: str,
    detect: Callable[[], Awaitable[Optional[T]]],
    default: str,
) -> list[T]:
    """Explicit targets, else the connected device's target, else the default."""
    if names:
        return targets.resolve_targets(names, table, kind)
    try:
        detected = await detect()
    except MobkitError as err:
        logger.info("couldn't detect a target from connected devices: %s", err)
        detected = None
    if detected is None:
        logger.info("falling back on default %s target %s", kind, default)
        return [table[default]]
    return [detected]


def print_build(result: BuildResult, what: str) -> int:
    if result.success:
        print(f"✅ {what} succeeded")
        return 0
    print(f"❌ {what} failed:\n{result.error}", file=sys.stderr)
    return 1


def print_deploy(result: DeployResult) -> int:
    print(result.message, file=sys.stdout if result.success else sys.stderr)
    return 0 if result.success else 1


def print_devices(devices: Sequence, kind: str):
    if not devices:
        print(f"No connected {kind} devices detected")
        return
    for index, device in enumerate(devices):
        print(f"  [{index}] {device}")