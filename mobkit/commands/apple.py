"""
commands/apple.py — `mobkit apple ...` handlers.
"""

import sys
from pathlib import Path

from mobkit import devices, targets
from mobkit.commands.common import (
    load_project,
    print_build,
    print_deploy,
    print_devices,
    targets_with_fallback,
)
from mobkit.env import Env
from mobkit.parser import Command
from mobkit.platforms import ApplePlatform


async def _select_device(non_interactive: bool) -> devices.IosDevice:
    return devices.select_device(await devices.list_ios_devices(), "iOS", non_interactive)


async def handle(cmd: Command, cwd, platform: str = sys.platform) -> int:
    if cmd.sub == "list":
        print_devices(await devices.list_ios_devices(), "iOS")
        return 0

    config, metadata = load_project(cwd, "apple", cmd.features, platform)
    apple = config.require_apple()
    env = Env.from_environ()

    async def detect():
        return (await _select_device(cmd.non_interactive)).target

    match cmd.sub:
        case "open":
            return print_deploy(await ApplePlatform.open(config, platform))
        case "check":
            chosen = await targets_with_fallback(
                cmd.targets, targets.APPLE_TARGETS, "iOS", detect, targets.DEFAULT_APPLE_TARGET
            )
            for target in chosen:
                rc = print_build(
                    await ApplePlatform.check(config, metadata, env, target, cmd.noise),
                    f"`check` for {target.triple}",
                )
                if rc != 0:
                    return rc
            return 0
        case "build" | "archive":
            ApplePlatform.ensure_init(config)
            chosen = await targets_with_fallback(
                cmd.targets, targets.APPLE_TARGETS, "iOS", detect, targets.DEFAULT_APPLE_TARGET
            )
            for target in chosen:
                rc = print_build(
                    await ApplePlatform.build(config, env, target, cmd.release, cmd.noise),
                    f"`build` for {target.triple}",
                )
                if rc != 0:
                    return rc
                if cmd.sub == "build":
                    continue
                version = apple.bundle_version
                if cmd.build_number is not None:
                    version = version.push_extra(cmd.build_number)
                rc = print_build(
                    await ApplePlatform.archive(config, env, target, cmd.release, version),
                    f"`archive` for {target.triple}",
                )
                if rc != 0:
                    return rc
            return 0
        case "run":
            ApplePlatform.ensure_init(config)
            device = await _select_device(cmd.non_interactive)
            return print_deploy(await ApplePlatform.run(
                config, env, device, cmd.release, cmd.noise, cmd.non_interactive
            ))
        case "pod":
            return await ApplePlatform.pod(config, cmd.args)
        case "xcode-script":
            await ApplePlatform.xcode_script(
                config, metadata, env, cmd.args, Path(cmd.sdk_root), cmd.platform_name,
                cmd.release, cmd.noise,
            )
            return 0
        case _:
            raise ValueError(f"unknown apple subcommand {cmd.sub!r}")
