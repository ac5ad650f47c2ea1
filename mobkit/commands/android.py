"""
commands/android.py — `mobkit android ...` handlers.
"""

import sys

from mobkit import devices, targets
from mobkit.commands.common import (
    load_project,
    print_build,
    print_deploy,
    print_devices,
    targets_with_fallback,
)
from mobkit.env import AndroidEnv
from mobkit.parser import Command
from mobkit.platforms import AndroidPlatform, LogcatLevel


async def _select_device(env: AndroidEnv, non_interactive: bool) -> devices.AndroidDevice:
    found = await devices.list_android_devices(env.explicit_env())
    return devices.select_device(found, "Android", non_interactive)


async def handle(cmd: Command, cwd, platform: str = sys.platform) -> int:
    if cmd.sub == "list":
        env = AndroidEnv.from_environ()
        print_devices(await devices.list_android_devices(env.explicit_env()), "Android")
        return 0

    config, metadata = load_project(cwd, "android", cmd.features, platform)
    if cmd.sub == "open":
        return print_deploy(await AndroidPlatform.open(config, platform))

    env = AndroidEnv.from_environ()

    async def detect():
        return (await _select_device(env, cmd.non_interactive)).target

    match cmd.sub:
        case "check" | "build" | "apk" | "aab":
            chosen = await targets_with_fallback(
                cmd.targets, targets.ANDROID_TARGETS, "Android", detect, targets.DEFAULT_ANDROID_TARGET
            )
            if cmd.sub != "check":
                AndroidPlatform.ensure_init(config)
            for target in chosen:
                if cmd.sub == "check":
                    result = await AndroidPlatform.check(config, metadata, env, target, cmd.noise)
                elif cmd.sub == "build":
                    result = await AndroidPlatform.build_lib(
                        config, metadata, env, target, cmd.release, cmd.noise
                    )
                else:
                    result = await AndroidPlatform.build(
                        config, metadata, env, target, cmd.release, cmd.noise, app_bundle=cmd.sub == "aab"
                    )
                rc = print_build(result, f"`{cmd.sub}` for {target.triple}")
                if rc != 0:
                    return rc
            return 0
        case "run":
            AndroidPlatform.ensure_init(config)
            device = await _select_device(env, cmd.non_interactive)
            level = LogcatLevel.parse(cmd.filter) if cmd.filter else None
            return print_deploy(await AndroidPlatform.run(
                config, metadata, env, device, cmd.release, cmd.noise, level, cmd.app_bundle
            ))
        case "st":
            AndroidPlatform.ensure_init(config)
            device = await _select_device(env, cmd.non_interactive)
            print(await AndroidPlatform.stacktrace(config, env, device))
            return 0
        case _:
            raise ValueError(f"unknown android subcommand {cmd.sub!r}")
