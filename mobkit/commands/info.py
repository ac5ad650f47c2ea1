"""commands/info.py — `config` and `list`."""

import sys

from mobkit import devices, toml_io
from mobkit.commands.common import print_devices
from mobkit.env import AndroidEnv
from mobkit.project_config import Config
from mobkit.report import MobkitError


def show_config(cwd, platform: str = sys.platform) -> int:
    config = Config.load_or_raise(cwd, platform)
    print(f"# {config.path}")
    print(toml_io.dumps(config.to_dict()), end="")
    return 0


async def list_devices(platform: str = sys.platform, environ=None) -> int:
    rc = 0
    print("Android:")
    try:
        env = AndroidEnv.from_environ(environ)
    except MobkitError as err:
        print(f"  Android environment isn't set up: {err}")
    else:
        try:
            print_devices(await devices.list_android_devices(env.explicit_env()), "Android")
        except MobkitError as err:
            print(f"❌ Failed to get Android device list: {err}", file=sys.stderr)
            rc = 1
    if platform == "darwin":
        print("iOS:")
        try:
            print_devices(await devices.list_ios_devices(), "iOS")
        except MobkitError as err:
            print(f"❌ Failed to get iOS device list: {err}", file=sys.stderr)
            rc = 1
    return rc
