"""
cli.py — Entry point: parse argv, set up logging, dispatch, report errors.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from mobkit import config, doctor
from mobkit.commands import android, apple, create, info
from mobkit.logging_utils import setup_logging
from mobkit.parser import Command, parse
from mobkit.report import MobkitError

logger = logging.getLogger(__name__)


async def dispatch(cmd: Command, cwd: Path, platform: str = sys.platform) -> int:
    match cmd.name:
        case "init":
            return await create.init(cmd, cwd, platform)
        case "new":
            return await create.new(cmd, cwd, platform)
        case "update":
            return await create.update(cmd, cwd, platform)
        case "config":
            rc = info.show_config(cwd, platform)
            if cmd.noise:
                print("\n# tool settings")
                config.print_config_summary()
            return rc
        case "doctor":
            return await doctor.run(platform)
        case "list":
            return await info.list_devices(platform)
        case "android":
            return await android.handle(cmd, cwd, platform)
        case "apple":
            return await apple.handle(cmd, cwd, platform)
        case _:
            raise ValueError(f"unknown command {cmd.name!r}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    cmd = parse(argv)
    setup_logging(cmd.noise, config.LOG_LEVEL)
    logger.debug("parsed %s", cmd)
    try:
        rc = asyncio.run(dispatch(cmd, Path.cwd()))
    except MobkitError as err:
        err.report().print()
        rc = 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        rc = 130
    return rc


if __name__ == "__main__":
    sys.exit(main())
