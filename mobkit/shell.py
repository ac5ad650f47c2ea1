"""
shell.py — Subprocess helpers shared by every toolchain driver.

  - run()              → capture stdout/stderr, with a timeout
  - run_passthrough()  → inherit the terminal (gradle, logcat, pod)
  - which()            → locate a binary on PATH
"""

import asyncio
import logging
import os
import shlex
import shutil
from typing import Optional

from mobkit import config

logger = logging.getLogger(__name__)


def _merged_env(env: Optional[dict[str, str]]) -> Optional[dict[str, str]]:
    if env is None:
        return None
    return {**os.environ, **env}


def display(cmd: list[str]) -> str:
    return " ".join(shlex.quote(str(part)) for part in cmd)


async def run(
    cmd: list[str],
    cwd: str = None,
    env: Optional[dict[str, str]] = None,
    timeout: int = None,
    stdin: Optional[str] = None,
) -> tuple[int, str, str]:
    timeout = timeout or config.COMMAND_TIMEOUT
    cmd = [str(part) for part in cmd]
    logger.debug("running %s", display(cmd))
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            env=_merged_env(env),
        )
    except FileNotFoundError:
        return 127, "", f"{cmd[0]}: command not found"
    try:
        out, err = await asyncio.wait_for(
            proc.communicate(stdin.encode() if stdin is not None else None),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        return -1, "", "Timed out"
    return proc.returncode, out.decode(errors="replace"), err.decode(errors="replace")


async def run_passthrough(
    cmd: list[str],
    cwd: str = None,
    env: Optional[dict[str, str]] = None,
    timeout: Optional[int] = None,
) -> int:
    """Run with the terminal attached. No timeout unless one is given."""
    cmd = [str(part) for part in cmd]
    logger.info("running %s", display(cmd))
    try:
        proc = await asyncio.create_subprocess_exec(*cmd, cwd=cwd, env=_merged_env(env))
    except FileNotFoundError:
        logger.error("%s: command not found", cmd[0])
        return 127
    try:
        return await asyncio.wait_for(proc.wait(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        return -1


def which(name: str) -> Optional[str]:
    return shutil.which(name)
