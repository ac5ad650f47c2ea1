"""
bundletool.py — Google's bundletool, for installing .aab builds on devices.

On macOS it comes from Homebrew; elsewhere the release jar is downloaded
into the mobkit tools dir and run with `java -jar`.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import aiohttp

from mobkit import config, paths
from mobkit.apple_deps import PackageSpec
from mobkit.report import MobkitError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


class BundletoolError(MobkitError):
    pass


def jar_name(version: str = None) -> str:
    return f"bundletool-all-{version or config.BUNDLETOOL_VERSION}.jar"


def jar_path() -> Path:
    return paths.tools_dir() / jar_name()


def download_url(version: str = None) -> str:
    version = version or config.BUNDLETOOL_VERSION
    return f"https://github.com/google/bundletool/releases/download/{version}/{jar_name(version)}"


def command(platform: str = sys.platform) -> list[str]:
    if platform == "darwin":
        return ["bundletool"]
    return [config.JAVA_BIN, "-jar", str(jar_path())]


async def download(url: str, dest: Path, timeout_secs: Optional[float] = None):
    dest.parent.mkdir(parents=True, exist_ok=True)
    partial = dest.with_name(dest.name + ".part")
    timeout = aiohttp.ClientTimeout(total=timeout_secs or config.DOWNLOAD_TIMEOUT)
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url) as resp:
                if resp.status != 200:
                    raise BundletoolError("Failed to download `bundletool`", f"HTTP {resp.status} from {url}")
                with open(partial, "wb") as out:
                    async for chunk in resp.content.iter_chunked(_CHUNK_SIZE):
                        out.write(chunk)
    except aiohttp.ClientError as e:
        partial.unlink(missing_ok=True)
        raise BundletoolError("Failed to download `bundletool`", str(e)) from e
    except asyncio.TimeoutError as e:
        partial.unlink(missing_ok=True)
        raise BundletoolError(
            "Failed to download `bundletool`", f"Timed out after {timeout.total:g}s fetching {url}"
        ) from e
    except BaseException:
        partial.unlink(missing_ok=True)
        raise
    partial.replace(dest)
    logger.info("downloaded %s to %s", url, dest)


async def install(reinstall: bool = False, platform: str = sys.platform) -> bool:
    if platform == "darwin":
        return await PackageSpec.brew("bundletool").install(reinstall)
    path = jar_path()
    if path.exists() and not reinstall:
        logger.info("bundletool already installed at %s", path)
        return False
    print(f"Downloading bundletool {config.BUNDLETOOL_VERSION}...")
    await download(download_url(), path)
    return True
