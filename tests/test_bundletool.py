import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from mobkit import bundletool, paths
from mobkit import config as settings
from mobkit.bundletool import BundletoolError


@pytest.fixture
def tools_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(paths, "tools_dir", lambda: tmp_path / "tools")
    return tmp_path / "tools"


def test_release_urls():
    assert bundletool.jar_name("1.15.6") == "bundletool-all-1.15.6.jar"
    assert bundletool.download_url("1.15.6") == (
        "https://github.com/google/bundletool/releases/download/1.15.6/bundletool-all-1.15.6.jar"
    )


def test_command(tools_dir):
    assert bundletool.command("darwin") == ["bundletool"]
    assert bundletool.command("linux") == [
        settings.JAVA_BIN, "-jar", str(tools_dir / bundletool.jar_name())
    ]


async def test_install_skips_existing_jar(tools_dir, monkeypatch):
    async def fail(url, dest):
        pytest.fail("should not download")

    monkeypatch.setattr(bundletool, "download", fail)
    tools_dir.mkdir()
    (tools_dir / bundletool.jar_name()).write_bytes(b"jar")
    assert await bundletool.install(platform="linux") is False


async def test_install_downloads_missing_jar(tools_dir, monkeypatch):
    fetched = []

    async def fake_download(url, dest):
        fetched.append((url, dest))

    monkeypatch.setattr(bundletool, "download", fake_download)
    assert await bundletool.install(platform="linux") is True
    assert fetched == [(bundletool.download_url(), tools_dir / bundletool.jar_name())]


async def test_install_on_macos_uses_homebrew(recorder, monkeypatch):
    from mobkit import shell

    monkeypatch.setattr(shell, "which", lambda name: None)
    assert await bundletool.install(platform="darwin") is True
    assert recorder.passthrough_commands == [[settings.BREW_BIN, "reinstall", "bundletool"]]


async def _serve(handler):
    app = web.Application()
    app.router.add_get("/bundletool.jar", handler)
    return TestServer(app)


async def test_download_writes_file(tmp_path):
    async def handler(request):
        return web.Response(body=b"PK\x03\x04jar")

    dest = tmp_path / "tools" / "bundletool.jar"
    async with await _serve(handler) as server:
        await bundletool.download(str(server.make_url("/bundletool.jar")), dest)
    assert dest.read_bytes() == b"PK\x03\x04jar"
    assert not dest.with_name("bundletool.jar.part").exists()


async def test_download_http_error(tmp_path):
    async def handler(request):
        return web.Response(status=404)

    dest = tmp_path / "bundletool.jar"
    async with await _serve(handler) as server:
        with pytest.raises(BundletoolError, match="Failed to download"):
            await bundletool.download(str(server.make_url("/bundletool.jar")), dest)
    assert not dest.exists()


async def test_download_timeout_removes_partial_file(tmp_path):
    release = asyncio.Event()

    async def handler(request):
        resp = web.StreamResponse()
        await resp.prepare(request)
        await resp.write(b"PK\x03\x04")
        await release.wait()
        return resp

    dest = tmp_path / "bundletool.jar"
    async with await _serve(handler) as server:
        try:
            with pytest.raises(BundletoolError, match="Failed to download"):
                await bundletool.download(str(server.make_url("/bundletool.jar")), dest, timeout_secs=0.5)
        finally:
            release.set()
    assert not dest.exists()
    assert not dest.with_name("bundletool.jar.part").exists()
