import pytest

from mobkit import config as settings
from mobkit import rustc, teams
from mobkit.rustc import RustcError, RustVersion
from mobkit.versions import VersionTriple


def test_parse_stable():
    version = RustVersion.parse("rustc 1.79.0 (129f3b996 2024-06-10)\n")
    assert version.triple == VersionTriple(1, 79, 0)
    assert version.date == (2024, 6, 10)
    assert str(version) == "1.79.0 (129f3b996 2024-06-10)"


def test_parse_nightly_without_date():
    version = RustVersion.parse("rustc 1.48.0-beta.8")
    assert version.flavor == "beta"
    assert version.candidate == "8"
    assert version.date is None
    assert str(version) == "1.48.0-beta.8"


def test_parse_garbage():
    with pytest.raises(RustcError):
        RustVersion.parse("cargo 1.79.0")


@pytest.mark.parametrize(
    "text, valid",
    [
        ("rustc 1.45.2 (d3fb005a3 2020-07-31)", True),
        ("rustc 1.46.0 (04488afe3 2020-08-24)", False),
        ("rustc 1.48.0 (7eac88abb 2020-11-16)", False),
        ("rustc 1.49.0-nightly (ffa2e7ae8 2020-10-24)", True),
        ("rustc 1.49.0-nightly (4760b8fb8 2020-10-23)", False),
        ("rustc 1.79.0 (129f3b996 2024-06-10)", True),
    ],
)
def test_ios_linking_window(text, valid):
    assert RustVersion.parse(text).valid("darwin") is valid


def test_broken_versions_are_fine_off_macos():
    assert RustVersion.parse("rustc 1.46.0 (04488afe3 2020-08-24)").valid("linux")


async def test_check_version(recorder):
    recorder.respond([settings.RUSTC_BIN, "--version"], out="rustc 1.79.0 (129f3b996 2024-06-10)\n")
    assert (await rustc.check_version()).triple == VersionTriple(1, 79, 0)


async def test_rustup_add_failure(recorder):
    recorder.respond([settings.RUSTUP_BIN, "target", "add"], rc=1, err="error: toolchain not installed")
    with pytest.raises(RustcError, match="aarch64-linux-android"):
        await rustc.rustup_add("aarch64-linux-android")


IDENTITIES = """  1) 0123456789ABCDEF0123456789ABCDEF01234567 "Apple Development: Jo Doe (ABCDE12345)"
  2) 89ABCDEF0123456789ABCDEF0123456789ABCDEF "Apple Distribution: Jo Doe (ABCDE12345)"
  3) FEDCBA9876543210FEDCBA9876543210FEDCBA98 "Apple Development: Side Project (ZYXWV98765)"
     3 valid identities found
"""


def test_parse_identities_dedupes_teams():
    found = teams.parse_identities(IDENTITIES)
    assert [team.id for team in found] == ["ABCDE12345", "ZYXWV98765"]
    assert str(found[0]) == "Jo Doe (ABCDE12345)"


async def test_find_development_teams_tolerates_failure(recorder):
    recorder.respond([settings.SECURITY_BIN], rc=1, err="security: not found")
    assert await teams.find_development_teams() == []
