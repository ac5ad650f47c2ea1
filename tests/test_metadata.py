import pytest

from mobkit.metadata import BuildScript, Metadata, MetadataError, split_features


CARGO_TOML = """
[package]
name = "my-app"
version = "0.1.0"

[package.metadata.cargo-android]
features = ["vulkan"]
app-dependencies = ["androidx.core:core-ktx:1.12.0"]
asset-packs = [{ name = "levels", delivery-type = "on-demand" }]
some-other-tool = true

[package.metadata.cargo-apple]
supported = true

[package.metadata.cargo-apple.ios]
frameworks = ["Metal"]
pods = ["Alamofire", { name = "SwiftyJSON", version = "~> 5.0" }]
pre-build-scripts = [{ name = "Lint", script = "swiftlint", input-files = ["Sources"] }]

[package.metadata.cargo-apple.macos]
valid-archs = ["arm64"]
"""


def test_missing_cargo_toml_gives_defaults(tmp_path):
    metadata = Metadata.load(tmp_path)
    assert metadata.android.supported
    assert metadata.apple.supported
    assert metadata.apple.ios.valid_archs == ["arm64", "x86_64"]
    assert not metadata.android.has_code
    assert not metadata.android.no_default_features


def test_load_reads_platform_tables(tmp_path):
    (tmp_path / "Cargo.toml").write_text(CARGO_TOML, encoding="utf-8")
    metadata = Metadata.load(tmp_path)

    android = metadata.android
    assert android.no_default_features
    assert android.has_code
    assert android.asset_packs[0].name == "levels"
    assert android.asset_packs[0].delivery_type == "on-demand"

    ios = metadata.apple.ios
    assert ios.frameworks == ["Metal"]
    assert [pod.podfile_line() for pod in ios.pods] == [
        "pod 'Alamofire'",
        "pod 'SwiftyJSON', '~> 5.0'",
    ]
    assert ios.pre_build_scripts[0].to_xcodegen() == {
        "name": "Lint", "script": "swiftlint", "inputFiles": ["Sources"],
    }
    assert not ios.no_default_features
    assert metadata.apple.macos.valid_archs == ["arm64"]


def test_invalid_delivery_type(tmp_path):
    (tmp_path / "Cargo.toml").write_text(
        '[package.metadata.cargo-android]\nasset-packs = [{ name = "x", delivery-type = "whenever" }]\n',
        encoding="utf-8",
    )
    with pytest.raises(MetadataError, match="Cargo metadata"):
        Metadata.load(tmp_path)


def test_build_script_needs_script_or_path():
    with pytest.raises(ValueError):
        BuildScript(name="nothing")
    with pytest.raises(ValueError):
        BuildScript(script="a", path="b")
    assert BuildScript(path="scripts/lint.sh").to_xcodegen() == {"path": "scripts/lint.sh"}


def test_split_features():
    assert split_features("a,b c , d") == ["a", "b", "c", "d"]
    assert split_features(None) == []


def test_cli_features_merge_into_every_platform(tmp_path):
    (tmp_path / "Cargo.toml").write_text(CARGO_TOML, encoding="utf-8")
    metadata = Metadata.load(tmp_path).add_features("vulkan, audio")
    assert metadata.android_features() == ["vulkan", "audio"]
    assert metadata.ios_features() == ["vulkan", "audio"]
    assert metadata.macos_features() == ["vulkan", "audio"]


def test_unsupported_platform(tmp_path):
    (tmp_path / "Cargo.toml").write_text(
        "[package.metadata.cargo-android]\nsupported = false\n", encoding="utf-8"
    )
    assert not Metadata.load(tmp_path).android.supported
