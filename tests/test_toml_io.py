import tomllib

import pytest

from mobkit import toml_io


def test_dumps_tables_in_order():
    text = toml_io.dumps({"app": {"name": "x", "debug": True}, "env": {"FOO": "bar"}})
    assert text == '[app]\nname = "x"\ndebug = true\n\n[env]\nFOO = "bar"\n'


def test_dumps_skips_headers_of_tables_without_scalars():
    text = toml_io.dumps({"target": {"aarch64-linux-android": {"linker": "/ndk/clang"}}})
    assert text == '[target.aarch64-linux-android]\nlinker = "/ndk/clang"\n'


def test_dumps_keeps_empty_tables():
    text = toml_io.dumps({"package": {"metadata": {"cargo-android": {}}}})
    assert text == "[package.metadata.cargo-android]\n"


def test_dumps_quotes_keys_and_strings():
    text = toml_io.dumps({"env": {"MY.VAR": 'say "hi"\n', "LIST": [1, "a"]}})
    assert '"MY.VAR" = "say \\"hi\\"\\n"' in text
    assert 'LIST = [1, "a"]' in text
    assert tomllib.loads(text) == {"env": {"MY.VAR": 'say "hi"\n', "LIST": [1, "a"]}}


def test_dumps_table_arrays():
    text = toml_io.dumps({"bin": [{"name": "a"}, {"name": "b"}]})
    assert text == '[[bin]]\nname = "a"\n\n[[bin]]\nname = "b"\n'


def test_unsupported_values_raise():
    with pytest.raises(toml_io.TomlError):
        toml_io.dumps({"a": object()})


def test_load_errors_name_the_file(tmp_path):
    path = tmp_path / "broken.toml"
    path.write_text("a = ", encoding="utf-8")
    with pytest.raises(toml_io.TomlError, match="broken.toml"):
        toml_io.load_toml(path)
    with pytest.raises(toml_io.TomlError, match="Failed to read"):
        toml_io.load_toml(tmp_path / "missing.toml")


def test_write_creates_parent_dirs(tmp_path):
    path = tmp_path / ".cargo" / "config.toml"
    toml_io.write_toml(path, {"build": {"target": "aarch64-linux-android"}})
    assert tomllib.loads(path.read_text(encoding="utf-8")) == {"build": {"target": "aarch64-linux-android"}}
