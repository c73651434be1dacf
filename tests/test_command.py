import os
import shlex
import sys

import pytest

from guibundler.bundler import DEFAULT_BUNDLER, BundlerCommand
from guibundler.command import ADD_DATA_SEPARATOR, build, build_config, format_command
from guibundler.errors import EncodingError
from guibundler.models import BuildTarget, ResourceMapping
from guibundler.overrides import BuildConfig


def _pairs(arguments, flag):
    return [arguments[i + 1] for i, value in enumerate(arguments) if value == flag]


def test_build_is_deterministic(script):
    target = BuildTarget(script_path=script, one_file=True)
    imports = {"tkinter.ttk", "tkinter", "PIL.ImageTk", "tkinter.filedialog"}

    first = build(target, imports, ())
    second = build(target, set(sorted(imports, reverse=True)), ())

    assert first == second
    assert _pairs(first.arguments, "--hidden-import") == sorted(imports)


def test_mapping_order_is_preserved(script, tmp_path):
    a, b = tmp_path / "a", tmp_path / "b"
    mappings = [
        ResourceMapping(source_path=b, dest_path="Y"),
        ResourceMapping(source_path=a, dest_path="X"),
    ]

    descriptor = build(BuildTarget(script_path=script), set(), mappings)

    assert _pairs(descriptor.arguments, "--add-data") == [
        f"{b}{ADD_DATA_SEPARATOR}Y",
        f"{a}{ADD_DATA_SEPARATOR}X",
    ]


def test_false_flags_are_omitted(script):
    descriptor = build(BuildTarget(script_path=script), set(), ())
    for flag in ("--onefile", "--windowed", "--clean", "--icon", "--distpath", "--workpath"):
        assert flag not in descriptor.arguments


def test_true_flags_are_emitted(script, tmp_path):
    target = BuildTarget(
        script_path=script,
        output_name="Tool",
        one_file=True,
        windowed=True,
        clean=True,
        icon_path=tmp_path / "app.ico",
        dist_dir=tmp_path / "dist",
        work_dir=tmp_path / "work",
        excludes={"numpy", "pandas"},
    )

    args = build(target, set(), ()).arguments

    assert "--onefile" in args
    assert "--windowed" in args
    assert "--clean" in args
    assert _pairs(args, "--name") == ["Tool"]
    assert _pairs(args, "--icon") == [str(tmp_path / "app.ico")]
    assert _pairs(args, "--distpath") == [str(tmp_path / "dist")]
    assert _pairs(args, "--workpath") == [str(tmp_path / "work")]
    assert _pairs(args, "--exclude-module") == ["numpy", "pandas"]


def test_default_bundler_and_script_position(script):
    descriptor = build(BuildTarget(script_path=script), {"tkinter"}, ())

    assert descriptor.executable == sys.executable
    assert descriptor.arguments[:2] == ("-m", "PyInstaller")
    assert descriptor.arguments[-1] == str(script)
    assert descriptor.arguments[2] == "--noconfirm"
    assert _pairs(descriptor.arguments, "--name") == ["app"]


def test_custom_bundler_executable(script):
    bundler = BundlerCommand(executable="/opt/tools/pyinstaller")
    descriptor = build(BuildTarget(script_path=script), set(), (), bundler=bundler)
    assert descriptor.executable == "/opt/tools/pyinstaller"
    assert descriptor.arguments[0] == "--noconfirm"


def test_control_characters_are_rejected(script):
    target = BuildTarget(script_path=script, output_name="bad\nname")
    with pytest.raises(EncodingError):
        build(target, set(), ())


def test_separator_in_resource_is_rejected(script, tmp_path):
    mapping = ResourceMapping(source_path=tmp_path / "data", dest_path=f"a{os.pathsep}b")
    with pytest.raises(EncodingError) as exc:
        build(BuildTarget(script_path=script), set(), [mapping])
    assert os.pathsep in exc.value.value


def test_nul_in_hidden_import_is_rejected(script):
    with pytest.raises(EncodingError):
        build(BuildTarget(script_path=script), {"tk\x00inter"}, ())


def test_build_config_matches_build(script):
    config = BuildConfig.resolve(BuildTarget(script_path=script))
    expected = build(config.target, config.hidden_imports, config.resources, bundler=DEFAULT_BUNDLER)
    assert build_config(config) == expected


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX quoting")
def test_format_command_quotes_spaces(tmp_path):
    spaced = tmp_path / "my app.py"
    spaced.write_text("", encoding="utf-8")
    descriptor = build(BuildTarget(script_path=spaced), set(), ())

    rendered = format_command(descriptor)

    assert shlex.split(rendered) == list(descriptor.argv)
