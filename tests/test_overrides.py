import pytest
import yaml

from guibundler.errors import InvalidTargetError, OverrideError
from guibundler.models import BuildTarget, ResourceMapping
from guibundler.overrides import BuildConfig, load_overrides


@pytest.fixture
def base_config(script):
    return BuildConfig.resolve(BuildTarget(script_path=script))


def test_scalars_replace_resolved_values(base_config, tmp_path):
    merged = base_config.merged(
        {"name": "Renamed", "onefile": True, "windowed": True, "distpath": str(tmp_path / "out")}
    )

    assert merged.target.output_name == "Renamed"
    assert merged.target.one_file is True
    assert merged.target.windowed is True
    assert merged.target.dist_dir == tmp_path / "out"
    assert base_config.target.output_name == "app"


def test_sets_are_unioned(base_config):
    merged = base_config.merged({"hidden_imports": ["PIL.ImageTk"], "excludes": "numpy"})
    assert "PIL.ImageTk" in merged.hidden_imports
    assert "tkinter" in merged.hidden_imports
    assert merged.target.excludes == frozenset({"numpy"})


def test_add_data_is_appended_last_writer_wins(script, tmp_path):
    first = tmp_path / "theme_light.json"
    second = tmp_path / "theme_dark.json"
    first.write_text("{}", encoding="utf-8")
    second.write_text("{}", encoding="utf-8")
    config = BuildConfig.resolve(
        BuildTarget(
            script_path=script,
            extra_resources=(ResourceMapping(source_path=first, dest_path="theme"),),
        )
    )

    merged = config.merged({"add_data": [{"src": str(second), "dst": "theme"}]})

    assert [m.source_path for m in merged.resources] == [first, second]


def test_add_data_accepts_strings(base_config, tmp_path):
    assets = tmp_path / "assets"
    assets.mkdir()
    merged = base_config.merged({"add_data": [f"{assets}:assets"]})
    assert merged.resources[-1] == ResourceMapping(source_path=assets, dest_path="assets")


def test_icon_override_adds_mapping(base_config, tmp_path):
    icon = tmp_path / "new.ico"
    icon.write_bytes(b"\x00")
    merged = base_config.merged({"icon": str(icon)})
    assert merged.target.icon_path == icon
    assert merged.resources[-1] == ResourceMapping(source_path=icon, dest_path=".")


def test_icon_override_replaces_previous_icon_mapping(script, tmp_path):
    old = tmp_path / "old.ico"
    new = tmp_path / "new.ico"
    old.write_bytes(b"\x00")
    new.write_bytes(b"\x00")
    config = BuildConfig.resolve(BuildTarget(script_path=script, icon_path=old))

    merged = config.merged({"icon": str(new)})

    sources = [mapping.source_path for mapping in merged.resources]
    assert old not in sources
    assert sources.count(new) == 1
    assert merged.target.icon_path == new


def test_missing_icon_override_is_invalid(base_config, tmp_path):
    with pytest.raises(InvalidTargetError):
        base_config.merged({"icon": str(tmp_path / "missing.ico")})


def test_empty_overrides_return_same_config(base_config):
    assert base_config.merged({}) is base_config
    assert base_config.merged(None) is base_config


def test_unknown_key_is_rejected(base_config):
    with pytest.raises(OverrideError) as exc:
        base_config.merged({"onefle": True})
    assert "onefle" in str(exc.value)


def test_non_string_keys_are_rejected(base_config):
    with pytest.raises(OverrideError) as exc:
        base_config.merged({1: "a", "bogus": "b"})
    assert "must be strings" in str(exc.value)


@pytest.mark.parametrize(
    "overrides",
    [
        {"onefile": "yes"},
        {"name": ""},
        {"hidden_imports": [1, 2]},
        {"add_data": "assets:assets"},
        {"add_data": [{"src": "a"}]},
    ],
)
def test_bad_values_are_rejected(base_config, overrides):
    with pytest.raises(OverrideError):
        base_config.merged(overrides)


def test_load_overrides_anchors_relative_paths(tmp_path):
    project = tmp_path / "project"
    (project / "assets").mkdir(parents=True)
    build_file = project / "build.yaml"
    build_file.write_text(
        yaml.safe_dump(
            {
                "name": "Demo",
                "onefile": True,
                "add_data": [{"src": "assets", "dst": "assets"}, "assets:more"],
            }
        ),
        encoding="utf-8",
    )

    data = load_overrides(build_file)

    assert data["name"] == "Demo"
    assert data["add_data"][0] == {"src": str(project / "assets"), "dst": "assets"}
    assert data["add_data"][1] == {"src": str(project / "assets"), "dst": "more"}


def test_load_overrides_empty_file(tmp_path):
    build_file = tmp_path / "empty.yaml"
    build_file.write_text("", encoding="utf-8")
    assert load_overrides(build_file) == {}


def test_load_overrides_requires_mapping(tmp_path):
    build_file = tmp_path / "list.yaml"
    build_file.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(OverrideError):
        load_overrides(build_file)


def test_load_overrides_invalid_yaml(tmp_path):
    build_file = tmp_path / "broken.yaml"
    build_file.write_text("name: [unclosed\n", encoding="utf-8")
    with pytest.raises(OverrideError):
        load_overrides(build_file)


def test_load_overrides_missing_file(tmp_path):
    with pytest.raises(OverrideError):
        load_overrides(tmp_path / "missing.yaml")
