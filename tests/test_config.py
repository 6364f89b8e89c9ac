"""Tests for YAML configuration loading and overrides."""
import pytest
import yaml

from labelcrop.core import ConfigurationError, CropConfig, load_config, parse_label_list

from conftest import PROJECT_ROOT


def write_yaml(path, data):
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f)
    return path


def test_shipped_config_loads():
    config = load_config(PROJECT_ROOT / "configs" / "crop_config.yaml")
    assert config.parent_label == "person"
    assert config.required_child_labels == ["helmet", "vest"]
    assert config.padding_factor == 1.2
    assert config.output.include_parent is True
    assert config.performance.max_workers == 1
    assert config.preview.num_previews == 5


def test_load_custom_config(temp_dir):
    path = write_yaml(temp_dir / "cfg.yaml", {
        "source_dir": "data/in",
        "output_dir": "data/out",
        "parent_label": "worker",
        "required_child_labels": "helmet, vest, helmet",
        "padding_factor": 1.5,
        "output": {"include_parent": False, "recursive": True},
        "performance": {"max_workers": 4},
    })

    config = load_config(path)
    config.validate()

    assert config.parent_label == "worker"
    assert config.required_child_labels == ["helmet", "vest"]
    assert config.output.include_parent is False
    assert config.output.recursive is True
    assert config.output.retain_only_required is False
    assert config.performance.max_workers == 4


def test_missing_config_file(temp_dir):
    with pytest.raises(ConfigurationError):
        load_config(temp_dir / "nope.yaml")


def test_invalid_yaml(temp_dir):
    path = temp_dir / "bad.yaml"
    path.write_text("source_dir: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(path)


def test_non_mapping_root(temp_dir):
    path = temp_dir / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(path)


def test_empty_file_gives_defaults(temp_dir):
    path = temp_dir / "empty.yaml"
    path.write_text("", encoding="utf-8")
    config = load_config(path)
    assert config == CropConfig()


@pytest.mark.parametrize("changes", [
    {"source_dir": ""},
    {"output_dir": "  "},
    {"parent_label": ""},
    {"padding_factor": 0},
    {"padding_factor": "abc"},
])
def test_validate_rejects(changes):
    config = CropConfig(source_dir="in", output_dir="out").override(**changes)
    with pytest.raises(ConfigurationError):
        config.validate()


def test_invalid_nested_values(temp_dir):
    with pytest.raises(ConfigurationError):
        CropConfig.from_dict({"performance": {"max_workers": 0}})
    with pytest.raises(ConfigurationError):
        CropConfig.from_dict({"preview": {"num_previews": -2}})


def test_override_skips_none_and_routes_nested_keys():
    base = CropConfig(source_dir="in", parent_label="person")
    merged = base.override(
        source_dir=None,
        parent_label="rider",
        required_child_labels="helmet,gloves",
        max_workers=2,
        include_parent=False,
        num_previews=9,
    )

    assert merged.source_dir == "in"
    assert merged.parent_label == "rider"
    assert merged.required_child_labels == ["helmet", "gloves"]
    assert merged.performance.max_workers == 2
    assert merged.output.include_parent is False
    assert merged.preview.num_previews == 9
    assert base.parent_label == "person"
    assert base.performance.max_workers == 1


def test_override_unknown_key():
    with pytest.raises(ConfigurationError):
        CropConfig().override(colour="red")


def test_parse_label_list():
    assert parse_label_list(None) == []
    assert parse_label_list(" helmet ,vest,,helmet") == ["helmet", "vest"]
    assert parse_label_list(["a", " b ", ""]) == ["a", "b"]
