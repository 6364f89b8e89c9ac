"""Tests for the command-line entry point."""
import json
import logging

import pytest
import yaml

import main
from labelcrop.core.constants import DEFAULT_LOGGER_NAME

from conftest import rect


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop the handlers the CLI installs so later tests do not write to a closed stream."""
    yield
    package_logger = logging.getLogger(DEFAULT_LOGGER_NAME)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


def crop_args(source, output, *extra):
    return ["crop", "--source", str(source), "--output", str(output), "--no-progress", *extra]


def test_crop_success(worker_dataset, output_dir):
    code = main.main(crop_args(worker_dataset.root, output_dir, "--children", "helmet,vest"))
    assert code == 0
    assert len(list(output_dir.glob("*.json"))) == 3


def test_crop_with_per_file_errors(dataset, output_dir):
    dataset.add("good", [rect("person", 100, 100, 300, 500)])
    dataset.add("bad")
    dataset.write_text("bad.json", "{")

    assert main.main(crop_args(dataset.root, output_dir)) == 2


def test_crop_invalid_padding(dataset, output_dir):
    assert main.main(crop_args(dataset.root, output_dir, "--padding", "0")) == 1


def test_crop_missing_source(temp_dir):
    assert main.main(crop_args(temp_dir / "missing", temp_dir / "out")) == 1


def test_crop_flags(dataset, output_dir):
    dataset.add("f", [
        rect("person", 100, 100, 300, 500),
        rect("helmet", 150, 90, 250, 160),
        rect("glove", 110, 400, 140, 430),
    ])
    code = main.main(crop_args(
        dataset.root, output_dir,
        "--children", "helmet", "--exclude-parent", "--retain-only-required", "--workers", "2",
    ))
    assert code == 0

    with open(output_dir / "f_person_0.json", encoding="utf-8") as f:
        labels = [s["label"] for s in json.load(f)["shapes"]]
    assert labels == ["helmet"]


def test_config_file_with_overrides(worker_dataset, temp_dir):
    config_path = temp_dir / "cfg.yaml"
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump({
            "source_dir": str(worker_dataset.root),
            "output_dir": str(temp_dir / "from_config"),
            "required_child_labels": ["vest"],
        }, f)

    code = main.main(["crop", "--config", str(config_path), "--children", "helmet", "--no-progress"])

    assert code == 0
    assert sorted(p.name for p in (temp_dir / "from_config").glob("*.json")) == [
        "site_a_person_0.json", "site_c_person_0.json",
    ]


def test_preview(worker_dataset, temp_dir):
    code = main.main([
        "preview", "--source", str(worker_dataset.root),
        "--temp", str(temp_dir / "previews"), "--count", "2", "--seed", "1",
    ])
    assert code == 0
    assert len(list((temp_dir / "previews").glob("preview_*.jpg"))) == 2


def test_preview_negative_count(worker_dataset, temp_dir):
    code = main.main([
        "preview", "--source", str(worker_dataset.root),
        "--temp", str(temp_dir / "previews"), "--count", "-1",
    ])
    assert code == 1


def test_interrupt_exit_code(worker_dataset, output_dir, monkeypatch):
    def interrupted(*args, **kwargs):
        raise KeyboardInterrupt

    monkeypatch.setattr(main, "crop_and_remap_from_config", interrupted)
    assert main.main(crop_args(worker_dataset.root, output_dir)) == 130


def test_subcommand_required():
    with pytest.raises(SystemExit):
        main.parse_arguments([])
