"""
Tests for the command-line interface.
"""

import json

import cv2
import numpy as np
import pytest

import facecrop.cli as cli_module
import facecrop.detector as detector_module
from facecrop.cli import main, parse_args


class _FakeCascade:
    def detectMultiScale(self, image, **kwargs):
        return [(8, 8, 32, 32)]


@pytest.fixture
def images(tmp_path):
    paths = []
    for name in ("one.jpg", "two.jpg"):
        path = tmp_path / "in" / name
        path.parent.mkdir(exist_ok=True)
        cv2.imwrite(str(path), np.full((64, 80, 3), 90, dtype=np.uint8))
        paths.append(str(path))
    return paths


def test_parse_args_sizes():
    args = parse_args(["a.jpg", "--min-size", "40", "--size", "128x96", "-j", "3"])
    assert args.inputs == ["a.jpg"]
    assert args.min_size == (40, 40)
    assert args.size == (128, 96)
    assert args.jobs == 3
    assert args.verbose is None


def test_parse_args_rejects_bad_size():
    with pytest.raises(SystemExit) as exc:
        parse_args(["a.jpg", "--size", "big"])
    assert exc.value.code == 2


def test_parse_args_requires_input():
    with pytest.raises(SystemExit) as exc:
        parse_args([])
    assert exc.value.code == 2


def test_main_blank_images(images, tmp_path):
    out = tmp_path / "faces"

    code = main(images + ["-o", str(out), "-j", "2"])

    assert code == 0
    assert out.is_dir()
    assert list(out.iterdir()) == []


def test_main_writes_faces(images, tmp_path, monkeypatch):
    monkeypatch.setattr(detector_module, "load_cascade", lambda config: _FakeCascade())
    out = tmp_path / "faces"

    code = main(images + [
        "-o", str(out), "--size", "16", "--manifest", "json", "--adjust", "expand",
    ])

    assert code == 0
    assert sorted(p.name for p in out.glob("*.jpg")) == ["one_face000.jpg", "two_face000.jpg"]
    assert cv2.imread(str(out / "one_face000.jpg")).shape == (16, 16, 3)
    payload = json.loads((out / "manifest.json").read_text(encoding="utf-8"))
    assert payload["total_crops"] == 2
    assert payload["crops"][0]["width"] == 48


def test_main_config_file(images, tmp_path, monkeypatch):
    monkeypatch.setattr(detector_module, "load_cascade", lambda config: _FakeCascade())
    out = tmp_path / "from_yaml"
    config = tmp_path / "facecrop.yaml"
    config.write_text(
        f"output:\n  directory: {out}\n  image_format: png\ncrop:\n  size: 20\n",
        encoding="utf-8",
    )

    assert main(images + ["--config", str(config)]) == 0
    assert (out / "two_face000.png").is_file()


def test_main_invalid_option_value(images, tmp_path):
    assert main(images + ["-o", str(tmp_path / "x"), "--jobs", "0"]) == 1


def test_main_missing_input(tmp_path):
    assert main([str(tmp_path / "nope.jpg"), "-o", str(tmp_path / "x")]) == 1


def test_main_missing_config(images, tmp_path):
    assert main(images + ["--config", str(tmp_path / "missing.yaml")]) == 1


def test_main_missing_cascade(images, tmp_path):
    code = main(images + [
        "-o", str(tmp_path / "x"), "--cascade", str(tmp_path / "missing.xml"),
    ])
    assert code == 1


def test_main_interrupt_still_finalizes(images, tmp_path, monkeypatch):
    monkeypatch.setattr(detector_module, "load_cascade", lambda config: _FakeCascade())

    def _interrupt(self, items):
        raise KeyboardInterrupt

    monkeypatch.setattr(cli_module.BatchProcessor, "run", _interrupt)
    out = tmp_path / "faces"

    code = main(images + ["-o", str(out), "--manifest", "json"])

    assert code == 130
    payload = json.loads((out / "manifest.json").read_text(encoding="utf-8"))
    assert payload["total_crops"] == 0


def test_main_manifest_write_failure(images, tmp_path, monkeypatch):
    monkeypatch.setattr(detector_module, "load_cascade", lambda config: _FakeCascade())

    def _fail(self):
        raise OSError("read-only file system")

    monkeypatch.setattr(cli_module.OutputHandler, "finalize", _fail)

    assert main(images + ["-o", str(tmp_path / "faces")]) == 1


def test_main_unexpected_init_error(images, tmp_path, monkeypatch):
    def _boom(paths):
        raise cv2.error("decoder crashed")

    monkeypatch.setattr(cli_module, "InputHandler", _boom)

    assert main(images + ["-o", str(tmp_path / "faces")]) == 1
