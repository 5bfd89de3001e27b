# tests/test_resample_pipeline.py
import io
import sys
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

PROJECT_ROOT = str(Path(__file__).resolve().parents[2])
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from minres.errors import EncodeFailure, ImportFailure
from minres.resample.codecs import PillowCodec
from minres.resample.pipeline import ResampleConfig, resample_image, resample_pixels, run


def _png_bytes(arr: np.ndarray) -> bytes:
    buf = io.BytesIO()
    Image.fromarray(arr.astype(np.uint8)).save(buf, format="PNG")
    return buf.getvalue()


def _decode(data: bytes) -> np.ndarray:
    with Image.open(io.BytesIO(data)) as im:
        assert im.mode == "RGBA"
        return np.asarray(im).astype(int)


@pytest.fixture(scope="module")
def red_256():
    arr = np.zeros((256, 256, 4), dtype=np.uint8)
    arr[..., 0] = 255
    arr[..., 3] = 255
    return _png_bytes(arr)


def test_opaque_red_downscale_with_dither(red_256):
    out = _decode(resample_image(red_256, 64, 64, ResampleConfig(seed=11)))
    assert out.shape == (64, 64, 4)
    assert out[..., 3].min() >= 254
    assert np.all(np.abs(out - np.array([255, 0, 0, 255])) <= 1)


def test_opaque_red_downscale_without_dither(red_256):
    out = _decode(resample_image(red_256, 64, 64, ResampleConfig(dither=False)))
    assert np.all(out == np.array([255, 0, 0, 255]))


def test_seeded_runs_produce_identical_bytes():
    rng = np.random.default_rng(0)
    src = _png_bytes(rng.integers(0, 256, size=(90, 70, 4)))
    a = resample_image(src, 20, 25, ResampleConfig(seed=123))
    b = resample_image(src, 20, 25, ResampleConfig(seed=123))
    assert a == b


def test_non_uniform_target_size():
    src = _png_bytes(np.full((300, 120, 4), 128))
    out = _decode(resample_image(src, 17, 41, ResampleConfig(seed=0)))
    assert out.shape == (41, 17, 4)


def test_transparent_edges_keep_color_below_alpha():
    arr = np.zeros((64, 64, 4), dtype=np.uint8)
    arr[16:48, 16:48] = [255, 255, 255, 255]
    arr[:16, :, :3] = 255  # invisible white, alpha 0
    out = _decode(resample_image(_png_bytes(arr), 13, 13, ResampleConfig(seed=4)))
    assert np.all(out[..., :3] <= out[..., 3:4])


def test_resample_pixels_shapes():
    pixels = np.zeros((50, 50, 4), dtype=np.float32)
    out = resample_pixels(pixels, 5, 7, dither=False)
    assert out.shape == (7, 5, 4)
    assert out.dtype == np.uint8


def test_invalid_target_raises():
    with pytest.raises(ValueError):
        resample_image(b"", 0, 10)


def test_import_failure_raises():
    with pytest.raises(ImportFailure):
        resample_image(b"definitely not an image", 4, 4)


def test_run_reports_import_failure():
    outcome = run(b"\x89PNG\r\n\x1a\n broken", 4, 4)
    assert not outcome.ok
    assert outcome.data is None
    assert outcome.error


def test_run_reports_encode_failure(monkeypatch, red_256):
    def _boom(self, pixels):
        raise EncodeFailure("no encoder")

    monkeypatch.setattr(PillowCodec, "encode", _boom)
    outcome = run(red_256, 8, 8, ResampleConfig(seed=1))
    assert not outcome.ok
    assert "no encoder" in outcome.error


def test_run_success():
    outcome = run(_png_bytes(np.full((10, 10, 4), 200)), 5, 5, ResampleConfig(seed=2))
    assert outcome.ok
    assert outcome.error is None
    assert _decode(outcome.data).shape == (5, 5, 4)


def test_run_reports_oversized_image(monkeypatch):
    data = _png_bytes(np.full((40, 40, 4), 120))
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
    outcome = run(data, 4, 4, ResampleConfig(seed=1))
    assert not outcome.ok
    assert outcome.error
