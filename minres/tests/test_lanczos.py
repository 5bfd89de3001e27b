# tests/test_lanczos.py
import sys
from pathlib import Path

import numpy as np
import pytest

PROJECT_ROOT = str(Path(__file__).resolve().parents[2])
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from minres.resample import lanczos as lanczos_mod
from minres.resample.lanczos import TAPS, axis_weights, lanczos3, lanczos_resample


def test_kernel_values():
    assert lanczos3(0.0) == 1.0
    assert lanczos3(3.0) == 0.0
    assert lanczos3(-3.5) == 0.0
    assert lanczos3(0.5) == pytest.approx(6 / np.pi ** 2)
    assert abs(lanczos3(1.0)) < 1e-12
    assert lanczos3(1.3) == pytest.approx(lanczos3(-1.3))


def test_kernel_vectorised_matches_scalar():
    xs = np.linspace(-4, 4, 33)
    vec = lanczos3(xs)
    assert vec.shape == xs.shape
    for x, v in zip(xs, vec):
        assert v == pytest.approx(lanczos3(float(x)))


@pytest.mark.parametrize("src, dst", [(128, 64), (100, 33), (7, 3), (5, 5), (10, 27), (1, 4), (3, 1)])
def test_weights_sum_to_one(src, dst):
    idx, w = axis_weights(src, dst)
    assert idx.shape == (dst, TAPS)
    assert w.shape == (dst, TAPS)
    np.testing.assert_allclose(w.sum(axis=1), 1.0, atol=1e-12)
    assert idx.min() >= 0 and idx.max() <= src - 1


def test_taps_are_centered():
    # 128 -> 64: center of output 0 is source 0.5, taps -2..3 clamped to 0
    idx, w = axis_weights(128, 64)
    assert list(idx[0]) == [0, 0, 0, 1, 2, 3]
    assert list(idx[10]) == [18, 19, 20, 21, 22, 23]
    # symmetric around the half-pixel center
    np.testing.assert_allclose(w[10][:3], w[10][3:][::-1])


def test_degenerate_weights_are_left_unnormalized(monkeypatch):
    monkeypatch.setattr(lanczos_mod, "lanczos3", lambda x: np.zeros_like(np.asarray(x, dtype=np.float64)))
    idx, w = axis_weights(16, 4)
    assert np.all(w == 0)
    assert np.all(np.isfinite(w))


def test_constant_image_is_preserved():
    buf = np.full((40, 30, 4), [12.0, 200.0, 77.0, 255.0], dtype=np.float32)
    out = lanczos_resample(buf, 11, 17)
    assert out.shape == (17, 11, 4)
    assert out.dtype == np.float32
    np.testing.assert_allclose(out, np.broadcast_to(buf[0, 0], out.shape), atol=1e-3)


def test_same_size_is_near_identity():
    rng = np.random.default_rng(0)
    buf = (rng.random((9, 13, 4)) * 255).astype(np.float32)
    out = lanczos_resample(buf, 13, 9)
    np.testing.assert_allclose(out, buf, atol=1e-3)


def test_output_stays_float_between_passes():
    # a half-step gradient would collapse to integers if rounded between passes
    buf = np.zeros((8, 8, 4), dtype=np.float32)
    buf[..., 0] = np.linspace(0.0, 1.0, 8, dtype=np.float32)[None, :]
    out = lanczos_resample(buf, 4, 4)
    frac = out[..., 0] - np.floor(out[..., 0])
    assert np.any((frac > 0.01) & (frac < 0.99))


def test_horizontal_then_vertical_shapes():
    buf = np.zeros((20, 50, 4), dtype=np.float32)
    tmp = lanczos_mod.resample_horizontal(buf, 10)
    assert tmp.shape == (20, 10, 4)
    assert lanczos_mod.resample_vertical(tmp, 7).shape == (7, 10, 4)
