"""Raw RGBA codecs for the resample pipeline.

A codec turns encoded bytes into a float32 (H, W, 4) buffer of straight
(non-premultiplied) RGBA samples on the stored 0..255 scale, and turns a uint8
(H, W, 4) buffer back into PNG bytes. Codecs must not apply gamma/ICC
transforms or premultiply alpha: the pyramid/Lanczos/quantize stages are the
same whichever codec supplies the samples.

Available codecs:
    - 'pillow' : PillowCodec, portable CPU default
    - 'opencv' : OpenCVCodec, optional accelerated backend (libpng/libjpeg-turbo via cv2)
"""
from __future__ import annotations

import io
from typing import Callable, Dict

import numpy as np
from PIL import Image

from minres.errors import EncodeFailure, ImportFailure


class ImageCodec:
    """Capability interface: `decode` bytes -> float32 RGBA, `encode` uint8 RGBA -> PNG bytes."""

    name = "base"

    def decode(self, data: bytes) -> np.ndarray:
        raise NotImplementedError

    def encode(self, pixels: np.ndarray) -> bytes:
        raise NotImplementedError


def _check_rgba_u8(pixels: np.ndarray) -> None:
    if pixels.ndim != 3 or pixels.shape[2] != 4 or pixels.dtype != np.uint8:
        raise EncodeFailure(f"expected uint8 (H, W, 4) buffer, got {pixels.dtype} {pixels.shape}")
    if pixels.shape[0] < 1 or pixels.shape[1] < 1:
        raise EncodeFailure(f"cannot encode empty buffer {pixels.shape}")


class PillowCodec(ImageCodec):
    """Pillow-backed codec.

    Pillow never applies an embedded ICC profile or gamma chunk on its own, and
    `convert("RGBA")` un-premultiplies 'RGBa'/'La' sources, so the samples are
    the stored values.
    """

    name = "pillow"

    def decode(self, data: bytes) -> np.ndarray:
        try:
            with Image.open(io.BytesIO(data)) as im:
                im.load()
                if im.mode in ("I;16", "I;16B", "I;16L", "I"):
                    # 16-bit gray: reduce to the 8-bit sample scale before expanding to RGBA
                    gray = (np.asarray(im, dtype=np.uint32) >> 8).astype(np.uint8)
                    im = Image.fromarray(gray)
                rgba = im.convert("RGBA")
                arr = np.asarray(rgba, dtype=np.float32)
        except Exception as e:
            raise ImportFailure(f"pillow decode failed: {e}") from e
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise ImportFailure(f"unexpected decoded shape {arr.shape}")
        return np.ascontiguousarray(arr)

    def encode(self, pixels: np.ndarray) -> bytes:
        _check_rgba_u8(pixels)
        buf = io.BytesIO()
        try:
            Image.fromarray(np.ascontiguousarray(pixels)).save(buf, format="PNG")
        except Exception as e:
            raise EncodeFailure(f"pillow encode failed: {e}") from e
        return buf.getvalue()


class OpenCVCodec(ImageCodec):
    """OpenCV-backed codec. `IMREAD_UNCHANGED` keeps alpha and skips EXIF rotation and color management."""

    name = "opencv"

    def __init__(self) -> None:
        import cv2  # type: ignore
        self._cv2 = cv2

    def _to_rgba(self, data: bytes) -> np.ndarray:
        cv2 = self._cv2
        img = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
        if img is None:
            raise ImportFailure("opencv could not decode image bytes")
        if img.dtype == np.uint16:
            img = (img >> 8).astype(np.uint8)
        elif img.dtype != np.uint8:
            raise ImportFailure(f"unsupported sample type {img.dtype}")

        if img.ndim == 2:
            return cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
        if img.shape[2] == 3:
            return cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
        if img.shape[2] == 4:
            return cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
        raise ImportFailure(f"unsupported channel count {img.shape[2]}")

    def decode(self, data: bytes) -> np.ndarray:
        try:
            rgba = self._to_rgba(data)
        except ImportFailure:
            raise
        except Exception as e:
            raise ImportFailure(f"opencv decode failed: {e}") from e
        return np.ascontiguousarray(rgba, dtype=np.float32)

    def encode(self, pixels: np.ndarray) -> bytes:
        cv2 = self._cv2
        _check_rgba_u8(pixels)
        try:
            bgra = cv2.cvtColor(np.ascontiguousarray(pixels), cv2.COLOR_RGBA2BGRA)
            ok, encoded = cv2.imencode(".png", bgra)
        except Exception as e:
            raise EncodeFailure(f"opencv encode failed: {e}") from e
        if not ok:
            raise EncodeFailure("opencv could not encode PNG")
        return encoded.tobytes()


_CODECS: Dict[str, Callable[[], ImageCodec]] = {
    PillowCodec.name: PillowCodec,
    OpenCVCodec.name: OpenCVCodec,
}


def get_codec(name: str = "pillow") -> ImageCodec:
    """Instantiate a codec by name ('pillow' | 'opencv')."""
    key = (name or "pillow").lower()
    if key not in _CODECS:
        raise ValueError(f"unknown codec: {name} (choose from {', '.join(sorted(_CODECS))})")
    return _CODECS[key]()


__all__ = ["ImageCodec", "PillowCodec", "OpenCVCodec", "get_codec"]
