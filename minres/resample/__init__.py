from minres.resample.codecs import ImageCodec, OpenCVCodec, PillowCodec, get_codec
from minres.resample.lanczos import axis_weights, lanczos3, lanczos_resample
from minres.resample.pipeline import ResampleConfig, ResampleOutcome, resample_image, resample_pixels, run
from minres.resample.pyramid import downscale_pyramid, pyramid_levels
from minres.resample.quantize import quantize

__all__ = [
    "ImageCodec",
    "OpenCVCodec",
    "PillowCodec",
    "get_codec",
    "axis_weights",
    "lanczos3",
    "lanczos_resample",
    "ResampleConfig",
    "ResampleOutcome",
    "resample_image",
    "resample_pixels",
    "run",
    "downscale_pyramid",
    "pyramid_levels",
    "quantize",
]
