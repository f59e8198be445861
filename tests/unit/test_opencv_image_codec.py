"""Test the OpenCV codec adapter on real images"""

import cv2
import numpy as np
import pytest

from proof_capture.core.interfaces.image_codec import CompressionOptions
from proof_capture.infrastructure.codec.opencv_image_codec import OpenCVImageCodec, fit_within


def noisy_image(height: int, width: int) -> np.ndarray:
    rng = np.random.default_rng(seed=7)
    return rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)


class TestFitWithin:

    def test_shrinks_longest_side(self):
        resized = fit_within(np.zeros((1000, 2000, 3), np.uint8), 500)
        assert resized.shape[:2] == (250, 500)

    def test_never_upscales(self):
        image = np.zeros((100, 50, 3), np.uint8)
        assert fit_within(image, 500) is image


class TestOpenCVImageCodec:

    def test_encode_jpeg_and_png(self):
        codec = OpenCVImageCodec()
        image = noisy_image(32, 32)

        jpeg = codec.encode(image, "jpeg")
        png = codec.encode(image, "png")

        assert jpeg[:2] == b"\xff\xd8"
        assert png[:4] == b"\x89PNG"

    def test_compress_reaches_budget(self):
        codec = OpenCVImageCodec(max_iterations=30)
        data = codec.encode(noisy_image(800, 800), "jpeg", 0.95)
        options = CompressionOptions(max_size_mb=len(data) / 4 / 1024 / 1024, max_width=800, max_height=800)

        compressed = codec.compress(data, options)

        assert 0 < len(compressed) <= options.max_size_bytes
        decoded = cv2.imdecode(np.frombuffer(compressed, np.uint8), cv2.IMREAD_COLOR)
        assert decoded is not None

    def test_compress_respects_max_dimensions(self):
        codec = OpenCVImageCodec()
        data = codec.encode(np.full((600, 1200, 3), 128, np.uint8), "jpeg")
        options = CompressionOptions(max_size_mb=5, max_width=300, max_height=300)

        decoded = cv2.imdecode(np.frombuffer(codec.compress(data, options), np.uint8), cv2.IMREAD_COLOR)

        assert max(decoded.shape[:2]) <= 300

    def test_undecodable_input_raises(self):
        with pytest.raises(ValueError):
            OpenCVImageCodec().compress(b"not an image", CompressionOptions(max_size_mb=1))
