"""Tests for the grayscale block-average fallback descriptor."""

import numpy as np
import pytest

from core.embedders.base import Embedder
from core.embedders.fallback_embedder import GrayscaleBlockEmbedder
from core.errors import EmbeddingError

from conftest import save_image


class TestGrayscaleBlockEmbedder:
    """Tests for image-level behavior."""

    @pytest.mark.parametrize(
        "name,size,mode",
        [
            ("wide.png", (300, 60), "RGB"),
            ("tall.jpg", (40, 400), "RGB"),
            ("alpha.png", (128, 128), "RGBA"),
            ("gray.bmp", (17, 23), "L"),
        ],
    )
    def test_always_outputs_configured_dims(self, tmp_path, name, size, mode):
        path = save_image(tmp_path / name, size=size, mode=mode, pattern="gradient")
        vector = GrayscaleBlockEmbedder().embed_image(path)
        assert vector.shape == (256,)
        assert vector.dtype == np.float32

    def test_deterministic(self, tmp_path):
        path = save_image(tmp_path / "a.png", pattern="checker")
        embedder = GrayscaleBlockEmbedder()
        first = embedder.embed_image(path)
        second = GrayscaleBlockEmbedder().embed_image(path)
        assert first.tobytes() == second.tobytes()

    def test_white_image_is_all_ones(self, tmp_path):
        path = save_image(tmp_path / "white.png", color=(255, 255, 255))
        vector = GrayscaleBlockEmbedder().embed_image(path)
        np.testing.assert_allclose(vector, np.ones(256), rtol=1e-6)

    def test_black_image_is_all_zeros(self, tmp_path):
        path = save_image(tmp_path / "black.png", color=(0, 0, 0))
        vector = GrayscaleBlockEmbedder().embed_image(path)
        assert not np.any(vector)

    def test_custom_dims(self, tmp_path):
        path = save_image(tmp_path / "a.png", pattern="gradient")
        vector = GrayscaleBlockEmbedder(size=32, dims=100).embed_image(path)
        assert vector.shape == (100,)

    def test_values_in_unit_range(self, tmp_path):
        path = save_image(tmp_path / "a.png", pattern="gradient")
        vector = GrayscaleBlockEmbedder().embed_image(path)
        assert vector.min() >= 0.0
        assert vector.max() <= 1.0 + 1e-6

    def test_undecodable_file_raises(self, tmp_path):
        path = tmp_path / "broken.jpg"
        path.write_bytes(b"not an image")
        with pytest.raises(EmbeddingError):
            GrayscaleBlockEmbedder().embed_image(path)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(EmbeddingError):
            GrayscaleBlockEmbedder().embed_image(tmp_path / "nope.png")


class TestReduce:
    """Tests for the bucket arithmetic."""

    def test_even_split_averages_blocks(self):
        pixels = np.array([0, 255, 255, 255, 51, 51, 0, 0], dtype=np.uint8)
        vector = GrayscaleBlockEmbedder.reduce(pixels, 4)
        np.testing.assert_allclose(vector, [0.5, 1.0, 0.2, 0.0], rtol=1e-6)

    def test_trailing_pixels_beyond_last_bucket_are_dropped(self):
        # block = 9 // 4 = 2, so pixel 8 would land in bucket 4 and is ignored.
        pixels = np.full(9, 255, dtype=np.uint8)
        vector = GrayscaleBlockEmbedder.reduce(pixels, 4)
        np.testing.assert_allclose(vector, [1.0, 1.0, 1.0, 1.0], rtol=1e-6)

    def test_untouched_buckets_stay_zero(self):
        pixels = np.full(3, 255, dtype=np.uint8)
        vector = GrayscaleBlockEmbedder.reduce(pixels, 4)
        np.testing.assert_allclose(vector, [1.0, 1.0, 1.0, 0.0], rtol=1e-6)


class TestFlatten:
    def test_single_row_matrix_is_flattened(self):
        assert Embedder._flatten([[1.0, 2.0, 3.0]]).tolist() == [1.0, 2.0, 3.0]

    def test_token_matrix_takes_first_token(self):
        out = Embedder._flatten([[[1.0, 2.0], [3.0, 4.0]]])
        assert out.tolist() == [1.0, 2.0]

    def test_flat_sequence_unchanged(self):
        assert Embedder._flatten([0.5, 0.25]).tolist() == [0.5, 0.25]
