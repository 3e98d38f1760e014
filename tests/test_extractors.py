"""Tests for the pixel-statistic feature extractors."""

import numpy as np
import pytest

from docforensics import alignment, color, compression, edges, noise_residual, security_marks, texture
from docforensics.extractors import EXTRACTORS, get_extractor, run_extractors
from docforensics.params import GENERIC_PARAMS, INDIAN_PARAMS
from docforensics.raster import RasterImage
from docforensics.utils import clamp01, sampled_tiles


def _flat(h=128, w=128, value=128) -> RasterImage:
    return RasterImage.from_rgb(np.full((h, w, 3), value, dtype=np.uint8))


def _noisy(h=128, w=128, sigma=40.0, seed=0) -> RasterImage:
    rng = np.random.default_rng(seed)
    arr = np.clip(rng.normal(128, sigma, (h, w, 3)), 0, 255).astype(np.uint8)
    return RasterImage.from_rgb(arr)


def _text_lines(rows, h=200, w=100) -> RasterImage:
    arr = np.full((h, w, 3), 240, dtype=np.uint8)
    for y in rows:
        arr[y:y + 4] = 30
    return RasterImage.from_rgb(arr)


# ---------------------------------------------------------------------------
# Flat images
# ---------------------------------------------------------------------------

def test_flat_image_generic_scores():
    r = _flat()
    assert edges.edge_consistency(r, GENERIC_PARAMS).score == pytest.approx(1.0)
    assert texture.texture_uniformity(r, GENERIC_PARAMS).score == pytest.approx(1.0)
    assert compression.compression_artifacts(r, GENERIC_PARAMS).score == 1.0
    assert noise_residual.noise_uniformity(r, GENERIC_PARAMS).score == pytest.approx(1.0)
    # No channel variation and no text bands: neutral
    assert color.color_consistency(r, GENERIC_PARAMS).score == 0.85
    assert alignment.alignment_regularity(r, GENERIC_PARAMS).score == 0.85


def test_flat_image_indian_edge_is_neutral():
    fs = edges.edge_consistency(_flat(), INDIAN_PARAMS)
    assert fs.score == 0.5
    assert fs.raw["count"] == 0


def test_tiny_image_never_raises():
    r = _flat(2, 2)
    for name, fn in EXTRACTORS.items():
        for params in (GENERIC_PARAMS, INDIAN_PARAMS):
            fs = fn(r, params)
            assert fs.name == name
            assert 0.0 <= fs.score <= 1.0


def test_scores_in_unit_interval_and_deterministic():
    r = _noisy()
    for fn in EXTRACTORS.values():
        a = fn(r, GENERIC_PARAMS)
        b = fn(r, GENERIC_PARAMS)
        assert 0.0 <= a.score <= 1.0
        assert a.score == b.score


# ---------------------------------------------------------------------------
# Individual extractors
# ---------------------------------------------------------------------------

def test_edge_score_drops_for_localised_noise():
    arr = np.full((128, 128, 3), 128, dtype=np.uint8)
    rng = np.random.default_rng(1)
    arr[:64, :64] = np.clip(rng.normal(128, 60, (64, 64, 3)), 0, 255).astype(np.uint8)
    fs = edges.edge_consistency(RasterImage.from_rgb(arr), GENERIC_PARAMS)
    assert fs.score < 0.45


def test_texture_prefers_uniform_noise_over_patch():
    uniform = texture.texture_uniformity(_noisy(seed=2), GENERIC_PARAMS).score
    arr = np.full((128, 128, 3), 128, dtype=np.uint8)
    arr[:48, :48] = _noisy(48, 48, seed=3).rgb
    patched = texture.texture_uniformity(RasterImage.from_rgb(arr), GENERIC_PARAMS).score
    assert uniform > patched


def test_compression_detects_grid_discontinuities():
    x = np.arange(64)
    row = ((x // 8) % 2) * 100 + (x % 2) * 2
    arr = np.repeat(np.tile(row, (32, 1))[..., None], 3, axis=2).astype(np.uint8)
    fs = compression.compression_artifacts(RasterImage.from_rgb(arr), GENERIC_PARAMS)
    assert fs.raw["ratio"] > 10
    assert fs.score == 0.0


def test_color_correlation_flip_scores_zero():
    rng = np.random.default_rng(4)
    n = rng.integers(-50, 51, (64, 256))
    arr = np.empty((64, 256, 3), dtype=np.uint8)
    arr[..., 0] = 128 + n
    arr[..., 1] = 128 + n
    arr[:, 128:, 1] = 128 - n[:, 128:]
    arr[..., 2] = 128
    fs = color.color_consistency(RasterImage.from_rgb(arr), GENERIC_PARAMS)
    assert fs.score == 0.0
    assert fs.raw["std_correlation"] > 0.9


def test_color_correlation_stable_scores_high():
    rng = np.random.default_rng(5)
    n = rng.integers(-50, 51, (64, 256))
    arr = np.empty((64, 256, 3), dtype=np.uint8)
    arr[..., 0] = 128 + n
    arr[..., 1] = 128 + n
    arr[..., 2] = 128
    assert color.color_consistency(RasterImage.from_rgb(arr), GENERIC_PARAMS).score == pytest.approx(1.0)


def test_noise_residual_is_zero_on_linear_ramp():
    ramp = np.tile(np.arange(10, dtype=np.float64), (6, 1))
    resid = noise_residual.noise_residual(ramp)
    assert resid.shape == (4, 8)
    assert np.allclose(resid, 0.0)


def test_noise_uniformity_drops_for_localised_noise():
    arr = np.full((128, 128, 3), 128, dtype=np.uint8)
    arr[:64, :64] = _noisy(64, 64, sigma=60, seed=6).rgb
    fs = noise_residual.noise_uniformity(RasterImage.from_rgb(arr), GENERIC_PARAMS)
    assert fs.score < 0.4


def test_alignment_regular_lines_score_one():
    fs = alignment.alignment_regularity(_text_lines([20, 50, 80, 110, 140]), GENERIC_PARAMS)
    assert fs.raw["bands"] == 5
    assert fs.score == 1.0


def test_alignment_band_open_at_bottom_is_ignored():
    fs = alignment.alignment_regularity(_text_lines([20, 50, 196]), GENERIC_PARAMS)
    assert fs.raw["bands"] == 2
    assert fs.score == 0.85


def test_alignment_text_band_heights():
    luma = np.array([200, 10, 10, 200, 10, 200, 10, 10, 10, 200], dtype=np.float64)[:, None]
    heights = alignment.text_band_heights(np.repeat(luma, 4, axis=1))
    assert heights.tolist() == [2.0, 1.0, 3.0]


def test_security_hologram_pixels():
    arr = np.zeros((40, 40, 3), dtype=np.uint8)
    arr[..., 0] = 255
    fs = security_marks.security_marks(RasterImage.from_rgb(arr), INDIAN_PARAMS)
    assert fs.raw["hologram_score"] == 1.0
    assert fs.raw["watermark_score"] == 0.0
    assert fs.score == pytest.approx(0.5)


def test_security_watermark_pixels():
    fs = security_marks.security_marks(_flat(40, 40, 200), INDIAN_PARAMS)
    assert fs.raw["watermark_score"] == 1.0
    assert fs.raw["hologram_score"] == 0.0
    assert fs.score == pytest.approx(0.5)


def test_security_plain_white_only_has_microprint_placeholder():
    fs = security_marks.security_marks(_flat(40, 40, 255), INDIAN_PARAMS)
    assert fs.score == pytest.approx(0.1)


# ---------------------------------------------------------------------------
# Registry and helpers
# ---------------------------------------------------------------------------

def test_registry_names_match_extractor_output():
    r = _noisy(64, 64)
    for name in EXTRACTORS:
        assert get_extractor(name)(r, GENERIC_PARAMS).name == name


def test_unknown_extractor_raises():
    with pytest.raises(KeyError):
        get_extractor("hologram3d")


def test_run_extractors_checkpoint_called_per_pass():
    calls = []
    run_extractors(_flat(), ["edge", "texture", "color"], GENERIC_PARAMS, checkpoint=lambda: calls.append(1))
    assert len(calls) == 3


def test_sampled_tiles_skips_trailing_block():
    _, nh, nw = sampled_tiles(np.zeros((64, 65)), 32)
    assert (nh, nw) == (1, 2)


def test_clamp01_handles_nan():
    assert clamp01(float("nan")) == 0.0
    assert clamp01(-3) == 0.0
    assert clamp01(7) == 1.0
