# leaf_scanner/services/analyzer.py
import math
import random
import time
import logging
from io import BytesIO
from typing import Optional, Tuple

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from leaf_scanner.config import MAX_ANALYSIS_HEIGHT, MAX_ANALYSIS_WIDTH
from leaf_scanner.models.plant_analysis import AnalysisResult, BlackSpotStats, DamageStats
from leaf_scanner.services.errors import ImageDecodeError
from leaf_scanner.services.health import (
    calculate_health_score,
    determine_overall_condition,
    generate_issues_list,
    round_half_up,
)

logger = logging.getLogger(__name__)

# Black spot thresholds
BLACK_SPOT_MAX_BRIGHTNESS = 60
BLACK_SPOT_MAX_VARIATION = 30
BLACK_SPOT_MIN_PERCENTAGE = 0.1
# Pixels per estimated spot, as a fraction of the image width
SPOT_SIZE_WIDTH_RATIO = 0.02

DAMAGE_MIN_PERCENTAGE = 0.5

EDGE_CONTRAST_THRESHOLD = 30
MAX_IMAGE_QUALITY = 95


def _channels(pixels: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Split an RGB(A) array into signed r, g, b planes plus per-pixel brightness."""
    rgb = pixels[..., :3].astype(np.int32)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    brightness = (r + g + b) / 3.0
    return r, g, b, brightness


def _to_rgb(image: Image.Image) -> Image.Image:
    """Drop alpha; fully transparent pixels read back as black, like a canvas."""
    if image.mode not in ("RGBA", "LA", "PA") and "transparency" not in image.info:
        return image.convert("RGB")
    rgba = np.array(image.convert("RGBA"), dtype=np.uint8)
    rgba[rgba[..., 3] == 0, :3] = 0
    return Image.fromarray(np.ascontiguousarray(rgba[..., :3]))


class PlantImageAnalyzer:
    """
    Heuristic leaf scanner based on per-pixel brightness and colour thresholds.

    Holds no per-scan state, so one instance can serve every request. The only
    collaborator is the random source for the display confidence, which tests
    replace with a seeded ``random.Random``.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def load_image(self, image_bytes: bytes) -> np.ndarray:
        """Decode image bytes into an RGB array no larger than 800x600."""
        try:
            with Image.open(BytesIO(image_bytes)) as image:
                image = _to_rgb(ImageOps.exif_transpose(image))
                width, height = image.size
                if width == 0 or height == 0:
                    raise ImageDecodeError("Image has no pixels")
                target = (min(width, MAX_ANALYSIS_WIDTH), min(height, MAX_ANALYSIS_HEIGHT))
                if target != (width, height):
                    logger.info(f"Downsizing image from {width}x{height} to {target[0]}x{target[1]}")
                    image = image.resize(target, Image.Resampling.BILINEAR)
                return np.asarray(image, dtype=np.uint8)
        except ImageDecodeError:
            raise
        except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
            raise ImageDecodeError(f"Failed to load image: {e}") from e

    def detect_black_spots(self, pixels: np.ndarray) -> BlackSpotStats:
        height, width = pixels.shape[:2]
        total_pixels = width * height
        r, g, b, brightness = _channels(pixels)
        color_variation = np.abs(r - g) + np.abs(g - b) + np.abs(b - r)

        black_spot_pixels = int(np.count_nonzero(
            (brightness < BLACK_SPOT_MAX_BRIGHTNESS) & (color_variation < BLACK_SPOT_MAX_VARIATION)
        ))
        # Brown/dark reddish patches; tallied for reporting only
        potential_spots = int(np.count_nonzero(
            (brightness < 100) & (r > g) & (r > b) & (color_variation > 40)
        ))

        percentage = round_half_up(black_spot_pixels / total_pixels * 100, 2)
        has_black_spots = percentage > BLACK_SPOT_MIN_PERCENTAGE

        # Density proxy, not a connected-component count
        estimated_spots = math.ceil(black_spot_pixels / (width * SPOT_SIZE_WIDTH_RATIO))

        return BlackSpotStats(
            has_black_spots=has_black_spots,
            count=max(1, estimated_spots) if has_black_spots else 0,
            percentage=percentage,
            potential_spot_pixels=potential_spots,
        )

    def assess_damage(self, pixels: np.ndarray) -> DamageStats:
        height, width = pixels.shape[:2]
        total_pixels = width * height
        r, g, b, brightness = _channels(pixels)

        # A pixel is counted once per matching pattern
        yellowing = (r > 180) & (g > 150) & (b < 100) & (brightness > 150)
        browning = (r > 100) & (r < 180) & (g > 50) & (g < 130) & (b < 80) & (brightness < 150)
        wilting = (g < r * 0.7) & (g < b * 0.8) & (brightness < 120)
        white_patches = (brightness > 200) & (np.abs(r - g) < 20) & (np.abs(g - b) < 20)

        damaged_pixels = sum(
            int(np.count_nonzero(mask)) for mask in (yellowing, browning, wilting, white_patches)
        )

        percentage = min(100.0, round_half_up(damaged_pixels / total_pixels * 100, 2))
        return DamageStats(
            has_damage=percentage > DAMAGE_MIN_PERCENTAGE,
            percentage=percentage,
        )

    def assess_image_quality(self, pixels: np.ndarray) -> float:
        """Score sharpness and contrast between 50 and 95."""
        height, width = pixels.shape[:2]
        total_pixels = width * height
        _, _, _, gray = _channels(pixels)

        edge_pixels = 0
        total_contrast = 0.0
        if height > 2 and width > 2:
            current = gray[1:-1, 1:-1]
            right = gray[1:-1, 2:]
            bottom = gray[2:, 1:-1]
            contrast = np.abs(current - right) + np.abs(current - bottom)
            edge_pixels = int(np.count_nonzero(contrast > EDGE_CONTRAST_THRESHOLD))
            total_contrast = float(contrast.sum())

        sharpness = edge_pixels / total_pixels * 100
        avg_contrast = total_contrast / total_pixels

        quality_score = 50.0
        quality_score += min(sharpness * 2, 30)
        quality_score += min(avg_contrast / 5, 20)
        return round_half_up(min(quality_score, MAX_IMAGE_QUALITY), 2)

    def display_confidence(self) -> float:
        return round_half_up(min(90 + self._rng.random() * 8, 98), 2)

    def analyze_pixels(self, pixels: np.ndarray, started_at: Optional[float] = None) -> AnalysisResult:
        """Run the full scan on an already decoded RGB(A) array."""
        start_time = started_at if started_at is not None else time.perf_counter()
        if pixels.ndim != 3 or pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise ImageDecodeError(f"Expected a non-empty HxWx3 bitmap, got shape {pixels.shape}")

        height, width = pixels.shape[:2]
        black_spots = self.detect_black_spots(pixels)
        damage = self.assess_damage(pixels)
        health_score = calculate_health_score(black_spots, damage)
        image_quality = self.assess_image_quality(pixels)

        result = AnalysisResult(
            has_black_spots=black_spots.has_black_spots,
            black_spot_count=black_spots.count,
            black_spot_percentage=black_spots.percentage,
            has_damage=damage.has_damage,
            damage_percentage=damage.percentage,
            health_score=health_score,
            overall_condition=determine_overall_condition(
                health_score, black_spots.has_black_spots, damage.has_damage
            ),
            detected_issues=generate_issues_list(black_spots, damage, health_score),
            confidence=self.display_confidence(),
            image_quality=image_quality,
            analysis_time=time.perf_counter() - start_time,
            image_width=width,
            image_height=height,
        )
        logger.info(
            f"Analyzed {width}x{height} image: health={result.health_score} "
            f"spots={result.black_spot_percentage}% damage={result.damage_percentage}% "
            f"potential_spots={black_spots.potential_spot_pixels} in {result.analysis_time:.3f}s"
        )
        return result

    async def analyze_image(self, image_bytes: bytes) -> AnalysisResult:
        """
        Decode image bytes and analyze them.

        Raises:
            ImageDecodeError: The bytes are not a readable image.
        """
        start_time = time.perf_counter()
        pixels = self.load_image(image_bytes)
        return self.analyze_pixels(pixels, started_at=start_time)
