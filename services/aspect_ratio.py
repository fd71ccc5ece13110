"""
Aspect-ratio bucketing for image generation hints.

The image model only accepts a handful of output framings, so source images
are snapped to the nearest of five canonical tokens.
"""

from schemas.render import AspectRatio
from services.image_validation import ImagePayload, measure_image

SQUARE_TOLERANCE = 0.15
WIDE_THRESHOLD = 1.6
LANDSCAPE_THRESHOLD = 1.2
TALL_THRESHOLD = 0.65
PORTRAIT_THRESHOLD = 0.85


def classify_aspect_ratio(width: int, height: int) -> AspectRatio:
    """
    Map pixel dimensions to an aspect-ratio bucket.

    Checks run in order and the first match wins; ratios between 0.85 and
    1.2 that are not near-square fall through to ``1:1``.
    """
    if width <= 0 or height <= 0:
        return AspectRatio.SQUARE

    ratio = width / height
    if abs(ratio - 1) < SQUARE_TOLERANCE:
        return AspectRatio.SQUARE
    if ratio > WIDE_THRESHOLD:
        return AspectRatio.WIDE
    if ratio > LANDSCAPE_THRESHOLD:
        return AspectRatio.LANDSCAPE
    if ratio < TALL_THRESHOLD:
        return AspectRatio.TALL
    if ratio < PORTRAIT_THRESHOLD:
        return AspectRatio.PORTRAIT
    return AspectRatio.SQUARE


def classify_image_aspect_ratio(image: ImagePayload) -> AspectRatio:
    measured = measure_image(image)
    return classify_aspect_ratio(measured.width, measured.height)
