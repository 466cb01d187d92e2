import io
import logging
from typing import Optional, Tuple

from PIL import Image, ImageOps

logger = logging.getLogger(__name__)


def bytes_to_image(raw: bytes) -> Image.Image:
    """Decode attachment bytes into an RGBA image."""
    img = Image.open(io.BytesIO(raw))
    img = ImageOps.exif_transpose(img)
    return img.convert("RGBA")


def load_preview(raw: bytes) -> Optional[Image.Image]:
    """Like bytes_to_image, but None for formats Pillow cannot read (svg, heic)."""
    try:
        return bytes_to_image(raw)
    except OSError as e:
        # UnidentifiedImageError and truncated data both land here
        logger.warning("Cannot preview image: %s", e)
        return None


def fit_preview(img: Image.Image, box: Tuple[int, int]) -> Image.Image:
    """Scale down to fit inside box, never up."""
    w, h = box
    w, h = max(w, 1), max(h, 1)
    if img.width <= w and img.height <= h:
        return img
    return ImageOps.contain(img, (w, h), Image.LANCZOS)
