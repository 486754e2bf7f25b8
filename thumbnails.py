"""
Turn in-game textures into small web images for the mod list.

Icons and map overviews ship as ``.dds``.  Pillow decodes them and re-encodes
as WebP, returned as a ``data:`` URI the front-end can drop straight into an
``<img>`` tag.  Anything Pillow cannot decode simply yields ``None``.
"""

from __future__ import annotations

import base64
import io
import logging

from PIL import Image, UnidentifiedImageError

_log = logging.getLogger(__name__)

WEBP_QUALITY = 75
MAP_FULL_SIZE = (1024, 1024)
MAP_CROP_BOX = (256, 256, 768, 768)


def _to_data_uri(image: Image.Image) -> str:
    if image.mode not in ("RGB", "RGBA"):
        image = image.convert("RGBA")
    buf = io.BytesIO()
    image.save(buf, format="WEBP", quality=WEBP_QUALITY)
    b64 = base64.b64encode(buf.getvalue()).decode("ascii")
    return f"data:image/webp;base64, {b64}"


# Anything Pillow raises for an image it cannot handle
_IMAGE_ERRORS = (
    UnidentifiedImageError,
    Image.DecompressionBombError,
    OSError,
    ValueError,
    NotImplementedError,
)


def _open(data: bytes) -> Image.Image | None:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
        return image
    except _IMAGE_ERRORS as exc:
        _log.debug("Could not decode image (%d bytes): %s", len(data), exc)
        return None


def convert_mod_icon(data: bytes) -> str | None:
    """Encode a mod or store icon as a WebP data URI at its native size."""
    image = _open(data)
    if image is None:
        return None
    try:
        return _to_data_uri(image)
    except _IMAGE_ERRORS as exc:
        _log.debug("Could not encode icon %s: %s", image.size, exc)
        return None


def convert_map_image(data: bytes) -> str | None:
    """Encode the centre of a map overview, scaled to a 1024px square first."""
    image = _open(data)
    if image is None:
        return None
    try:
        return _to_data_uri(image.resize(MAP_FULL_SIZE).crop(MAP_CROP_BOX))
    except _IMAGE_ERRORS as exc:
        _log.debug("Could not encode map image %s: %s", image.size, exc)
        return None


def normalize_image_name(name: str) -> str:
    """Game image references may say ``.png`` but ship the ``.dds``."""
    name = name.strip().replace("\\", "/")
    if name.lower().endswith(".png"):
        name = name[:-4] + ".dds"
    return name
