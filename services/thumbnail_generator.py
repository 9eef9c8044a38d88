"""Thumbnail generator service.

Small wrapper around Pillow that turns a record's encoded image payload
(base64, optionally as a data URL) into a PNG preview for the dashboard
record list. The result fits within `max_size` and keeps its aspect ratio.

Example:
    tg = ThumbnailGenerator(max_size=(64, 64))
    png_bytes = tg.create_thumbnail(record.image_data)
"""
from __future__ import annotations

import io
from typing import Tuple

from PIL import Image

from utils.media_validation import decode_image_data


class ThumbnailGenerator:
    """Generate PNG thumbnails from encoded image payloads.

    Args:
        max_size: Maximum width and height for the thumbnail. Defaults to (160, 160).
        background: Optional background color used when flattening images with alpha.
            If None, images with alpha are flattened against white.
    """

    def __init__(self, max_size: Tuple[int, int] = (160, 160), background: Tuple[int, int, int] | None = None):
        self.max_size = max_size
        self.background = background or (255, 255, 255)

    def create_thumbnail(self, image_data: str) -> bytes:
        """Create a PNG thumbnail from a stored `imageData` value.

        Raises:
            ValueError: If the payload cannot be decoded or opened as an image.
        """
        raw = decode_image_data(image_data)

        try:
            src = Image.open(io.BytesIO(raw))
            src.load()
        except Exception as exc:
            raise ValueError("Decoded bytes are not a supported image format") from exc

        src = src.convert("RGBA")
        src.thumbnail(self.max_size, Image.LANCZOS)

        # Flatten alpha against the background color
        background = Image.new("RGB", src.size, self.background)
        background.paste(src, mask=src.split()[3])

        out_io = io.BytesIO()
        background.save(out_io, format="PNG", optimize=True)
        return out_io.getvalue()
