"""Helpers for the encoded image payloads stored on records."""

import base64
import binascii

DATA_URL_PREFIX = "data:"


def strip_data_url(image_data: str) -> str:
    """Return the base64 part of `data:<mime>;base64,<payload>` strings.

    Plain base64 input is returned unchanged.
    """
    text = image_data.strip()
    if text.startswith(DATA_URL_PREFIX) and "," in text:
        return text.split(",", 1)[1]
    return text


def decode_image_data(image_data: str) -> bytes:
    """Decode a stored image payload into raw image bytes.

    Raises:
        ValueError: If the payload is empty or not valid base64.
    """
    payload = strip_data_url(image_data or "")
    if not payload:
        raise ValueError("Image payload is empty")
    # Browsers sometimes drop trailing padding.
    payload += "=" * (-len(payload) % 4)
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Invalid base64 data provided") from exc
