import io

import pytest
from PIL import Image

from helpers import png_data_url
from services.thumbnail_generator import ThumbnailGenerator
from utils.media_validation import decode_image_data, strip_data_url


def test_thumbnail_fits_and_keeps_aspect():
    png = ThumbnailGenerator(max_size=(64, 64)).create_thumbnail(png_data_url(size=(320, 160)))
    image = Image.open(io.BytesIO(png))
    assert image.format == "PNG"
    assert image.size == (64, 32)


def test_plain_base64_without_padding_is_accepted():
    data_url = png_data_url()
    payload = strip_data_url(data_url).rstrip("=")
    assert decode_image_data(payload) == decode_image_data(data_url)


@pytest.mark.parametrize("payload", ["", "data:image/png;base64,", "***", "bm90IGFuIGltYWdl"])
def test_unusable_payloads(payload):
    with pytest.raises(ValueError):
        ThumbnailGenerator().create_thumbnail(payload)
