import asyncio
import base64
import io

from PIL import Image


def run(coro):
    return asyncio.run(coro)


def png_data_url(size=(32, 24), color=(0, 128, 0)) -> str:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def record_body(**overrides):
    body = {
        "imageData": "aGVsbG8=",
        "healthStatus": "healthy",
        "predictions": [
            {"className": "healthy", "probability": 0.9},
            {"className": "unhealthy", "probability": 0.1},
        ],
    }
    body.update(overrides)
    return body
