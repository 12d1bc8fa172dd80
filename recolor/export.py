import base64
import re
from io import BytesIO

from PIL import Image

from .colors import ColorChoice

DOWNLOAD_PREFIX = "product-color-"


def download_filename(color: ColorChoice) -> str:
    """e.g. 'Light Brown' -> 'product-color-light-brown.png'"""
    slug = re.sub(r"\s", "-", color.name.lower())
    return f"{DOWNLOAD_PREFIX}{slug}.png"


def to_png(data: bytes) -> bytes:
    """Re-encode generated image bytes as PNG, the format offered for download."""
    with Image.open(BytesIO(data)) as image:
        if image.format == "PNG":
            return data
        if image.mode not in ("RGB", "RGBA", "L", "LA", "P"):
            image = image.convert("RGBA")
        buffer = BytesIO()
        image.save(buffer, format="PNG")
    return buffer.getvalue()


def data_url(data: bytes, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
