import base64
import logging
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError

from . import llm

logger = logging.getLogger(__name__)

MAX_IMAGE_SIDE = 1024


def to_jpeg_data_url(image_bytes: bytes) -> str:
    if isinstance(image_bytes, str):
        image_bytes = base64.b64decode(image_bytes)
    img = Image.open(BytesIO(image_bytes))
    img = img.convert("RGB")
    if max(img.size) > MAX_IMAGE_SIDE:
        img.thumbnail((MAX_IMAGE_SIDE, MAX_IMAGE_SIDE))
    buf = BytesIO()
    img.save(buf, format="JPEG", quality=85)
    b64 = base64.b64encode(buf.getvalue()).decode("utf-8")
    return f"data:image/jpeg;base64,{b64}"


def recommendation_image_prompt(image_prompt: str) -> str:
    return (
        f"Generate a beautiful, realistic image of: {image_prompt}. "
        "The image should be high quality and show the location during the current season. "
        "Focus on the natural beauty and seasonal elements."
    )


def waypoint_image_prompt(image_prompt: str) -> str:
    return (
        f"Generate a beautiful, realistic image of: {image_prompt}. "
        "The image should be high quality and show the location during its peak season. "
        "Focus on the seasonal elements and natural beauty."
    )


def generate_image(prompt: str) -> Optional[str]:
    """Return a JPEG data URL for ``prompt`` or None when no image came back."""
    model_text, img_bytes = llm.stream_image(prompt)
    if not img_bytes:
        logger.warning("No image data in response (model text: %r)", model_text[:200])
        return None
    try:
        return to_jpeg_data_url(img_bytes)
    except UnidentifiedImageError:
        logger.warning("Pillow couldn't decode the generated image")
        return None
