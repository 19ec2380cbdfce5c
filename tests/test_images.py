import base64
from io import BytesIO
from types import SimpleNamespace

from PIL import Image

from wanderbloom import images


def _png_bytes(size=(2048, 1024)):
    buf = BytesIO()
    Image.new("RGBA", size, (30, 120, 60, 255)).save(buf, format="PNG")
    return buf.getvalue()


def _decode(data_url):
    assert data_url.startswith("data:image/jpeg;base64,")
    return Image.open(BytesIO(base64.b64decode(data_url.split(",", 1)[1])))


def test_to_jpeg_data_url_downscales():
    img = _decode(images.to_jpeg_data_url(_png_bytes()))
    assert img.format == "JPEG"
    assert img.size == (1024, 512)


def test_small_images_keep_their_size():
    assert _decode(images.to_jpeg_data_url(_png_bytes((300, 200)))).size == (300, 200)


def _chunk(text=None, data=None):
    part = SimpleNamespace(text=text, inline_data=SimpleNamespace(data=data, mime_type="image/png") if data else None)
    return SimpleNamespace(text=text, candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


def test_generate_image_from_stream(fake_llm):
    fake_llm.models.image_chunks = [_chunk(text="Here is your image"), _chunk(data=_png_bytes((64, 64)))]
    data_url = images.generate_image(images.waypoint_image_prompt("Lands End in autumn"))
    assert _decode(data_url).size == (64, 64)
    assert "peak season" in fake_llm.prompts[0]


def test_generate_image_without_image(fake_llm):
    fake_llm.models.image_chunks = [_chunk(text="I can't draw that")]
    assert images.generate_image("anything") is None


def test_generate_image_undecodable(fake_llm):
    fake_llm.models.image_chunks = [_chunk(data=b"definitely not an image")]
    assert images.generate_image("anything") is None
