import logging
import os
from typing import Any, Optional

from dotenv import load_dotenv

import google.genai as genai
from google.genai import types

load_dotenv()

MODEL_NAME = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
IMAGE_MODEL = os.getenv("IMAGE_MODEL", "gemini-2.5-flash-image")

logger = logging.getLogger(__name__)

_client: Optional[genai.Client] = None


def _vertex_client() -> genai.Client:
    project = os.getenv("GOOGLE_CLOUD_PROJECT") or os.getenv("GCP_PROJECT_ID")
    location = os.getenv("GOOGLE_CLOUD_LOCATION") or os.getenv("GCP_LOCATION") or "global"
    logger.info("No GEMINI_API_KEY set, using Vertex AI project=%s location=%s", project, location)
    return genai.Client(
        vertexai=True,
        project=project or None,
        location=location,
        http_options=types.HttpOptions(api_version="v1"),
    )


def get_client() -> genai.Client:
    """Gemini API client when GEMINI_API_KEY is set, Vertex AI otherwise."""
    global _client
    if _client is None:
        api_key = (os.getenv("GEMINI_API_KEY") or "").strip()
        _client = genai.Client(api_key=api_key) if api_key else _vertex_client()
    return _client


def _response_text(response: Any) -> str:
    raw_text = getattr(response, "text", None)
    if not raw_text and getattr(response, "candidates", None):
        raw_chunks = []
        for candidate in response.candidates:
            content = getattr(candidate, "content", None)
            for part in getattr(content, "parts", None) or []:
                if getattr(part, "text", None):
                    raw_chunks.append(part.text)
        raw_text = "".join(raw_chunks)
    return raw_text or ""


def generate_text(
    prompt: str,
    *,
    system_instruction: Optional[str] = None,
    temperature: float = 0.7,
    top_p: float = 0.9,
    max_output_tokens: int = 2048,
    response_mime_type: Optional[str] = None,
    model: Optional[str] = None,
) -> str:
    """Run a single-turn text prompt and return the model's text output.

    Raises ValueError when the model returns neither text nor text parts.
    """
    config = types.GenerateContentConfig(
        system_instruction=system_instruction,
        automatic_function_calling=types.AutomaticFunctionCallingConfig(disable=True),
        temperature=temperature,
        top_p=top_p,
        max_output_tokens=max_output_tokens,
        response_mime_type=response_mime_type,
    )
    response = get_client().models.generate_content(
        model=model or MODEL_NAME,
        contents=[types.Content(role="user", parts=[types.Part.from_text(text=prompt)])],
        config=config,
    )
    text = _response_text(response)
    logger.debug("Model %s returned %d characters", model or MODEL_NAME, len(text))
    if not text.strip():
        raise ValueError("Empty response from model")
    return text


def _inline_images(chunk: Any):
    for candidate in getattr(chunk, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            blob = getattr(part, "inline_data", None)
            if blob is not None and getattr(blob, "data", None):
                yield blob.data


def _collect_stream(stream) -> tuple[str, bytes | None]:
    """Join the streamed caption text and keep the first inline image."""
    caption = []
    image: bytes | None = None
    for chunk in stream:
        caption.append(getattr(chunk, "text", None) or "")
        if image is None:
            image = next(_inline_images(chunk), None)
    return "".join(caption), image


def stream_image(prompt: str, model: Optional[str] = None) -> tuple[str, bytes | None]:
    stream = get_client().models.generate_content_stream(
        model=model or IMAGE_MODEL,
        contents=[types.Content(role="user", parts=[types.Part.from_text(text=prompt)])],
        config=types.GenerateContentConfig(
            temperature=1,
            top_p=0.95,
            max_output_tokens=32768,
            response_modalities=["TEXT", "IMAGE"],
        ),
    )
    return _collect_stream(stream)
