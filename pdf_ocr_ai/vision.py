"""Image description via the OpenAI vision API.

The credential is passed per call. Calls are billable and not idempotent, so
no retry happens here; a failure surfaces as :class:`DescriptionServiceError`.
"""

from __future__ import annotations

import base64
import logging

import openai

from .config import VISION_MAX_TOKENS, VISION_MODEL, VISION_TIMEOUT_SEC
from .utils import DescriptionServiceError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant that can describe images in detail."


def _png_data_url(png_bytes: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("utf-8")


def describe_image(
    png_bytes: bytes,
    api_key: str,
    model: str = VISION_MODEL,
    max_tokens: int = VISION_MAX_TOKENS,
    timeout_sec: int = VISION_TIMEOUT_SEC,
) -> tuple[str, int]:
    """Describe a PNG image.

    Returns ``(description, usage)`` where usage is the total token count the
    API reported (0 if it reported none).
    """
    if not api_key:
        raise DescriptionServiceError("No OpenAI API key provided")

    client = openai.OpenAI(api_key=api_key, timeout=timeout_sec, max_retries=0)
    try:
        resp = client.chat.completions.create(
            model=model,
            max_tokens=max_tokens,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "image_url", "image_url": {"url": _png_data_url(png_bytes)}},
                    ],
                },
            ],
        )
    except openai.OpenAIError as exc:
        logger.error("Error getting image description: %s", exc)
        raise DescriptionServiceError(f"Failed to generate image description: {exc}") from exc

    if not resp.choices or not resp.choices[0].message.content:
        raise DescriptionServiceError("Failed to generate image description: empty response")

    usage = resp.usage.total_tokens if resp.usage is not None else 0
    logger.info("Vision token usage: %d", usage)
    return resp.choices[0].message.content.strip(), max(0, int(usage or 0))
