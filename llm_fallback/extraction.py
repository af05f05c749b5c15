"""
Content extraction from heterogeneous provider payloads.

Providers have answered with several shapes over time (OpenAI-style `data`
arrays, a bare `image` data URL, chat `choices`, Gemini `candidates`). Each
extractor below recognizes one shape and returns None when it does not apply;
the tuples fix the order in which they are consulted.
"""

import json
from typing import Any, Callable, Optional

from .models import ImageRef


ALTERNATE_TEXT_FIELDS = ("output_text", "text", "content", "message", "response")


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _first(value: Any) -> dict:
    if isinstance(value, list) and value:
        return _as_dict(value[0])
    return {}


def _gemini_parts(raw: Any) -> list[dict]:
    content = _as_dict(_first(_as_dict(raw).get("candidates")).get("content"))
    parts = content.get("parts")
    if not isinstance(parts, list):
        return []
    return [p for p in parts if isinstance(p, dict)]


def _is_http_url(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(("http://", "https://"))


def parse_data_url(value: str) -> Optional[ImageRef]:
    """Split `data:<mime>;base64,<payload>` into an ImageRef."""
    if not value.startswith("data:") or "," not in value:
        return None
    header, payload = value.split(",", 1)
    if not payload:
        return None
    mime_type = header[len("data:"):].split(";")[0] or "image/png"
    return ImageRef(base64=payload, mime_type=mime_type)


# Text


def _choices_content(raw: Any) -> Optional[str]:
    message = _as_dict(_first(_as_dict(raw).get("choices")).get("message"))
    content = message.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        # Multi-part content: keep the text parts
        texts = [p.get("text") for p in content if isinstance(p, dict)]
        return "".join(t for t in texts if isinstance(t, str))
    if content is None and "content" in message:
        # Tool-call replies carry an explicit null content
        return ""
    return None


def _gemini_text(raw: Any) -> Optional[str]:
    if not _as_dict(raw).get("candidates"):
        return None
    texts = [p.get("text") for p in _gemini_parts(raw)]
    return "".join(t for t in texts if isinstance(t, str) and t)


def _alternate_text(raw: Any) -> Optional[str]:
    data = _as_dict(raw)
    for key in ALTERNATE_TEXT_FIELDS:
        if isinstance(data.get(key), str):
            return data[key]
    return None


def _stringify(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    try:
        return json.dumps(raw, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(raw)


TEXT_EXTRACTORS: tuple[Callable[[Any], Optional[str]], ...] = (
    _choices_content,
    _gemini_text,
    _alternate_text,
)


def find_text(raw: Any) -> Optional[str]:
    """First text found by TEXT_EXTRACTORS, or None."""
    for extractor in TEXT_EXTRACTORS:
        text = extractor(raw)
        if text is not None:
            return text
    return None


def extract_text(raw: Any) -> str:
    """Like find_text, but falls back to the stringified payload. Always succeeds."""
    text = find_text(raw)
    if text is not None:
        return text
    return _stringify(raw)


# Images


def _image_url(raw: Any) -> Optional[ImageRef]:
    data = _as_dict(raw)
    candidates = (
        _first(data.get("data")).get("url"),
        data.get("url"),
        data.get("image_url"),
        data.get("image"),
    )
    for candidate in candidates:
        if _is_http_url(candidate):
            return ImageRef(url=candidate)
    return None


def _inline_image(raw: Any) -> Optional[ImageRef]:
    data = _as_dict(raw)

    image = data.get("image")
    if isinstance(image, str):
        ref = parse_data_url(image)
        if ref is not None:
            return ref

    for candidate in (
        _first(data.get("data")).get("b64_json"),
        data.get("b64_json"),
        data.get("image_base64"),
    ):
        if isinstance(candidate, str) and candidate:
            return ImageRef(base64=candidate, mime_type="image/png")

    for part in _gemini_parts(raw):
        inline = _as_dict(part.get("inlineData") or part.get("inline_data"))
        if isinstance(inline.get("data"), str) and inline["data"]:
            mime_type = inline.get("mimeType") or inline.get("mime_type") or "image/png"
            return ImageRef(base64=inline["data"], mime_type=mime_type)

    return None


IMAGE_EXTRACTORS: tuple[Callable[[Any], Optional[ImageRef]], ...] = (
    _image_url,
    _inline_image,
)


def find_image(raw: Any) -> Optional[ImageRef]:
    for extractor in IMAGE_EXTRACTORS:
        ref = extractor(raw)
        if ref is not None:
            return ref
    return None


def find_revised_prompt(raw: Any) -> Optional[str]:
    data = _as_dict(raw)
    for candidate in (
        _first(data.get("data")).get("revised_prompt"),
        data.get("promptUsed"),
        data.get("revised_prompt"),
    ):
        if isinstance(candidate, str) and candidate.strip():
            return candidate
    return None
