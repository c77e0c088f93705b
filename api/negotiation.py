"""
Response content negotiation

Responses are JSON unless the Accept header names ``application/xml``
before ``application/json``. XML bodies wrap the payload as
``<response><data>...</data></response>`` and errors as
``<response><error>...</error><code>...</code></response>``.
"""
import xml.etree.ElementTree as ET
from typing import Any, Optional

from fastapi import Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from backend.errors import UnsupportedMediaType

JSON = "application/json"
XML = "application/xml"


def media_type(header: Optional[str]) -> str:
    """Media type of a Content-Type header with parameters stripped"""
    return (header or "").split(";")[0].strip().lower()


def response_media_type(accept: Optional[str]) -> str:
    """First supported type listed in Accept, quality values ignored"""
    for entry in (accept or "").split(","):
        candidate = media_type(entry)
        if candidate in (JSON, XML):
            return candidate
    return JSON


def require_json_body(request: Request) -> None:
    """Dependency rejecting request bodies that are not JSON"""
    if media_type(request.headers.get("content-type")) != JSON:
        raise UnsupportedMediaType()


def _child_tag(tag: str) -> str:
    return tag[:-1] if tag.endswith("s") and len(tag) > 1 else "item"


def _append(parent: ET.Element, tag: str, value: Any) -> None:
    element = ET.SubElement(parent, tag)
    if isinstance(value, dict):
        for key, item in value.items():
            _append(element, str(key), item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _append(element, _child_tag(tag), item)
    elif isinstance(value, bool):
        element.text = "true" if value else "false"
    elif value is not None:
        element.text = str(value)


def to_xml(content: Any = None, error: Optional[dict] = None) -> bytes:
    """Serialize a payload (or an error body) into the XML envelope"""
    root = ET.Element("response")
    if error is not None:
        for key, value in error.items():
            _append(root, key, value)
    elif content is not None:
        _append(root, "data", jsonable_encoder(content))
    return ET.tostring(root, encoding="utf-8")


def render(request: Request, content: Any, status_code: int = 200) -> Response:
    """Render a successful payload in the negotiated media type"""
    if response_media_type(request.headers.get("accept")) == XML:
        return Response(content=to_xml(content), status_code=status_code, media_type=XML)
    return JSONResponse(content=jsonable_encoder(content), status_code=status_code)


def render_error(request: Request, status_code: int, body: dict) -> Response:
    """Render an ``{error, code}`` body in the negotiated media type"""
    if response_media_type(request.headers.get("accept")) == XML:
        return Response(content=to_xml(error=body), status_code=status_code, media_type=XML)
    return JSONResponse(content=body, status_code=status_code)
