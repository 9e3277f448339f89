"""
Blunder - Structured renderers (JSON, XML).

Both bodies carry the same fields: status, message, flag, file, line, code
and the bounded trace.
"""

from __future__ import annotations

import json
import re
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING, Any, Optional

from ..exceptions import RenderFailure
from .base import Body, Renderer

if TYPE_CHECKING:
    from ..http import HttpMessaging
    from ..item import ExceptionItem

# Characters XML 1.0 cannot represent
_INVALID_XML_RE = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def fault_fields(item: ExceptionItem) -> dict[str, Any]:
    return {
        "status": item.status,
        "message": item.message,
        "flag": item.severity,
        "file": item.file,
        "line": item.line,
        "code": item.code,
    }


class JsonRenderer(Renderer):
    """Renders ``{status, message, flag, file, line, code, trace}``."""

    content_type = "application/json; charset=utf-8"

    def render(self, item: ExceptionItem, http: Optional[HttpMessaging] = None) -> Body:
        payload = fault_fields(item)
        payload["trace"] = [frame.to_dict() for frame in item.trace()]
        try:
            content = json.dumps(payload, allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise RenderFailure(f"Could not encode fault as JSON: {exc}") from exc
        return Body(content, self.content_type)


class XmlRenderer(Renderer):
    """Renders an ``<xml>`` document with one ``<frame>`` per trace entry."""

    content_type = "application/xml; charset=utf-8"

    def render(self, item: ExceptionItem, http: Optional[HttpMessaging] = None) -> Body:
        root = ET.Element("xml")
        for name, value in fault_fields(item).items():
            self._child(root, name, value)

        trace = ET.SubElement(root, "trace")
        for frame in item.trace():
            node = ET.SubElement(trace, "frame")
            self._child(node, "file", frame.file)
            self._child(node, "line", frame.line)
            self._child(node, "class", frame.class_name)
            self._child(node, "function", frame.function)

        try:
            content = ET.tostring(root, encoding="unicode")
        except (TypeError, ValueError) as exc:
            raise RenderFailure(f"Could not encode fault as XML: {exc}") from exc
        return Body('<?xml version="1.0"?>\n' + content + "\n", self.content_type)

    @staticmethod
    def _child(parent: ET.Element, tag: str, value: Any) -> ET.Element:
        text = "" if value is None else str(value)
        if _INVALID_XML_RE.search(text):
            raise RenderFailure(f"Value of <{tag}> contains characters XML cannot represent")
        node = ET.SubElement(parent, tag)
        node.text = text
        return node
