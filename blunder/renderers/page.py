"""
Blunder - HTML debug page renderer.

Renders a Jinja2 page with a frame navigation list, a source excerpt around
every frame that points at a readable file, a severity breadcrumb and the
request details. Source files and assets are read through the HTTP
collaborator's stream.
"""

from __future__ import annotations

import html
import json
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Optional

from jinja2 import Environment, PackageLoader, select_autoescape

from ..exceptions import ConfigurationError, PreconditionError
from ..metadata import StackFrame
from . import formatting
from .base import Body, Renderer

if TYPE_CHECKING:
    from ..http import HttpMessaging
    from ..item import ExceptionItem

ASSET_DIR = Path(__file__).resolve().parent.parent / "assets"
ALLOWED_ASSET_EXTENSIONS = (".css", ".js")
ROW_EXCERPT_LENGTH = 400


class HtmlRenderer(Renderer):
    """
    Debug page renderer.

    Args:
        css_file: Stylesheet inlined into the page, relative to the asset dir
        js_file: Script inlined into the page, relative to the asset dir
        title: Page title
    """

    content_type = "text/html; charset=utf-8"
    template_name = "debug.html"

    def __init__(self, css_file: str = "main.css", js_file: str = "main.js", title: str = "Blunder"):
        self.css_file = css_file
        self.js_file = js_file
        self.title = title
        self.env = Environment(
            loader=PackageLoader("blunder", "templates"),
            autoescape=select_autoescape(enabled_extensions=["html"]),
        )

    def render(self, item: ExceptionItem, http: Optional[HttpMessaging] = None) -> Body:
        if http is None:
            raise PreconditionError("HtmlRenderer needs the HTTP collaborator to read sources")

        trace = item.trace()
        request = http.request()
        port = request.port if request.port is not None else 80

        template = self.env.get_template(self.template_name)
        content = template.render(
            title=self.title,
            css=self.asset_content(self.css_file, http),
            js=self.asset_content(self.js_file, http),
            breadcrumb=self.breadcrumb(item),
            severity_title=item.severity_title,
            message=item.message,
            nav=self.nav_items(trace),
            code_blocks=self.code_blocks(trace, http),
            sections=[
                self.rows("URI/GET Request", {
                    "Method": request.method,
                    "URI": request.uri,
                    "SSL": "true" if request.scheme == "https" else "false",
                    "Port": port,
                    "Query": request.query,
                }),
                self.rows("POST Request", request.body),
                self.rows("FILE Request", request.files),
                self.rows("COOKIE", request.cookies),
                self.rows("SERVER", request.server),
            ],
        )
        return Body(content, self.content_type)

    def build_message(self, item: ExceptionItem) -> str:
        return f"{item.severity_title}: {item.message}"

    # ========================================================================
    # Blocks
    # ========================================================================

    def code_block(self, frame: StackFrame, excerpt: str, index: int = 0) -> str:
        function = f" ({frame.function})" if frame.function else ""
        show = "show" if index == 0 else ""
        return (
            f'<div class="code-block vcard-1 border-bottom {show}" data-index="{index}">'
            f'<div class="text-sm color-darkgreen mb-5">{html.escape(frame.class_name)}{html.escape(function)}</div>'
            f'<div class="text-sm color-grey">{html.escape(frame.file)}</div>'
            f"<pre>{excerpt}</pre>"
            f"</div>"
        )

    def code_blocks(self, trace: list[StackFrame], http: HttpMessaging) -> list[str]:
        blocks = []
        for index, frame in enumerate(trace):
            if not (frame.file and os.path.isfile(frame.file)):
                continue
            with http.stream(frame.file, "r") as stream:
                lines = stream.readlines()
            window = formatting.source_window(lines, frame.line)
            blocks.append(self.code_block(frame, formatting.highlight_window(window, frame.line), index))
        return blocks

    def nav_items(self, trace: list[StackFrame]) -> list[dict[str, Any]]:
        length = len(trace)
        return [
            {
                "index": index,
                "number": length - index,
                "label": f"{frame.class_name}{f' ({frame.function})' if frame.function else ''}",
                "file": frame.file.lstrip("/"),
                "line": frame.line,
            }
            for index, frame in enumerate(trace)
            if frame.file and os.path.isfile(frame.file)
        ]

    def breadcrumb(self, item: ExceptionItem) -> dict[str, Optional[str]]:
        return {"type": item.type, "constant": item.severity_constant}

    def rows(self, title: str, rows: Optional[Mapping[str, Any]]) -> dict[str, Any]:
        items = []
        for key, value in (rows or {}).items():
            if isinstance(value, (dict, list, tuple)):
                value = json.dumps(value, default=str)
            items.append((str(key), formatting.excerpt(str(value), ROW_EXCERPT_LENGTH)))
        return {"title": title, "rows": items}

    # ========================================================================
    # Assets
    # ========================================================================

    def asset_content(self, file: str, http: HttpMessaging) -> str:
        """
        Read a stylesheet or script through the collaborator stream.

        Raises:
            ConfigurationError: If ``file`` is not a .css or .js file
        """
        if not file.endswith(ALLOWED_ASSET_EXTENSIONS):
            raise ConfigurationError("Only JS and CSS files are allowed as asset files")
        path = Path(file) if os.path.isabs(file) else ASSET_DIR / file
        with http.stream(path, "r") as stream:
            return stream.get_contents()
