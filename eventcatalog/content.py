import re

from jinja2 import Environment, PackageLoader, select_autoescape

from eventcatalog.changes import plain_text

_PARAGRAPH_SPLIT = re.compile(r"</p>\s*<p[^>]*>|\n\s*\n+", re.IGNORECASE)

_env = Environment(
    loader=PackageLoader("eventcatalog", "templates"),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def description_paragraphs(description: str) -> list[str]:
    """Split an HTML or plain-text description into plain-text paragraphs."""
    if not description:
        return []
    paragraphs = []
    for chunk in _PARAGRAPH_SPLIT.split(description):
        text = plain_text(chunk)
        if text:
            paragraphs.append(text)
    return paragraphs


def render_event_content(attrs: dict[str, str]) -> str:
    """Render the event-details content stored alongside each event."""
    details = {k: v for k, v in attrs.items() if v and k != "description"}
    template = _env.get_template("event_details.html")
    return template.render(
        details=details,
        paragraphs=description_paragraphs(attrs.get("description", "")),
    )
