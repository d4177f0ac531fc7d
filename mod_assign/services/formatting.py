"""Small text helpers used for grading previews, audit summaries and the read API."""
import html
import re
from html.parser import HTMLParser

from mod_assign.core.config import SHORTEN_TEXT_LENGTH, settings

PLUGINFILE_PLACEHOLDER = "@@PLUGINFILE@@"

_BLOCK_TAGS = {"p", "br", "div", "li", "tr", "h1", "h2", "h3", "h4", "h5", "h6"}


class _TextExtractor(HTMLParser):
    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.parts: list[str] = []
        self._skip = 0

    def handle_starttag(self, tag, attrs):
        if tag in ("script", "style"):
            self._skip += 1
        elif tag in _BLOCK_TAGS:
            self.parts.append("\n")

    def handle_endtag(self, tag):
        if tag in ("script", "style") and self._skip:
            self._skip -= 1
        elif tag in _BLOCK_TAGS:
            self.parts.append("\n")

    def handle_data(self, data):
        if not self._skip:
            self.parts.append(data)


def strip_markup(text: str | None) -> str:
    if not text:
        return ""
    parser = _TextExtractor()
    parser.feed(text)
    parser.close()
    lines = (re.sub(r"[ \t]+", " ", line).strip() for line in "".join(parser.parts).splitlines())
    return "\n".join(line for line in lines if line)


def count_words(text: str | None) -> int:
    plain = strip_markup(text)
    return len(re.findall(r"\S+", plain))


def shorten_text(text: str | None, length: int = SHORTEN_TEXT_LENGTH) -> str:
    plain = strip_markup(text).replace("\n", " ")
    if len(plain) <= length:
        return plain
    cut = plain[:length].rsplit(" ", 1)[0] or plain[:length]
    return cut.rstrip() + "..."


def rewrite_pluginfile_urls(text: str, assignment_id: int, filearea: str, item_id: int) -> str:
    """Expand @@PLUGINFILE@@ placeholders to absolute file URLs."""
    base = f"{settings.BASE_URL}/pluginfile/{assignment_id}/mod_assign/{filearea}/{item_id}"
    return text.replace(PLUGINFILE_PLACEHOLDER, base)


def escape(text: str) -> str:
    return html.escape(text, quote=True)
