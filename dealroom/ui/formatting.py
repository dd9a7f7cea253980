"""Markdown and text helpers for chat bubbles and previews."""

import re
from html import escape

_CODE_BLOCK = re.compile(r"```\w*\n?([\s\S]*?)```")
_INLINE_CODE = re.compile(r"`([^`]+)`")
_BOLD = re.compile(r"\*\*(.+?)\*\*|__(.+?)__")
_ITALIC = re.compile(r"\*([^*\n]+)\*|(?<!\w)_([^_\n]+)_(?!\w)")
_LINK = re.compile(r"\[([^\]]+)\]\((https?://[^)\s]+)\)")
_BULLET = re.compile(r"^[-*]\s+")
_NUMBERED = re.compile(r"^\d+\.\s+")

_LIST_CLASSES = {
    "ul": "list-disc list-inside my-2 space-y-1",
    "ol": "list-decimal list-inside my-2 space-y-1",
}


def _inline(text: str) -> str:
    text = _INLINE_CODE.sub(
        r'<code class="bg-gray-200 text-pink-600 px-1.5 py-0.5 rounded text-xs">\1</code>', text
    )
    text = _BOLD.sub(lambda m: f"<strong>{m.group(1) or m.group(2)}</strong>", text)
    text = _ITALIC.sub(lambda m: f"<em>{m.group(1) or m.group(2)}</em>", text)
    return _LINK.sub(r'<a href="\2" class="text-indigo-600 underline" target="_blank">\1</a>', text)


def _lists(text: str) -> str:
    result: list[str] = []
    open_tag: str | None = None
    for line in text.split("\n"):
        stripped = line.strip()
        tag, pattern = None, None
        if _BULLET.match(stripped):
            tag, pattern = "ul", _BULLET
        elif _NUMBERED.match(stripped):
            tag, pattern = "ol", _NUMBERED

        if open_tag and tag != open_tag:
            result.append(f"</{open_tag}>")
            open_tag = None
        if tag is None:
            result.append(line)
            continue
        if open_tag is None:
            result.append(f'<{tag} class="{_LIST_CLASSES[tag]}">')
            open_tag = tag
        result.append(f"<li>{pattern.sub('', stripped)}</li>")

    if open_tag:
        result.append(f"</{open_tag}>")
    return "\n".join(result)


def markdown_to_html(text: str) -> str:
    """Render the markdown subset used by assistant replies.

    Supports code blocks, inline code, bold, italic, http(s) links and
    bullet or numbered lists. The input is escaped first, so only the tags
    produced here reach the page.
    """
    text = escape(text)

    blocks: list[str] = []

    def stash(match: re.Match) -> str:
        blocks.append(
            '<pre class="bg-gray-800 text-gray-100 rounded-lg p-3 my-2 overflow-x-auto text-xs">'
            f"<code>{match.group(1)}</code></pre>"
        )
        return f"\x00{len(blocks) - 1}\x00"

    text = _CODE_BLOCK.sub(stash, text)
    text = _inline(_lists(text)).replace("\n", "<br>")
    # Lists already break lines
    text = re.sub(r"<br>(</?(?:ul|ol|li)\b)", r"\1", text)
    return re.sub(r"\x00(\d+)\x00", lambda m: blocks[int(m.group(1))], text)


def preformatted(text: str, zoom: int = 100) -> str:
    """Monospace block for plain text previews, scaled by font size."""
    return (
        '<pre class="whitespace-pre-wrap font-mono leading-relaxed" '
        f'style="font-size: {zoom}%">{escape(text)}</pre>'
    )
