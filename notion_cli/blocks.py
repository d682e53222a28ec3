"""
Block builders for block-append and page-create content.
"""

from notion_cli._utils import plain_text, rich_text

# Block types whose content lives in a rich_text array.
TEXT_BLOCK_TYPES = (
    "paragraph",
    "heading_1",
    "heading_2",
    "heading_3",
    "bulleted_list_item",
    "numbered_list_item",
    "to_do",
    "quote",
    "callout",
    "code",
    "toggle",
)


def text_block(block_type, text, **extra):
    body = {"rich_text": rich_text(text)}
    body.update(extra)
    return {"object": "block", "type": block_type, block_type: body}


def paragraph(text):
    return text_block("paragraph", text)


def heading(text, level):
    if level not in (1, 2, 3):
        raise ValueError(f"heading level must be 1-3, got {level}")
    return text_block(f"heading_{level}", text)


def bullet(text):
    return text_block("bulleted_list_item", text)


def numbered(text):
    return text_block("numbered_list_item", text)


def todo(text, checked=False):
    return text_block("to_do", text, checked=checked)


def code(text, language="plain text"):
    return text_block("code", text, language=language)


def quote(text):
    return text_block("quote", text)


def callout(text, emoji="💡"):
    return text_block("callout", text, icon={"type": "emoji", "emoji": emoji})


def divider():
    return {"object": "block", "type": "divider", "divider": {}}


def build_children(
    *,
    text=None,
    heading1=None,
    heading2=None,
    heading3=None,
    bullets=(),
    numbers=(),
    todos=(),
    code_text=None,
    code_lang="plain text",
    quote_text=None,
    callout_text=None,
    add_divider=False,
):
    """Build a children array: text, headings, lists, code, quote, divider, callout."""
    children = []
    if text:
        children.append(paragraph(text))
    for level, value in ((1, heading1), (2, heading2), (3, heading3)):
        if value:
            children.append(heading(value, level))
    children.extend(bullet(t) for t in bullets or ())
    children.extend(numbered(t) for t in numbers or ())
    children.extend(todo(t) for t in todos or ())
    if code_text:
        children.append(code(code_text, code_lang))
    if quote_text:
        children.append(quote(quote_text))
    if add_divider:
        children.append(divider())
    if callout_text:
        children.append(callout(callout_text))
    return children


def block_text(block):
    """Plain text of a block, or '' for blocks without rich text."""
    btype = block.get("type")
    body = block.get(btype) or {}
    if not isinstance(body, dict):
        return ""
    return plain_text(body.get("rich_text"))
