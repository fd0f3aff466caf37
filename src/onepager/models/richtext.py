"""Rich-text content model for block bodies.

A block body is a tree of nodes. Each node is either a container (a type
plus ordered children, e.g. "doc", "paragraph", "bulletList", "listItem")
or a text leaf (type "text" plus a literal string). Nodes are frozen, so a
body is replaced wholesale on every change and two bodies can be compared
structurally with ``==``.

The serialized shape follows the editor JSON convention::

    {"type": "doc", "content": [
        {"type": "paragraph", "content": [{"type": "text", "text": "Hello"}]}
    ]}
"""

from typing import Any, Iterable, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, model_validator


TEXT = "text"
DOC = "doc"
PARAGRAPH = "paragraph"
BULLET_LIST = "bulletList"
LIST_ITEM = "listItem"


class ContentNode(BaseModel):
    """One node of a rich-text tree."""

    type: str = Field(
        ...,
        description="Node type ('text' for leaves, container type otherwise)"
    )

    children: tuple["ContentNode", ...] = Field(
        default=(),
        validation_alias=AliasChoices("children", "content"),
        serialization_alias="content",
        description="Ordered child nodes (containers only)"
    )

    text: Optional[str] = Field(
        default=None,
        description="Literal string (text leaves only)"
    )

    @model_validator(mode="after")
    def check_leaf_shape(self) -> "ContentNode":
        """Text leaves carry a string and no children; containers carry no text."""
        if self.type == TEXT:
            if self.text is None:
                raise ValueError("text node requires a 'text' value")
            if self.children:
                raise ValueError("text node cannot have children")
        elif self.text is not None:
            raise ValueError(f"container node '{self.type}' cannot carry text")
        return self

    @property
    def is_text(self) -> bool:
        return self.type == TEXT

    def to_json(self) -> dict[str, Any]:
        """Serialize to the editor JSON shape (empty fields omitted)."""
        if self.is_text:
            return {"type": TEXT, "text": self.text}
        data: dict[str, Any] = {"type": self.type}
        if self.children:
            data["content"] = [child.to_json() for child in self.children]
        return data

    model_config = {"frozen": True, "populate_by_name": True}


ContentNode.model_rebuild()


ContentValue = Union[ContentNode, str, dict, None]


def flatten(node: ContentNode) -> str:
    """
    Flatten a content tree to plain text.

    A text leaf contributes its literal string; a container contributes the
    concatenation of its flattened children, in order. No separators are
    inserted between siblings.

    Args:
        node: Root of the tree (or any subtree)

    Returns:
        Plain text

    Example:
        >>> flatten(paragraph("Hello world"))
        'Hello world'
    """
    if node.is_text:
        return node.text or ""
    return "".join(flatten(child) for child in node.children)


def text_node(text: str) -> ContentNode:
    return ContentNode(type=TEXT, text=text)


def _paragraph_node(text: str) -> ContentNode:
    # Empty paragraphs have no children; the editor rejects empty text leaves
    if not text:
        return ContentNode(type=PARAGRAPH)
    return ContentNode(type=PARAGRAPH, children=(text_node(text),))


def empty_content() -> ContentNode:
    """Return the body of a freshly created block (one empty paragraph)."""
    return ContentNode(type=DOC, children=(_paragraph_node(""),))


def paragraph(text: str) -> ContentNode:
    """Wrap a string in a single-paragraph document tree."""
    return ContentNode(type=DOC, children=(_paragraph_node(text),))


def from_plain_text(text: str) -> ContentNode:
    """
    Build a document tree from plain text.

    Blank-line separated chunks become separate paragraphs. Text without
    blank lines yields the same tree as ``paragraph(text)``.
    """
    chunks = [chunk.strip() for chunk in text.strip().split("\n\n")]
    chunks = [chunk for chunk in chunks if chunk]
    if len(chunks) <= 1:
        return paragraph(chunks[0] if chunks else "")
    return ContentNode(type=DOC, children=tuple(_paragraph_node(c) for c in chunks))


def bullet_list(items: Iterable[str]) -> ContentNode:
    """
    Assemble a bullet-list document from item strings.

    Used to turn summarize-type AI responses into block content.

    Args:
        items: Bullet texts, in order

    Returns:
        ``doc > bulletList > listItem > paragraph > text`` tree
    """
    list_items = tuple(
        ContentNode(type=LIST_ITEM, children=(_paragraph_node(item),))
        for item in items
    )
    return ContentNode(
        type=DOC,
        children=(ContentNode(type=BULLET_LIST, children=list_items),)
    )


def normalize_content(value: ContentValue) -> ContentNode:
    """
    Coerce stored or incoming content into a content tree.

    Legacy records store content as a plain string; those are wrapped in a
    single-paragraph tree instead of failing.

    Args:
        value: Existing tree, editor JSON dict, legacy string, or None

    Returns:
        Content tree

    Raises:
        pydantic.ValidationError: If a dict does not describe a valid tree
    """
    if value is None:
        return empty_content()
    if isinstance(value, ContentNode):
        return value
    if isinstance(value, str):
        return paragraph(value)
    return ContentNode.model_validate(value)


def render_text(node: ContentNode) -> str:
    """
    Render a tree as readable multi-line text for terminal display.

    Paragraphs end with a newline and list items are prefixed with "- ".
    Unlike ``flatten`` this is lossy in the other direction (adds layout),
    so it is never used for analysis or length thresholds.
    """
    lines: list[str] = []

    def walk(current: ContentNode, bullet: bool) -> None:
        if current.type == PARAGRAPH:
            text = flatten(current)
            lines.append(f"- {text}" if bullet else text)
        elif current.type == LIST_ITEM:
            for child in current.children:
                walk(child, True)
        elif current.is_text:
            lines.append(current.text or "")
        else:
            for child in current.children:
                walk(child, bullet)

    walk(node, False)
    return "\n".join(lines)
