"""Document node model for template merging.

Key Components:
    ElementNode: Element with namespace, attributes and ordered children
    ProcessingInstructionNode: Named slot whose delegates replace it on output
    TextNode, CommentNode, CDataNode: Immutable leaf nodes
    NodeArena: Owner of every element in one document tree
"""

from .arena import NodeArena
from .nodes import (
    AttributeValue,
    CDataNode,
    CommentNode,
    ElementNode,
    Node,
    ProcessingInstructionNode,
    TextNode,
)

__all__ = [
    "AttributeValue",
    "CDataNode",
    "CommentNode",
    "ElementNode",
    "Node",
    "NodeArena",
    "ProcessingInstructionNode",
    "TextNode",
]
