"""
Structural node types produced by the reconstruction engine.

Every node carries a `node_type` tag and serializes with to_dict(). The
serializers in export.py map each type to a word-processor construct.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Dict, Any


class NodeType(Enum):
    """Tags for structural nodes."""
    HEADING = "heading"
    LIST_ITEM = "list_item"
    TABLE = "table"
    PARAGRAPH = "paragraph"
    PAGE_BREAK = "page_break"
    SCAN_WARNING = "scan_warning"


class ListKind(Enum):
    BULLET = "bullet"
    NUMBERED = "numbered"


class WarningReason(Enum):
    """Why a page was replaced by a scan warning."""
    LOW_TEXT = "low_text"
    MALFORMED_INPUT = "malformed_input"
    EMPTY_PAGE = "empty_page"


@dataclass
class StructuralNode:
    """Base class for document nodes."""
    node_type: ClassVar[NodeType]

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.node_type.value}


@dataclass
class Heading(StructuralNode):
    level: int
    text: str
    node_type: ClassVar[NodeType] = NodeType.HEADING

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.node_type.value, "level": self.level, "text": self.text}


@dataclass
class ListItem(StructuralNode):
    kind: ListKind
    text: str
    node_type: ClassVar[NodeType] = NodeType.LIST_ITEM

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.node_type.value, "kind": self.kind.value, "text": self.text}


@dataclass
class Table(StructuralNode):
    rows: List[List[str]] = field(default_factory=list)
    node_type: ClassVar[NodeType] = NodeType.TABLE

    @property
    def num_rows(self) -> int:
        return len(self.rows)

    @property
    def num_cols(self) -> int:
        return max((len(r) for r in self.rows), default=0)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.node_type.value, "rows": [list(r) for r in self.rows]}


@dataclass
class Paragraph(StructuralNode):
    text: str
    node_type: ClassVar[NodeType] = NodeType.PARAGRAPH

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.node_type.value, "text": self.text}


@dataclass
class PageBreak(StructuralNode):
    node_type: ClassVar[NodeType] = NodeType.PAGE_BREAK


@dataclass
class ScanWarning(StructuralNode):
    page_number: int
    reason: WarningReason = WarningReason.LOW_TEXT
    node_type: ClassVar[NodeType] = NodeType.SCAN_WARNING

    @property
    def message(self) -> str:
        if self.reason == WarningReason.MALFORMED_INPUT:
            return f"(Page {self.page_number}: page data could not be read)"
        if self.reason == WarningReason.EMPTY_PAGE:
            return f"(Page {self.page_number}: no text recognized)"
        return f"(Page {self.page_number}: little or no selectable text detected)"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.node_type.value,
            "page_number": self.page_number,
            "reason": self.reason.value
        }
