"""
Interaction records - What the user did, and to which element.

Interactions are read from the ``user-interaction`` events of a recorded
timeline. They are immutable inputs to replay.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from bug_replay.models.timeline import TimelineEvent


class InteractionType(str, Enum):
    """Kinds of recorded user interactions."""
    CLICK = "click"
    INPUT = "input"
    KEYPRESS = "keypress"
    OTHER = "other"
    
    @classmethod
    def from_value(cls, value: Optional[str]) -> "InteractionType":
        """Map a recorded subtype to a member, falling back to OTHER."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER
    
    @property
    def is_replayable(self) -> bool:
        return self in (InteractionType.CLICK, InteractionType.INPUT)


@dataclass(frozen=True)
class ElementDescriptor:
    """
    Best-effort fingerprint of a DOM element captured at recording time.
    
    Every field is optional; none of them is guaranteed to still match
    the live page.
    
    Attributes:
        id: The element's id attribute
        selector: CSS selector generated at recording time
        text_content: First characters of the element's text
        tag_name: Lower-case tag name
        xpath: Absolute XPath generated at recording time
        class_name: The element's class attribute
        input_type: The element's type attribute (inputs only)
    """
    id: Optional[str] = None
    selector: Optional[str] = None
    text_content: Optional[str] = None
    tag_name: Optional[str] = None
    xpath: Optional[str] = None
    class_name: Optional[str] = None
    input_type: Optional[str] = None
    
    @property
    def is_resolvable(self) -> bool:
        """Whether at least one resolution strategy has something to work with."""
        return any((self.id, self.selector, self.text_content, self.xpath))
    
    @property
    def label(self) -> str:
        """Short human-readable name of the target."""
        if self.text_content:
            return self.text_content
        if self.id:
            return self.id
        tag = self.tag_name or "element"
        return f"{tag}.{self.class_name}" if self.class_name else tag
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result: Dict[str, Any] = {}
        if self.tag_name is not None:
            result["tagName"] = self.tag_name
        if self.input_type is not None:
            result["type"] = self.input_type
        if self.id is not None:
            result["id"] = self.id
        if self.class_name is not None:
            result["className"] = self.class_name
        if self.text_content is not None:
            result["textContent"] = self.text_content
        if self.selector is not None:
            result["selector"] = self.selector
        if self.xpath is not None:
            result["xpath"] = self.xpath
        return result
    
    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ElementDescriptor":
        """Create from dictionary. Empty strings count as absent."""
        data = data or {}
        
        def pick(key: str) -> Optional[str]:
            value = data.get(key)
            if value is None or value == "":
                return None
            return str(value)
        
        return cls(
            id=pick("id"),
            selector=pick("selector"),
            text_content=pick("textContent"),
            tag_name=pick("tagName"),
            xpath=pick("xpath"),
            class_name=pick("className"),
            input_type=pick("type"),
        )


@dataclass(frozen=True)
class InteractionRecord:
    """
    A single recorded user interaction.
    
    Attributes:
        type: Kind of interaction
        relative_time: Milliseconds since the recording session started
        element: Descriptor of the target element
        value: Value typed (input interactions only)
        key: Key pressed (keypress interactions only)
        subtype: The raw recorded subtype string
    """
    type: InteractionType
    relative_time: int
    element: ElementDescriptor
    value: Optional[str] = None
    key: Optional[str] = None
    subtype: str = ""
    
    @classmethod
    def from_event(cls, event: "TimelineEvent") -> "InteractionRecord":
        """Build a record from a ``user-interaction`` timeline event."""
        data = event.data or {}
        value = data.get("value")
        return cls(
            type=InteractionType.from_value(event.subtype),
            relative_time=int(event.relative_time or 0),
            element=ElementDescriptor.from_dict(data.get("element")),
            value=None if value is None else str(value),
            key=data.get("key"),
            subtype=event.subtype or "",
        )

