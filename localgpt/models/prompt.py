"""Prompt-resolution data models.

These records live for one prompt-preparation call and are discarded after.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..vault.graph import DocumentGraph
    from ..vault.tags import TagIndex


@dataclass
class PromptContext:
    """Inputs available to the variable processors.

    graph, current_document and tag_index are optional collaborator handles;
    without a graph the tag markers are left as they are.
    """
    selected_text: str = ""
    context_text: str = ""
    graph: "DocumentGraph | None" = None
    current_document: str | None = None
    exclude_folders: list[str] = field(default_factory=list)
    tag_index: "TagIndex | None" = None


@dataclass
class ProcessResult:
    """Resolved prompt plus the display flags found in it.

    None for a flag means "not specified at this scope", distinct from False.
    """
    prompt: str
    show_model_info: bool | None = None
    show_performance: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "prompt": self.prompt,
            "show_model_info": self.show_model_info,
            "show_performance": self.show_performance,
        }


@dataclass
class DisplayOptions:
    """Display flags after merging all scopes; never undefined."""
    show_model_info: bool
    show_performance: bool
