"""Link discovery: which documents does a piece of text reference?"""

import posixpath

from ..core import get_logger
from ..models import LinkedDocument, LinkSource
from ..vault.graph import DocumentGraph
from ..vault.markdown import find_link_targets

logger = get_logger(__name__)


def document_title(path: str) -> str:
    """Display title of a document: its file name without extension."""
    return posixpath.splitext(posixpath.basename(path))[0]


class LinkExtractor:
    """Resolves the references in a text body against the document graph."""

    def __init__(self, graph: DocumentGraph, exclude_folders: list[str] | None = None):
        self.graph = graph
        self.exclude_folders = [f.strip("/") for f in (exclude_folders or []) if f.strip("/")]

    def _is_excluded(self, path: str) -> bool:
        return any(path == folder or path.startswith(f"{folder}/") for folder in self.exclude_folders)

    def extract(self, text: str, active_document: str) -> list[LinkedDocument]:
        """Return the deduplicated documents referenced by ``text``.

        Unresolvable references and references back to the active document
        are dropped. One hop only; expansion is the orchestrator's job.
        """
        documents: list[LinkedDocument] = []
        seen: set[str] = set()

        for target in find_link_targets(text):
            path = self.graph.resolve_link(target, active_document)
            if path is None:
                logger.debug("Unresolved link", target=target)
                continue
            if path == active_document or path in seen or self._is_excluded(path):
                continue
            seen.add(path)
            documents.append(LinkedDocument(path=path, title=document_title(path)))

        return documents

    def has_links(self, text: str, active_document: str) -> bool:
        return bool(self.extract(text, active_document))

    async def expand_backlinks(
        self,
        documents: list[LinkedDocument],
        active_document: str,
    ) -> list[LinkedDocument]:
        """Add one hop of backlinks of each linked document.

        Returns the original documents followed by the new ones; the active
        document is never added.
        """
        expanded = list(documents)
        seen = {d.path for d in documents}
        seen.add(active_document)

        for document in documents:
            for path in await self.graph.get_backlinks(document.path):
                if path in seen or self._is_excluded(path):
                    continue
                seen.add(path)
                expanded.append(
                    LinkedDocument(path=path, title=document_title(path), source=LinkSource.BACKLINK)
                )

        return expanded
