"""Tag statistics for the tag template markers.

The cache is an explicitly owned object: whoever builds it (normally the
session) decides its lifetime, and invalidate()/refresh() are the only way
to change it.
"""

import time

from ..core import DocumentError, get_logger
from .graph import DocumentGraph

logger = get_logger(__name__)


class TagIndex:
    """Reference counts of every tag in the vault, cached until invalidated."""

    def __init__(
        self,
        graph: DocumentGraph,
        exclude_folders: list[str] | None = None,
        cache_enabled: bool = True,
    ):
        self.graph = graph
        self.exclude_folders = [f.strip("/") for f in (exclude_folders or []) if f.strip("/")]
        self.cache_enabled = cache_enabled
        self._stats: dict[str, int] | None = None

    def _is_excluded(self, path: str) -> bool:
        return any(path == folder or path.startswith(f"{folder}/") for folder in self.exclude_folders)

    async def get(self, force_refresh: bool = False) -> dict[str, int]:
        """Tag -> number of documents referencing it."""
        if self._stats is not None and self.cache_enabled and not force_refresh:
            return self._stats
        return await self.refresh()

    def invalidate(self) -> None:
        self._stats = None
        logger.info("Tag cache invalidated")

    async def refresh(self) -> dict[str, int]:
        """Rescan the vault and replace the cached statistics."""
        start_time = time.time()
        stats: dict[str, int] = {}
        await self.graph.load_index()
        documents = [d for d in self.graph.list_documents() if not self._is_excluded(d)]

        for path in documents:
            try:
                tags = await self.graph.get_tags(path)
            except DocumentError as e:
                logger.warning("Skipping unreadable document", path=path, error=e.message)
                continue
            for tag in tags:
                stats[tag] = stats.get(tag, 0) + 1

        self._stats = stats
        logger.info(
            "Tag statistics refreshed",
            document_count=len(documents),
            tag_count=len(stats),
            duration_ms=round((time.time() - start_time) * 1000, 1),
        )
        return stats

    async def top_tags(self, limit: int = 100) -> list[tuple[str, int]]:
        """Most referenced tags first; ties broken by tag name."""
        stats = await self.get()
        return sorted(stats.items(), key=lambda item: (-item[1], item[0]))[:limit]

    async def summary(self, limit: int = 100) -> str:
        """Text block substituted for the all-tags marker."""
        stats = await self.get()
        top = await self.top_tags(limit)

        lines = [
            f"Total tags: {len(stats)}",
            "",
            f"Top {len(top)} most used tags:",
        ]
        lines.extend(f"{i}. {tag} ({count} references)" for i, (tag, count) in enumerate(top, 1))
        return "\n".join(lines) + "\n"
