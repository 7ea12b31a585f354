"""Document graph over a vault folder.

The graph is the collaborator the core uses to resolve textual references,
walk links and read document text. ``VaultDocumentGraph`` implements it for a
folder of markdown notes and PDFs, resolving links the way Obsidian does.
"""

import asyncio
import posixpath
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Protocol

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from ..core import DocumentNotFoundError, DocumentReadError, get_logger
from .markdown import find_link_targets, find_tags

logger = get_logger(__name__)

DOCUMENT_EXTENSIONS = (".md", ".pdf")

# Thread pool for blocking file reads
_executor = ThreadPoolExecutor(max_workers=4)


class DocumentGraph(Protocol):
    """Collaborator interface consumed by the prompt and retrieval core."""

    def resolve_link(self, link_text: str, source_path: str) -> str | None: ...

    def resolve_attachment(self, link_text: str, source_path: str) -> str | None: ...

    def list_documents(self) -> list[str]: ...

    async def load_index(self) -> None: ...

    async def read_text(self, path: str) -> str: ...

    async def read_bytes(self, path: str) -> bytes: ...

    async def get_forward_links(self, path: str) -> list[str]: ...

    async def get_backlinks(self, path: str) -> list[str]: ...

    async def get_tags(self, path: str) -> list[str]: ...


class VaultDocumentGraph:
    """Document graph backed by a folder on disk.

    Paths are vault-relative POSIX strings. The file index and the backlink
    map are built lazily and dropped by refresh().
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self._files: list[str] | None = None
        self._backlinks: dict[str, list[str]] | None = None

    # ------------------------------------------------------------------
    # Index
    # ------------------------------------------------------------------

    def refresh(self) -> None:
        """Forget the file index and backlink map."""
        self._files = None
        self._backlinks = None

    def _scan(self) -> list[str]:
        if not self.root.is_dir():
            logger.warning("Vault directory does not exist", vault_dir=str(self.root))
            return []
        relative = (p.relative_to(self.root) for p in self.root.rglob("*") if p.is_file())
        return sorted(
            r.as_posix() for r in relative
            if not any(part.startswith(".") for part in r.parts)
        )

    async def load_index(self) -> None:
        """Walk the vault in the thread pool unless the index is already built."""
        if self._files is None:
            loop = asyncio.get_running_loop()
            self._files = await loop.run_in_executor(_executor, self._scan)

    @property
    def files(self) -> list[str]:
        if self._files is None:
            self._files = self._scan()
        return self._files

    def list_documents(self) -> list[str]:
        return [f for f in self.files if f.lower().endswith(DOCUMENT_EXTENSIONS)]

    # ------------------------------------------------------------------
    # Link resolution
    # ------------------------------------------------------------------

    def resolve_link(self, link_text: str, source_path: str) -> str | None:
        """Resolve a link to a markdown or PDF document."""
        return self._resolve(link_text, source_path, self.list_documents())

    def resolve_attachment(self, link_text: str, source_path: str) -> str | None:
        """Resolve a link to any file in the vault (images included)."""
        return self._resolve(link_text, source_path, self.files)

    def _resolve(self, link_text: str, source_path: str, candidates: list[str]) -> str | None:
        linkpath = link_text.strip().lstrip("/")
        if not linkpath:
            return None

        known = set(candidates)
        source_dir = posixpath.dirname(source_path)

        # Exact path, relative to the source note and then to the vault root
        for base in (source_dir, ""):
            joined = posixpath.normpath(posixpath.join(base, linkpath))
            for candidate in (joined, f"{joined}.md"):
                if candidate in known:
                    return candidate

        # Shortest-path match on the file name, preferring the source's folder
        name = posixpath.basename(linkpath)
        matches = [
            c for c in candidates
            if posixpath.basename(c) == name or posixpath.splitext(posixpath.basename(c))[0] == name
        ]
        if not matches:
            return None

        matches.sort(key=lambda c: (posixpath.dirname(c) != source_dir, c.count("/"), c))
        return matches[0]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _absolute(self, path: str) -> Path:
        if path not in self.files:
            raise DocumentNotFoundError(path)
        return self.root / path

    def _read_text_sync(self, path: str) -> str:
        file_path = self._absolute(path)
        try:
            if file_path.suffix.lower() == ".pdf":
                reader = PdfReader(file_path)
                text_parts = []
                for page in reader.pages:
                    text = page.extract_text()
                    if text:
                        text_parts.append(text)
                return "\n\n".join(text_parts)
            return file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError, PdfReadError) as e:
            raise DocumentReadError(f"Failed to read document: {e}", path=path)

    def _read_bytes_sync(self, path: str) -> bytes:
        file_path = self._absolute(path)
        try:
            return file_path.read_bytes()
        except OSError as e:
            raise DocumentReadError(f"Failed to read file: {e}", path=path)

    async def read_text(self, path: str) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(_executor, self._read_text_sync, path)

    async def read_bytes(self, path: str) -> bytes:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(_executor, self._read_bytes_sync, path)

    # ------------------------------------------------------------------
    # Links and tags
    # ------------------------------------------------------------------

    async def get_forward_links(self, path: str) -> list[str]:
        """Documents this note links to, in order of first appearance."""
        if not path.lower().endswith(".md"):
            return []

        text = await self.read_text(path)
        links: list[str] = []
        for target in find_link_targets(text):
            resolved = self.resolve_link(target, path)
            if resolved and resolved != path and resolved not in links:
                links.append(resolved)
        return links

    async def get_backlinks(self, path: str) -> list[str]:
        """Notes that link to this document, sorted by path."""
        if self._backlinks is None:
            await self._build_backlinks()
        return list(self._backlinks.get(path, []))

    async def _build_backlinks(self) -> None:
        await self.load_index()
        backlinks: dict[str, list[str]] = {}
        notes = [d for d in self.list_documents() if d.lower().endswith(".md")]

        for note in notes:
            try:
                targets = await self.get_forward_links(note)
            except DocumentReadError as e:
                logger.warning("Skipping unreadable note", path=note, error=e.message)
                continue
            for target in targets:
                backlinks.setdefault(target, []).append(note)

        self._backlinks = backlinks
        logger.info(
            "Built backlink index",
            note_count=len(notes),
            linked_documents=len(backlinks),
        )

    async def get_tags(self, path: str) -> list[str]:
        if not path.lower().endswith(".md"):
            return []
        return find_tags(await self.read_text(path))
