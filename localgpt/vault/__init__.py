"""Vault access: document graph, markdown parsing and tag statistics."""

from .graph import DOCUMENT_EXTENSIONS, DocumentGraph, VaultDocumentGraph
from .markdown import clean_link_target, find_link_targets, find_tags, split_front_matter
from .tags import TagIndex

__all__ = [
    "DOCUMENT_EXTENSIONS",
    "DocumentGraph",
    "VaultDocumentGraph",
    "clean_link_target",
    "find_link_targets",
    "find_tags",
    "split_front_matter",
    "TagIndex",
]
