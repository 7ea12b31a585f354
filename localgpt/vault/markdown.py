"""Markdown parsing helpers: link targets, front matter and tags."""

import re
from typing import Any
from urllib.parse import unquote

import yaml

from ..core import get_logger

logger = get_logger(__name__)

WIKILINK_PATTERN = re.compile(r"!?\[\[([^\[\]]+?)\]\]")
MARKDOWN_LINK_PATTERN = re.compile(r"!?\[[^\]]*\]\(<?([^)<>\s]+)>?\)")
INLINE_TAG_PATTERN = re.compile(r"(?<![\w#/&])#([\w\-/]*[^\W\d][\w\-/]*)")
FENCED_CODE_PATTERN = re.compile(r"```.*?```", re.DOTALL)
INLINE_CODE_PATTERN = re.compile(r"`[^`\n]+`")


def clean_link_target(target: str) -> str:
    """Drop alias and heading/block parts from a link target."""
    target = target.split("|", 1)[0]
    target = target.split("#", 1)[0]
    target = target.split("^", 1)[0]
    return target.strip()


def find_link_targets(text: str) -> list[str]:
    """Return link targets in order of appearance, without duplicates.

    Recognises [[Note]], [[Note|alias]], [[Note#Heading]], ![[embed]] and
    [label](relative/path.md). External URLs are ignored.
    """
    found: list[tuple[int, str]] = []

    for match in WIKILINK_PATTERN.finditer(text):
        found.append((match.start(), clean_link_target(match.group(1))))

    for match in MARKDOWN_LINK_PATTERN.finditer(text):
        raw = match.group(1)
        if "://" in raw or raw.startswith("mailto:"):
            continue
        found.append((match.start(), clean_link_target(unquote(raw))))

    targets: list[str] = []
    for _, target in sorted(found, key=lambda item: item[0]):
        if target and target not in targets:
            targets.append(target)
    return targets


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """Split YAML front matter from the body.

    Malformed front matter is treated as absent.
    """
    if not text.startswith("---"):
        return {}, text

    lines = text.splitlines(keepends=True)
    if lines[0].strip() != "---":
        return {}, text

    for index in range(1, len(lines)):
        if lines[index].strip() in ("---", "..."):
            raw = "".join(lines[1:index])
            body = "".join(lines[index + 1:])
            try:
                data = yaml.safe_load(raw) or {}
            except yaml.YAMLError as e:
                logger.debug("Ignoring malformed front matter", error=str(e))
                return {}, body
            return (data if isinstance(data, dict) else {}), body

    return {}, text


def _normalize_tag(tag: str) -> str:
    tag = tag.strip()
    if not tag:
        return ""
    return tag if tag.startswith("#") else f"#{tag}"


def find_tags(text: str) -> list[str]:
    """Return front-matter tags then inline tags, deduplicated in order."""
    front_matter, body = split_front_matter(text)

    raw_tags = front_matter.get("tags", front_matter.get("tag")) or []
    if isinstance(raw_tags, str):
        raw_tags = re.split(r"[,\s]+", raw_tags)

    tags: list[str] = []
    for raw in raw_tags:
        tag = _normalize_tag(str(raw))
        if tag and tag not in tags:
            tags.append(tag)

    body = FENCED_CODE_PATTERN.sub("", body)
    body = INLINE_CODE_PATTERN.sub("", body)
    for match in INLINE_TAG_PATTERN.finditer(body):
        tag = f"#{match.group(1)}"
        if tag not in tags:
            tags.append(tag)

    return tags

