"""
Block-reference rewriting for shared content.

A share's ``references`` column lists the blocks its content points at.
At read time each ``((<blockId>))`` / ``((<blockId> "text"))`` token in the
content becomes a Markdown link to the block's own share when the owner
has shared that block, or plain preview text when not.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

BLOCK_REF_PATTERN = re.compile(r"""\(\(([0-9]{14,}-[0-9a-z]{7,})(?:\s+["']([^"']+)["'])?\)\)""")

UNRESOLVED_TEXT = "[引用]"
DEFAULT_LINK_TEXT = "引用"
DEFAULT_PREVIEW_LENGTH = 30


@dataclass
class BlockReference:
    block_id: str
    content: str = ""
    display_text: str = ""
    ref_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "blockId": self.block_id,
            "content": self.content,
            "displayText": self.display_text,
        }
        if self.ref_count is not None:
            data["refCount"] = self.ref_count
        return data


def parse_references(raw: Optional[List[Any]]) -> Optional[List[BlockReference]]:
    """Decode stored records, skipping malformed ones. None when nothing usable remains."""
    if not raw:
        return None
    refs: List[BlockReference] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        block_id = item.get("blockId")
        content = item.get("content") or ""
        display_text = item.get("displayText") or ""
        ref_count = item.get("refCount")
        if not isinstance(block_id, str) or not isinstance(content, str) or not isinstance(display_text, str):
            continue
        if ref_count is not None and (isinstance(ref_count, bool) or not isinstance(ref_count, int)):
            continue
        refs.append(BlockReference(block_id, content, display_text, ref_count))
    return refs or None


def truncate_preview(text: str, limit: int = DEFAULT_PREVIEW_LENGTH) -> str:
    # code points, not bytes
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def rewrite_block_references(
    content: str,
    refs: List[BlockReference],
    base_url: str,
    find_block_share_id: Callable[[str], Optional[str]],
    preview_length: int = DEFAULT_PREVIEW_LENGTH,
) -> str:
    """
    Replace every block-reference token in *content*.

    ``find_block_share_id(block_id)`` returns the id of the owner's share for
    that block, or None. Lookups are memoized for the duration of one call.
    """
    if not refs:
        return content

    by_block = {ref.block_id: ref for ref in refs}
    base_url = base_url.rstrip("/")
    share_ids: Dict[str, Optional[str]] = {}

    def _lookup(block_id: str) -> Optional[str]:
        if block_id not in share_ids:
            share_ids[block_id] = find_block_share_id(block_id)
        return share_ids[block_id]

    def _replace(match: "re.Match[str]") -> str:
        block_id = match.group(1)
        display_text = match.group(2) or ""

        ref = by_block.get(block_id)
        if ref is None:
            return display_text or UNRESOLVED_TEXT

        block_share_id = _lookup(block_id)
        if block_share_id is None:
            if display_text:
                return display_text
            if ref.content:
                return truncate_preview(ref.content, preview_length)
            return UNRESOLVED_TEXT

        link_text = display_text or ref.display_text
        if not link_text:
            link_text = truncate_preview(ref.content, preview_length) if ref.content else DEFAULT_LINK_TEXT
        return f"[{link_text}]({base_url}/s/{block_share_id})"

    return BLOCK_REF_PATTERN.sub(_replace, content)
