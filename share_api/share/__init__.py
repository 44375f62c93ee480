# Share lifecycle: create/reuse, list, delete, public read, block-reference rewriting
from share_api.share.references import BlockReference, rewrite_block_references
from share_api.share.urls import resolve_base_url, share_url

__all__ = [
    "BlockReference",
    "rewrite_block_references",
    "resolve_base_url",
    "share_url",
]
