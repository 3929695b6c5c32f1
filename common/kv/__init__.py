"""
Key-value store module - Pluggable KV backends (Cloudflare Workers KV, in-memory).

Usage:
    from common.kv import CloudflareKV

    kv = CloudflareKV(account_id, namespace_id, api_token=token)
    await kv.set("key", b"value")
    value = await kv.get("key")
"""

from common.kv.base import KVStore, KVKey, KVError
from common.kv.cloudflare import CloudflareKV
from common.kv.memory import InMemoryKV

__all__ = ["KVStore", "KVKey", "KVError", "CloudflareKV", "InMemoryKV"]
