"""
Cloudflare Workers KV client.

Talks to the Cloudflare v4 REST API with httpx. One client is bound to a
single account and namespace.

Example:
    kv = CloudflareKV(
        account_id="your-account-id",
        namespace_id="your-namespace-id",
        api_token="your-api-token",
    )

    await kv.set("greeting", b"hello", ttl_seconds=60)
    value = await kv.get("greeting")
    await kv.close()
"""

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from common.kv.base import KVError, KVKey, KVStore

logger = logging.getLogger(__name__)


class CloudflareKV(KVStore):
    """
    Workers KV namespace over the Cloudflare REST API.
    Authenticates with an API token, or with a legacy API key + email.
    """

    API_BASE_URL = "https://api.cloudflare.com/client/v4"

    # Cloudflare limits
    LIST_PAGE_MAX = 1000
    LIST_PAGE_MIN = 10
    BULK_DELETE_MAX = 10000

    def __init__(
        self,
        account_id: str,
        namespace_id: str,
        api_token: Optional[str] = None,
        api_key: Optional[str] = None,
        email: Optional[str] = None,
        base_url: str = API_BASE_URL,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize CloudflareKV.

        Args:
            account_id: Cloudflare account ID
            namespace_id: Workers KV namespace ID
            api_token: API token (preferred)
            api_key: Legacy global API key, used with ``email``
            email: Account email for the legacy API key
            base_url: API root, overridable for testing
            timeout: Per-request timeout in seconds
            http_client: Pre-built client; its auth headers are left untouched
        """
        if not account_id or not namespace_id:
            raise ValueError("account_id and namespace_id are required")
        if http_client is None and not api_token and not (api_key and email):
            raise ValueError("either api_token or both api_key and email are required")

        self._account_id = account_id
        self._namespace_id = namespace_id
        self._namespace_path = (
            f"/accounts/{account_id}/storage/kv/namespaces/{namespace_id}"
        )

        if http_client is None:
            if api_token:
                headers = {"Authorization": f"Bearer {api_token}"}
            else:
                headers = {"X-Auth-Key": api_key, "X-Auth-Email": email}
            http_client = httpx.AsyncClient(
                base_url=base_url,
                headers=headers,
                timeout=timeout,
            )
        self._client = http_client

    @classmethod
    def from_settings(cls, settings) -> "CloudflareKV":
        """Build a client from the application settings bundle."""
        return cls(
            account_id=settings.CLOUDFLARE_ACCOUNT_ID,
            namespace_id=settings.CLOUDFLARE_NAMESPACE_ID,
            api_token=settings.CLOUDFLARE_API_TOKEN,
            api_key=settings.CLOUDFLARE_API_KEY,
            email=settings.CLOUDFLARE_EMAIL,
            base_url=settings.CLOUDFLARE_API_BASE_URL,
            timeout=settings.CLOUDFLARE_TIMEOUT_SECONDS,
        )

    def _value_path(self, key: str) -> str:
        return f"{self._namespace_path}/values/{quote(key, safe='')}"

    async def _request(
        self,
        op: str,
        method: str,
        path: str,
        key: Optional[str] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{op} transport error: {e}")
            raise KVError(op, f"request failed: {e}", key=key) from e

    @staticmethod
    def _fail(op: str, response: httpx.Response, key: Optional[str] = None) -> KVError:
        message = "unexpected response"
        try:
            errors = response.json().get("errors") or []
            if errors:
                message = "; ".join(str(err.get("message", err)) for err in errors)
        except (ValueError, AttributeError):
            pass
        logger.error(f"{op} failed with status {response.status_code}: {message}")
        return KVError(op, message, key=key, status_code=response.status_code)

    async def get(self, key: str) -> Optional[bytes]:
        op = "CloudflareKV.get"
        response = await self._request(op, "GET", self._value_path(key), key=key)

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise self._fail(op, response, key)
        return response.content

    async def set(
        self,
        key: str,
        value: bytes,
        ttl_seconds: Optional[int] = None,
        metadata: Optional[Any] = None,
    ) -> None:
        op = "CloudflareKV.set"
        params: Dict[str, Any] = {}
        if ttl_seconds:
            params["expiration_ttl"] = ttl_seconds

        if metadata is not None:
            # Metadata requires the multipart form variant of the endpoint
            kwargs: Dict[str, Any] = {
                "files": {
                    "value": (None, value),
                    "metadata": (None, json.dumps(metadata)),
                }
            }
        else:
            kwargs = {
                "content": value,
                "headers": {"Content-Type": "application/octet-stream"},
            }

        response = await self._request(
            op, "PUT", self._value_path(key), key=key, params=params, **kwargs
        )
        if response.status_code != 200:
            raise self._fail(op, response, key)

    async def delete(self, key: str) -> None:
        op = "CloudflareKV.delete"
        response = await self._request(op, "DELETE", self._value_path(key), key=key)

        if response.status_code not in (200, 404):
            raise self._fail(op, response, key)

    async def list_keys(
        self,
        prefix: str = "",
        limit: Optional[int] = None,
    ) -> List[KVKey]:
        op = "CloudflareKV.list_keys"
        keys: List[KVKey] = []
        cursor: Optional[str] = None

        while True:
            remaining = None if limit is None else limit - len(keys)
            page_size = self.LIST_PAGE_MAX
            if remaining is not None:
                page_size = max(self.LIST_PAGE_MIN, min(remaining, self.LIST_PAGE_MAX))

            params: Dict[str, Any] = {"limit": page_size}
            if prefix:
                params["prefix"] = prefix
            if cursor:
                params["cursor"] = cursor

            response = await self._request(
                op, "GET", f"{self._namespace_path}/keys", params=params
            )
            if response.status_code != 200:
                raise self._fail(op, response)

            try:
                body = response.json()
                for item in body.get("result") or []:
                    keys.append(
                        KVKey(
                            name=item["name"],
                            expiration=item.get("expiration"),
                            metadata=item.get("metadata"),
                        )
                    )
                cursor = (body.get("result_info") or {}).get("cursor")
            except (ValueError, KeyError, TypeError, AttributeError) as e:
                logger.error(f"{op} returned an unparseable body: {e}")
                raise KVError(
                    op, "unparseable list response", status_code=response.status_code
                ) from e

            if not cursor or (limit is not None and len(keys) >= limit):
                break

        if limit is not None:
            keys = keys[:limit]
        logger.debug(f"Listed {len(keys)} keys with prefix '{prefix}'")
        return keys

    async def delete_bulk(self, keys: List[str]) -> None:
        op = "CloudflareKV.delete_bulk"
        for start in range(0, len(keys), self.BULK_DELETE_MAX):
            batch = keys[start:start + self.BULK_DELETE_MAX]
            response = await self._request(
                op, "POST", f"{self._namespace_path}/bulk/delete", json=batch
            )
            if response.status_code != 200:
                raise self._fail(op, response)
            logger.debug(f"Bulk deleted {len(batch)} keys")

    async def close(self) -> None:
        await self._client.aclose()
