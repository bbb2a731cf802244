"""Catalog service API client.

Thin HTTP client for the vendor product endpoints of the remote
catalog service. This module handles authentication, error handling,
and response parsing. It never raises for transport or status errors:
every call returns an APIResponse.
"""

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import httpx
import structlog

from vendorcatalog.domain.models import ProductId, ProductStatus

logger = structlog.get_logger()

TokenProvider = Callable[[], str | None]


@dataclass
class APIError:
    """Represents an API error response."""

    error_code: str
    message: str
    status_code: int
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class APIResponse:
    """Represents an API response."""

    success: bool
    data: dict[str, Any] | list[Any] | None = None
    error: APIError | None = None


def _error_from_response(response: httpx.Response) -> APIError:
    """Build an APIError from a non-2xx response body (JSON or text)."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        return APIError(
            error_code=body.get("error_code") or body.get("code") or "UNKNOWN_ERROR",
            message=body.get("message") or body.get("error") or "Unknown error",
            status_code=response.status_code,
            details=body.get("details") or {},
        )
    return APIError(
        error_code="UNKNOWN_ERROR",
        message=response.text or response.reason_phrase or "Unknown error",
        status_code=response.status_code,
    )


class CatalogAPIClient:
    """HTTP client for the vendor catalog REST API.

    Provides methods for every ``/vendor/products`` endpoint used by the
    catalog engine. The bearer credential is read from the token
    provider on every request so a refreshed session token is picked up
    without rebuilding the client.
    """

    def __init__(
        self,
        base_url: str,
        api_token: str | None = None,
        timeout: float = 30.0,
        token_provider: TokenProvider | None = None,
    ) -> None:
        """Initialize the API client.

        Args:
            base_url: Catalog service base URL.
            api_token: Static bearer token.
            timeout: Request timeout in seconds.
            token_provider: Callable returning the current bearer token;
                takes precedence over ``api_token``.
        """
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.timeout = timeout
        self._token_provider = token_provider
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _auth_headers(self) -> dict[str, str]:
        token = self._token_provider() if self._token_provider else self.api_token
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        files: list[tuple[str, tuple[str, bytes, str]]] | None = None,
    ) -> APIResponse:
        """Make an API request.

        Args:
            method: HTTP method.
            path: API endpoint path.
            json: Request body as JSON.
            params: Query parameters.
            data: Multipart/form text fields.
            files: Multipart file parts.

        Returns:
            APIResponse with success status and data or error.
        """
        client = await self._get_client()

        # Filter out empty params
        if params:
            params = {k: v for k, v in params.items() if v not in (None, "")}

        try:
            logger.debug(
                "Making API request",
                method=method,
                path=path,
                has_body=json is not None or data is not None,
                file_count=len(files or []),
            )

            response = await client.request(
                method=method,
                url=path,
                json=json,
                params=params,
                data=data,
                files=files or None,
                headers=self._auth_headers(),
            )

            if response.status_code >= 400:
                return APIResponse(success=False, error=_error_from_response(response))

            # Handle empty responses (204 No Content)
            if response.status_code == 204 or not response.content:
                return APIResponse(success=True, data=None)

            return APIResponse(success=True, data=response.json())

        except httpx.TimeoutException as e:
            logger.error("API request timeout", path=path, error=str(e))
            return APIResponse(
                success=False,
                error=APIError(
                    error_code="TIMEOUT",
                    message=f"Request timed out: {path}",
                    status_code=504,
                ),
            )
        except httpx.RequestError as e:
            logger.error("API request failed", path=path, error=str(e))
            return APIResponse(
                success=False,
                error=APIError(
                    error_code="REQUEST_ERROR",
                    message=f"Request failed: {str(e)}",
                    status_code=503,
                ),
            )
        except ValueError as e:
            logger.error("API response was not valid JSON", path=path, error=str(e))
            return APIResponse(
                success=False,
                error=APIError(
                    error_code="INVALID_RESPONSE",
                    message=f"Invalid response body from {path}",
                    status_code=502,
                ),
            )

    @staticmethod
    def _read_uploads(paths: list[str]) -> list[tuple[str, tuple[str, bytes, str]]]:
        """Load local image files as multipart parts named ``images``."""
        parts = []
        for raw_path in paths:
            path = Path(raw_path)
            content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
            parts.append(("images", (path.name, path.read_bytes(), content_type)))
        return parts

    async def _send_product(
        self,
        method: str,
        path: str,
        fields: dict[str, str],
        upload_paths: list[str],
    ) -> APIResponse:
        try:
            files = self._read_uploads(upload_paths)
        except OSError as e:
            logger.error("Failed to read image upload", path=path, error=str(e))
            return APIResponse(
                success=False,
                error=APIError(
                    error_code="UPLOAD_READ_ERROR",
                    message=f"Could not read image file: {e}",
                    status_code=400,
                ),
            )
        return await self._request(method=method, path=path, data=fields, files=files)

    # =========================================================================
    # Product Endpoints
    # =========================================================================

    async def list_products(self, params: dict[str, Any]) -> APIResponse:
        """List the vendor's products.

        Args:
            params: Listing query (search, category, status, sort_by,
                sort_order, page, limit).

        Returns:
            APIResponse with ``{products, pagination}``.
        """
        return await self._request(method="GET", path="/vendor/products", params=params)

    async def get_product(self, product_id: ProductId) -> APIResponse:
        """Get a single product.

        Args:
            product_id: Product identifier.

        Returns:
            APIResponse with ``{product}``.
        """
        return await self._request(method="GET", path=f"/vendor/products/{product_id}")

    async def create_product(
        self,
        fields: dict[str, str],
        upload_paths: list[str] | None = None,
    ) -> APIResponse:
        """Create a product (multipart).

        Args:
            fields: Text form fields.
            upload_paths: Local image files to upload.

        Returns:
            APIResponse with ``{product}``.
        """
        return await self._send_product("POST", "/vendor/products", fields, upload_paths or [])

    async def update_product(
        self,
        product_id: ProductId,
        fields: dict[str, str],
        upload_paths: list[str] | None = None,
    ) -> APIResponse:
        """Replace a product's fields (multipart).

        Args:
            product_id: Product identifier.
            fields: Text form fields.
            upload_paths: Local image files to upload.

        Returns:
            APIResponse with ``{product}``.
        """
        return await self._send_product(
            "PUT", f"/vendor/products/{product_id}", fields, upload_paths or []
        )

    async def delete_product(self, product_id: ProductId) -> APIResponse:
        """Delete a product.

        Args:
            product_id: Product identifier.

        Returns:
            APIResponse; the body is not required.
        """
        return await self._request(method="DELETE", path=f"/vendor/products/{product_id}")

    async def set_product_status(
        self,
        product_id: ProductId,
        status: ProductStatus,
    ) -> APIResponse:
        """Change a product's status.

        Args:
            product_id: Product identifier.
            status: New status.

        Returns:
            APIResponse; the body is not required.
        """
        return await self._request(
            method="PATCH",
            path=f"/vendor/products/{product_id}/status",
            json={"status": status.value},
        )

    async def bulk_action(self, action: str, product_ids: list[ProductId]) -> APIResponse:
        """Apply one action to many products in a single request.

        Args:
            action: activate, deactivate or delete.
            product_ids: Targeted identifiers.

        Returns:
            APIResponse; a ``failed_ids`` list marks a partial failure.
        """
        return await self._request(
            method="POST",
            path="/vendor/products/bulk",
            json={"action": action, "productIds": list(product_ids)},
        )
