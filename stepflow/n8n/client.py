"""n8n public API client for workflow management.

Handles:
- Creating and updating workflows
- Retrieving and listing workflows
- Activating and deactivating workflows
"""
from typing import Optional

import httpx
import structlog

from stepflow.config import get_settings

logger = structlog.get_logger()


class N8NClientError(Exception):
    """Exception for n8n API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None, response_body: Optional[dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class N8NClient:
    """Client for the n8n REST API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.n8n_base_url).rstrip("/")
        self.api_key = api_key or settings.n8n_api_key
        self.timeout = timeout if timeout is not None else settings.n8n_timeout
        self._transport = transport

        if not self.api_key:
            raise ValueError("n8n API key not configured")

        self.headers = {
            "X-N8N-API-KEY": self.api_key,
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> dict:
        """Make an HTTP request to the n8n API."""

        url = f"{self.base_url}{endpoint}"

        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
            try:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=self.headers,
                    json=json,
                    params=params,
                )
            except httpx.HTTPError as e:
                logger.error("n8n_api_error", method=method, endpoint=endpoint, error=str(e))
                raise N8NClientError(f"HTTP error: {str(e)}")

        # Log request (without sensitive data)
        logger.debug(
            "n8n_api_request",
            method=method,
            endpoint=endpoint,
            status_code=response.status_code,
        )

        if response.status_code >= 400:
            raise N8NClientError(
                f"n8n API error: {response.status_code}",
                status_code=response.status_code,
                response_body=_safe_json(response),
            )

        return _safe_json(response)

    async def create_workflow(self, workflow_json: dict) -> dict:
        """Create a new workflow in n8n.

        Args:
            workflow_json: The workflow in n8n import format

        Returns:
            The created workflow data including the assigned ID
        """
        logger.info("create_workflow", name=workflow_json.get("name"))

        result = await self._request(
            method="POST",
            endpoint="/workflows",
            json=workflow_json,
        )

        logger.info(
            "workflow_created",
            workflow_id=result.get("id"),
            name=result.get("name"),
        )

        return result

    async def update_workflow(self, workflow_id: str, workflow_json: dict) -> dict:
        """Update an existing workflow."""
        logger.info("update_workflow", workflow_id=workflow_id)

        return await self._request(
            method="PUT",
            endpoint=f"/workflows/{workflow_id}",
            json=workflow_json,
        )

    async def get_workflow(self, workflow_id: str) -> dict:
        """Get a workflow by ID."""
        logger.debug("get_workflow", workflow_id=workflow_id)

        return await self._request(
            method="GET",
            endpoint=f"/workflows/{workflow_id}",
        )

    async def list_workflows(
        self,
        limit: int = 100,
        cursor: Optional[str] = None,
        tags: Optional[list[str]] = None,
    ) -> dict:
        """List workflows.

        Args:
            limit: Maximum number of workflows to return
            cursor: Pagination cursor
            tags: Filter by tags

        Returns:
            Paginated list of workflows
        """
        params = {"limit": limit}
        if cursor:
            params["cursor"] = cursor
        if tags:
            params["tags"] = ",".join(tags)

        return await self._request(
            method="GET",
            endpoint="/workflows",
            params=params,
        )

    async def delete_workflow(self, workflow_id: str) -> bool:
        """Delete a workflow."""
        logger.info("delete_workflow", workflow_id=workflow_id)

        await self._request(
            method="DELETE",
            endpoint=f"/workflows/{workflow_id}",
        )

        return True

    async def activate_workflow(self, workflow_id: str) -> dict:
        """Activate a workflow (enable triggers)."""
        logger.info("activate_workflow", workflow_id=workflow_id)

        return await self._request(
            method="POST",
            endpoint=f"/workflows/{workflow_id}/activate",
        )

    async def deactivate_workflow(self, workflow_id: str) -> dict:
        """Deactivate a workflow (disable triggers)."""
        logger.info("deactivate_workflow", workflow_id=workflow_id)

        return await self._request(
            method="POST",
            endpoint=f"/workflows/{workflow_id}/deactivate",
        )


def _safe_json(response: httpx.Response) -> dict:
    if not response.content:
        return {}
    try:
        body = response.json()
    except ValueError:
        return {"raw": response.text}
    return body if isinstance(body, dict) else {"data": body}
