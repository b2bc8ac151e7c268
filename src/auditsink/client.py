"""Minimal HTTP client for submitting audit records to a running sink."""

from __future__ import annotations

import base64
from typing import Any

import httpx

from auditsink.errors import AuditClientError
from auditsink.models.entry import LogRequest


class AuditClient:
    """Posts ``LogRequest`` payloads to ``<base_url>/log``."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def log(self, request: LogRequest) -> None:
        """Submit one record; raises AuditClientError unless the sink accepts it."""
        try:
            response = self._client.post("/log", json=request.model_dump(mode="json"))
        except httpx.HTTPError as e:
            raise AuditClientError(f"Audit sink unreachable: {e}") from e
        if response.status_code != 200:
            raise AuditClientError(
                f"Audit sink returned {response.status_code}",
                status_code=response.status_code,
            )

    def log_action(
        self,
        user_id: str,
        action: str,
        response: int,
        error: str | None = None,
        parameters: str = "",
        query: str = "",
        encode_query: bool = False,
        body: Any = None,
        additional_info: str = "",
    ) -> None:
        """Convenience wrapper; ``encode_query`` ships the query base64-encoded."""
        if encode_query:
            query = base64.b64encode(query.encode("utf-8")).decode("ascii")
        self.log(
            LogRequest(
                user_id=user_id,
                action=action,
                response=response,
                error=error,
                parameters=parameters,
                query=query,
                query_base64=encode_query,
                body=body,
                additional_info=additional_info,
            )
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> AuditClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
