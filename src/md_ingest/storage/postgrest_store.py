"""PostgREST (Supabase) implementation of the row-store abstraction."""

from __future__ import annotations

import logging
from typing import Any, Sequence

import requests

from md_ingest.config import Settings
from md_ingest.errors import AuthorizationError, StoreReadError, StoreWriteError
from md_ingest.storage.base import RowId, RowStoreBase

logger = logging.getLogger(__name__)

_RESERVED_CHARS = set(',.:()"\\ ')


def _format_in_value(value: RowId) -> str:
    """Render one value of a PostgREST ``in.(…)`` list."""
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise TypeError(f"Unsupported row id type: {type(value).__name__}")
    if isinstance(value, int):
        return str(value)
    if any(ch in _RESERVED_CHARS for ch in value):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return value


def _error_detail(table: str, response: requests.Response | None, exc: Exception | None = None) -> dict[str, Any]:
    detail: dict[str, Any] = {"table": table}
    if response is not None:
        detail["status_code"] = response.status_code
        detail["body"] = response.text[:500]
    if exc is not None:
        detail["reason"] = str(exc)
    return detail


class PostgrestRowStore(RowStoreBase):
    """Row store speaking the PostgREST HTTP API exposed by Supabase.

    Parameters
    ----------
    base_url:
        Supabase project URL; requests go to ``{base_url}/rest/v1/{table}``.
    api_key:
        Project API key, sent as the ``apikey`` header.
    authorization:
        Caller credential forwarded verbatim as the ``Authorization`` header,
        so row-level security applies to the caller, not to the service.
    timeout:
        Per-request timeout in seconds.
    session:
        Optional pre-built ``requests.Session`` (mainly for tests).
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        authorization: str,
        *,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        if not authorization:
            raise AuthorizationError("No authorization header passed")
        self._rest_url = base_url.rstrip("/") + "/rest/v1"
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "apikey": api_key,
                "Authorization": authorization,
                "Content-Type": "application/json",
            }
        )

    @classmethod
    def from_settings(cls, settings: Settings, authorization: str | None) -> PostgrestRowStore:
        """Build a store for one caller, failing fast on missing config or credential."""
        settings.require_ingestion_settings()
        return cls(
            settings.supabase_url,
            settings.supabase_anon_key,
            authorization or "",
            timeout=settings.request_timeout,
        )

    # -- RowStoreBase overrides -----------------------------------------------

    def select_missing(
        self,
        table: str,
        *,
        ids: Sequence[RowId],
        content_column: str,
        embedding_column: str,
        id_column: str = "id",
    ) -> list[dict[str, Any]]:
        if not ids:
            return []

        params = {
            "select": f"{id_column},{content_column}",
            id_column: "in.(" + ",".join(_format_in_value(v) for v in ids) + ")",
            embedding_column: "is.null",
        }
        url = f"{self._rest_url}/{table}"

        try:
            response = self._session.get(url, params=params, timeout=self._timeout)
        except requests.RequestException as exc:
            raise StoreReadError(
                f"Failed to select rows from '{table}'", detail=_error_detail(table, None, exc)
            ) from exc

        if not response.ok:
            raise StoreReadError(
                f"Failed to select rows from '{table}'", detail=_error_detail(table, response)
            )

        try:
            rows = response.json()
        except ValueError as exc:
            raise StoreReadError(
                f"Row store returned a non-JSON body for '{table}'",
                detail=_error_detail(table, response, exc),
            ) from exc

        if not isinstance(rows, list):
            raise StoreReadError(
                f"Row store returned an unexpected payload for '{table}'",
                detail=_error_detail(table, response),
            )
        return rows

    def update(
        self,
        table: str,
        *,
        row_id: RowId,
        values: dict[str, Any],
        id_column: str = "id",
    ) -> None:
        url = f"{self._rest_url}/{table}"
        params = {id_column: f"eq.{row_id}"}

        try:
            response = self._session.patch(
                url,
                params=params,
                json=values,
                headers={"Prefer": "return=minimal"},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise StoreWriteError(
                f"Failed to update row {row_id!r} in '{table}'",
                detail={**_error_detail(table, None, exc), "id": row_id},
            ) from exc

        if not response.ok:
            raise StoreWriteError(
                f"Failed to update row {row_id!r} in '{table}'",
                detail={**_error_detail(table, response), "id": row_id},
            )

    def close(self) -> None:
        self._session.close()
