from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from postgrest.exceptions import APIError

from cosmic_notes.core.errors import PersistenceError
from cosmic_notes.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from pydantic import BaseModel
    from supabase import Client

logger = get_logger(__name__)

PAGE_SIZE = 1000


class SupabaseRepository:
    """Shared plumbing for the PostgREST-backed repositories.

    The supabase client is synchronous, so every query runs in a worker
    thread. PostgREST errors surface as `PersistenceError`.
    """

    TABLE_NAME: str = ""

    def __init__(self, client: Client) -> None:
        self._client: Client = client

    def _table(self, name: str | None = None):
        return self._client.table(name or self.TABLE_NAME)

    async def _run(self, func: Callable[[], Any]) -> Any:
        try:
            return await asyncio.to_thread(func)
        except APIError as err:
            logger.error("Supabase request on %s failed: %s", self.TABLE_NAME, err.message)
            raise PersistenceError(
                f"Supabase request on {self.TABLE_NAME} failed: {err.message}",
                details={"table": self.TABLE_NAME, "code": err.code},
            ) from err

    async def _fetch_all(self, build_query: Callable[[int, int], Any]) -> list[dict[str, Any]]:
        """Page through a select until a short page comes back."""
        rows: list[dict[str, Any]] = []
        offset = 0
        while True:
            resp = await self._run(lambda start=offset: build_query(start, start + PAGE_SIZE - 1).execute())
            page: list[dict[str, Any]] = resp.data or []
            rows.extend(page)
            if len(page) < PAGE_SIZE:
                return rows
            offset += PAGE_SIZE

    @staticmethod
    def _first(data: Any) -> dict[str, Any]:
        if isinstance(data, list) and data:
            return data[0]
        if isinstance(data, dict):
            return data
        return {}

    @staticmethod
    def _parse_vector_string(vector: Any) -> list[float] | None:
        """Parse a pgvector value into list[float].

        PostgREST returns vectors as strings like '[0.1,0.2,0.3]'.
        """
        if vector is None:
            return None
        if isinstance(vector, list):
            return [float(x) for x in vector] or None

        try:
            cleaned = str(vector).strip("[]")
            if not cleaned:
                return None
            return [float(x.strip()) for x in cleaned.split(",")]
        except (ValueError, TypeError) as e:
            logger.warning("Failed to parse vector string '%s': %s", str(vector)[:80], e)
            return None

    @staticmethod
    def _row_to_model(model: type[BaseModel], row: dict[str, Any]) -> Any:
        """Validate a row, dropping joined/db-only columns the model does not declare."""
        normalized = {k: v for k, v in row.items() if k in model.model_fields}
        if "embedding" in normalized:
            normalized["embedding"] = SupabaseRepository._parse_vector_string(normalized["embedding"])
        return model.model_validate(normalized)

    @staticmethod
    def _model_to_row(model: BaseModel, *, exclude: set[str] | None = None) -> dict[str, Any]:
        """Dump a model to a JSON-serializable row; unset ids and empty vectors are left to the database."""
        data = model.model_dump(mode="json", exclude=exclude)
        if data.get("id") is None:
            data.pop("id", None)
        if data.get("embedding") is None:
            data.pop("embedding", None)
        if data.get("updated_at") is None:
            data.pop("updated_at", None)
        return data
