"""Unit tests for the PostgREST row store and the HTTP embedding client.

``requests.Session`` is replaced by a ``MagicMock`` so no network is used.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests
from pydantic import ValidationError

from md_ingest.config import Settings
from md_ingest.embedding.http_client import HttpEmbeddingService
from md_ingest.errors import (
    AuthorizationError,
    ConfigurationError,
    EmbeddingServiceError,
    StoreReadError,
    StoreWriteError,
)
from md_ingest.storage.postgrest_store import PostgrestRowStore


def _session() -> MagicMock:
    session = MagicMock()
    session.headers = {}
    return session


def _response(status_code: int = 200, payload=None, text: str = "") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    resp.text = text
    resp.json.return_value = payload
    return resp


def _settings(**overrides) -> Settings:
    values = {
        "supabase_url": "http://db.local",
        "supabase_anon_key": "anon",
        "embedding_service_url": "http://embed.local",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


# ── Settings ────────────────────────────────────────────────────────────


class TestSettings:
    def test_complete_settings_pass(self) -> None:
        _settings().require_ingestion_settings()

    def test_missing_values_are_listed(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            _settings(supabase_url="", supabase_anon_key="").require_ingestion_settings()
        assert exc_info.value.detail["missing"] == ["SUPABASE_URL", "SUPABASE_ANON_KEY"]

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SUPABASE_URL", "http://env.local")
        monkeypatch.setenv("MAX_SECTION_LENGTH", "1000")
        settings = Settings(_env_file=None)
        assert settings.supabase_url == "http://env.local"
        assert settings.max_section_length == 1000

    @pytest.mark.parametrize(
        ("name", "value"), [("MAX_SECTION_LENGTH", "0"), ("MIN_SECTION_LENGTH", "-1")]
    )
    def test_rejects_invalid_section_bounds(self, monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
        monkeypatch.setenv(name, value)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)


# ── PostgrestRowStore ───────────────────────────────────────────────────


class TestPostgrestRowStore:
    def test_sets_auth_headers(self) -> None:
        session = _session()
        PostgrestRowStore("http://db.local/", "anon", "Bearer jwt", session=session)
        assert session.headers["apikey"] == "anon"
        assert session.headers["Authorization"] == "Bearer jwt"

    def test_missing_authorization_is_rejected(self) -> None:
        with pytest.raises(AuthorizationError):
            PostgrestRowStore("http://db.local", "anon", "", session=_session())

    def test_from_settings_checks_config_before_credential(self) -> None:
        with pytest.raises(ConfigurationError):
            PostgrestRowStore.from_settings(_settings(supabase_url=""), None)
        with pytest.raises(AuthorizationError):
            PostgrestRowStore.from_settings(_settings(), None)

    def test_select_missing_builds_postgrest_query(self) -> None:
        session = _session()
        session.get.return_value = _response(payload=[{"id": 1, "content": "a"}])
        store = PostgrestRowStore("http://db.local/", "anon", "Bearer jwt", timeout=5, session=session)

        rows = store.select_missing("docs", ids=[1, 3], content_column="content", embedding_column="embedding")

        assert rows == [{"id": 1, "content": "a"}]
        session.get.assert_called_once_with(
            "http://db.local/rest/v1/docs",
            params={"select": "id,content", "id": "in.(1,3)", "embedding": "is.null"},
            timeout=5,
        )

    def test_select_quotes_reserved_characters_in_ids(self) -> None:
        session = _session()
        session.get.return_value = _response(payload=[])
        store = PostgrestRowStore("http://db.local", "anon", "Bearer jwt", session=session)

        store.select_missing("docs", ids=["a,b", "plain", 'q"t'], content_column="c", embedding_column="e")

        params = session.get.call_args.kwargs["params"]
        assert params["id"] == 'in.("a,b",plain,"q\\"t")'

    def test_select_with_no_ids_skips_request(self) -> None:
        session = _session()
        store = PostgrestRowStore("http://db.local", "anon", "Bearer jwt", session=session)
        assert store.select_missing("docs", ids=[], content_column="c", embedding_column="e") == []
        session.get.assert_not_called()

    def test_select_http_error_is_store_read_error(self) -> None:
        session = _session()
        session.get.return_value = _response(status_code=401, text="JWT expired")
        store = PostgrestRowStore("http://db.local", "anon", "Bearer jwt", session=session)

        with pytest.raises(StoreReadError) as exc_info:
            store.select_missing("docs", ids=[1], content_column="c", embedding_column="e")
        assert exc_info.value.detail["status_code"] == 401
        assert exc_info.value.detail["table"] == "docs"

    def test_select_transport_error_is_store_read_error(self) -> None:
        session = _session()
        session.get.side_effect = requests.ConnectionError("refused")
        store = PostgrestRowStore("http://db.local", "anon", "Bearer jwt", session=session)

        with pytest.raises(StoreReadError, match="docs"):
            store.select_missing("docs", ids=[1], content_column="c", embedding_column="e")

    def test_update_patches_single_row(self) -> None:
        session = _session()
        session.patch.return_value = _response(status_code=204)
        store = PostgrestRowStore("http://db.local", "anon", "Bearer jwt", session=session)

        store.update("docs", row_id=7, values={"embedding": "[1.0]"})

        session.patch.assert_called_once()
        args, kwargs = session.patch.call_args
        assert args == ("http://db.local/rest/v1/docs",)
        assert kwargs["params"] == {"id": "eq.7"}
        assert kwargs["json"] == {"embedding": "[1.0]"}

    def test_update_failure_is_store_write_error(self) -> None:
        session = _session()
        session.patch.return_value = _response(status_code=500, text="oops")
        store = PostgrestRowStore("http://db.local", "anon", "Bearer jwt", session=session)

        with pytest.raises(StoreWriteError) as exc_info:
            store.update("docs", row_id=7, values={"embedding": "[1.0]"})
        assert exc_info.value.detail["id"] == 7

    def test_context_manager_closes_session(self) -> None:
        session = _session()
        with PostgrestRowStore("http://db.local", "anon", "Bearer jwt", session=session):
            pass
        session.close.assert_called_once()


# ── HttpEmbeddingService ────────────────────────────────────────────────


class TestHttpEmbeddingService:
    def test_posts_texts_and_returns_vectors_in_order(self) -> None:
        session = _session()
        session.post.return_value = _response(payload={"embeddings": [[1, 2], [3, 4]]})
        service = HttpEmbeddingService("http://embed.local/", timeout=9, session=session)

        vectors = service.embed(["first", "second"])

        assert vectors == [[1.0, 2.0], [3.0, 4.0]]
        session.post.assert_called_once_with(
            "http://embed.local/embed",
            json={"texts": ["first", "second"]},
            timeout=9,
        )

    def test_empty_batch_makes_no_request(self) -> None:
        session = _session()
        assert HttpEmbeddingService("http://embed.local", session=session).embed([]) == []
        session.post.assert_not_called()

    def test_non_success_status_raises(self) -> None:
        session = _session()
        session.post.return_value = _response(status_code=503, text="busy")
        service = HttpEmbeddingService("http://embed.local", session=session)

        with pytest.raises(EmbeddingServiceError, match="Failed to generate embeddings") as exc_info:
            service.embed(["x"])
        assert exc_info.value.detail["status_code"] == 503

    def test_transport_error_raises(self) -> None:
        session = _session()
        session.post.side_effect = requests.Timeout("slow")
        with pytest.raises(EmbeddingServiceError):
            HttpEmbeddingService("http://embed.local", session=session).embed(["x"])

    def test_count_mismatch_raises(self) -> None:
        session = _session()
        session.post.return_value = _response(payload={"embeddings": [[1.0]]})
        with pytest.raises(EmbeddingServiceError, match="different number"):
            HttpEmbeddingService("http://embed.local", session=session).embed(["a", "b"])

    @pytest.mark.parametrize("payload", [None, {}, {"embeddings": "nope"}, {"embeddings": [["a"]]}])
    def test_malformed_body_raises(self, payload) -> None:
        session = _session()
        session.post.return_value = _response(payload=payload)
        with pytest.raises(EmbeddingServiceError):
            HttpEmbeddingService("http://embed.local", session=session).embed(["a"])

    def test_from_settings_requires_config(self) -> None:
        with pytest.raises(ConfigurationError):
            HttpEmbeddingService.from_settings(_settings(embedding_service_url=""))
