"""
Unit tests for the Sanity adapter.

HTTP is served by an ``httpx.MockTransport`` so request shape and error
handling are exercised without network access.
"""

import json

import httpx
import pytest

from adapters.cms import (
    SanityAdapter,
    SanityConfigurationError,
    SanityConnection,
    SanityError,
    portable_text_to_html,
)


def adapter_with(handler) -> SanityAdapter:
    adapter = SanityAdapter(project_id="abc123", dataset="production", api_version="2024-01-01", token="tok")
    adapter._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return adapter


class TestPortableText:
    def test_styles_map_to_tags(self):
        blocks = [
            {"_type": "block", "style": "h1", "children": [{"text": "Naslov"}]},
            {"_type": "block", "style": "blockquote", "children": [{"text": "Citat"}]},
            {"_type": "block", "style": "weird", "children": [{"text": "Tekst"}]},
        ]
        assert portable_text_to_html(blocks) == "<h1>Naslov</h1><blockquote>Citat</blockquote><p>Tekst</p>"

    def test_text_is_escaped_and_non_text_blocks_dropped(self):
        blocks = [
            {"_type": "image", "asset": {}},
            {"_type": "block", "children": [{"text": "<b>bold</b>"}, {"text": " i više"}]},
        ]
        assert portable_text_to_html(blocks) == "<p>&lt;b&gt;bold&lt;/b&gt; i više</p>"

    def test_non_list_input(self):
        assert portable_text_to_html(None) == ""
        assert portable_text_to_html("plain") == ""


class TestConnection:
    def test_query_url(self):
        connection = SanityConnection(project_id="abc123", dataset="production", api_version="2024-01-01")
        assert connection.get_query_url() == "https://abc123.api.sanity.io/v2024-01-01/data/query/production"

    def test_cdn_url(self):
        connection = SanityConnection("abc123", "staging", "v2024-01-01", use_cdn=True)
        assert connection.get_query_url() == "https://abc123.apicdn.sanity.io/v2024-01-01/data/query/staging"

    def test_missing_project_id(self, monkeypatch):
        from infrastructure.config.settings import settings

        monkeypatch.setattr(settings, "sanity_project_id", None)
        with pytest.raises(SanityConfigurationError):
            SanityAdapter()


class TestQuery:
    @pytest.mark.asyncio
    async def test_returns_result_and_sends_params(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"result": [{"_id": "tpl-1"}]})

        adapter = adapter_with(handler)
        async with adapter:
            result = await adapter.query("*[_type == $type]", {"type": "template"})

        assert result == [{"_id": "tpl-1"}]
        assert seen["params"]["$type"] == json.dumps("template")
        assert seen["params"]["query"] == "*[_type == $type]"

    @pytest.mark.asyncio
    async def test_fetch_templates_uses_template_query(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert '_type == "template"' in request.url.params["query"]
            return httpx.Response(200, json={"result": []})

        assert await adapter_with(handler).fetch_templates() == []

    @pytest.mark.asyncio
    async def test_api_error_message(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": {"description": "Bad GROQ"}})

        with pytest.raises(SanityError, match="Bad GROQ"):
            await adapter_with(handler).query("*[")

    @pytest.mark.asyncio
    async def test_string_error_message(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": "Unauthorized"})

        with pytest.raises(SanityError, match="Unauthorized"):
            await adapter_with(handler).query("*")

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(SanityError):
            await adapter_with(handler).query("*")
