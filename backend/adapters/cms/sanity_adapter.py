"""
Sanity Content Lake adapter for pulling templates and case studies.

Uses the HTTP query API (GROQ) with an optional read token.
"""

import html
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

TEMPLATE_QUERY = """*[_type == "template" && defined(_id)] {
  _id, title, format, niche, concept, structure, isPublished, _updatedAt, _createdAt
}"""

CASE_STUDY_QUERY = """*[_type == "caseStudy" && defined(_id)] {
  _id, title, niche, format, hook, body, cta, analysis, coverImageUrl,
  resultViews, resultEngagement, resultConversions, originalTemplate,
  publishDate, _updatedAt, _createdAt
}"""

_BLOCK_TAGS = {
    "h1": "h1",
    "h2": "h2",
    "h3": "h3",
    "blockquote": "blockquote",
    "normal": "p",
}


# Custom Exceptions
class SanityError(Exception):
    """Raised when the Sanity API cannot be reached or returns an error."""
    pass


class SanityConfigurationError(SanityError):
    """Raised when the project id is not configured."""
    pass


@dataclass
class SanityConnection:
    """Sanity project coordinates."""

    project_id: str
    dataset: str
    api_version: str
    use_cdn: bool = False

    def get_query_url(self) -> str:
        host = "apicdn" if self.use_cdn else "api"
        version = self.api_version if self.api_version.startswith("v") else f"v{self.api_version}"
        return f"https://{self.project_id}.{host}.sanity.io/{version}/data/query/{self.dataset}"


def portable_text_to_html(blocks: Any) -> str:
    """Render Portable Text blocks as HTML.

    Only text blocks are rendered; other block types are dropped. Unknown
    styles fall back to paragraphs.
    """
    if not isinstance(blocks, list):
        return ""

    parts = []
    for block in blocks:
        if not isinstance(block, dict) or block.get("_type") != "block":
            continue
        text = "".join(
            html.escape(child.get("text") or "", quote=False)
            for child in block.get("children") or []
            if isinstance(child, dict)
        )
        tag = _BLOCK_TAGS.get(block.get("style") or "normal", "p")
        parts.append(f"<{tag}>{text}</{tag}>")
    return "".join(parts)


class SanityAdapter:
    """
    Read-only Sanity client.

    Documents are returned as the raw dicts produced by the GROQ
    projection.
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        dataset: Optional[str] = None,
        api_version: Optional[str] = None,
        token: Optional[str] = None,
        use_cdn: Optional[bool] = None,
        timeout: int = 30,
    ):
        """
        Initialize Sanity adapter. Missing arguments fall back to settings.

        Args:
            project_id: Sanity project id
            dataset: Dataset name (default "production")
            api_version: API version date, e.g. "2024-01-01"
            token: Optional read token for private datasets
            use_cdn: Query the CDN instead of the live API
            timeout: Request timeout in seconds (default: 30)
        """
        project_id = project_id or settings.sanity_project_id
        if not project_id:
            raise SanityConfigurationError("Sanity project id is not configured")

        self.connection = SanityConnection(
            project_id=project_id,
            dataset=dataset or settings.sanity_dataset,
            api_version=api_version or settings.sanity_api_version,
            use_cdn=settings.sanity_use_cdn if use_cdn is None else use_cdn,
        )
        self.token = token if token is not None else settings.sanity_api_token
        self.timeout = timeout
        self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client with auth headers."""
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._client = httpx.AsyncClient(headers=headers, timeout=self.timeout)
        return self._client

    async def close(self):
        """Close the HTTP client connection."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _handle_response(self, response: httpx.Response) -> List[Dict[str, Any]]:
        """
        Handle API response and raise appropriate exceptions.

        Returns:
            The ``result`` array of the query response

        Raises:
            SanityError: If the API returns an error or malformed JSON
        """
        if response.status_code >= 400:
            try:
                error_data = response.json()
                error = error_data.get("error")
                error_message = (
                    error.get("description") if isinstance(error, dict) else error
                ) or error_data.get("message")
            except ValueError:
                error_message = None
            error_message = error_message or response.text or f"HTTP {response.status_code}"
            logger.error("Sanity API error [%s]: %s", response.status_code, error_message)
            raise SanityError(f"API error [{response.status_code}]: {error_message}")

        try:
            payload = response.json()
        except ValueError as e:
            logger.error("Failed to parse Sanity API response: %s", e)
            raise SanityError(f"Invalid JSON response: {e}") from e

        result = payload.get("result")
        return result if isinstance(result, list) else []

    async def query(self, groq: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Run a GROQ query.

        Args:
            groq: Query text
            params: Query parameters, sent as ``$name`` JSON values

        Returns:
            List of result documents
        """
        request_params = {"query": groq}
        for name, value in (params or {}).items():
            request_params[f"${name}"] = json.dumps(value)

        try:
            response = await self._get_client().get(
                self.connection.get_query_url(),
                params=request_params,
            )
        except httpx.HTTPError as e:
            logger.error("Failed to reach Sanity: %s", e)
            raise SanityError(f"Failed to reach Sanity: {e}") from e

        return await self._handle_response(response)

    async def fetch_templates(self) -> List[Dict[str, Any]]:
        """Fetch all template documents."""
        return await self.query(TEMPLATE_QUERY)

    async def fetch_case_studies(self) -> List[Dict[str, Any]]:
        """Fetch all case-study documents."""
        return await self.query(CASE_STUDY_QUERY)


def create_sanity_adapter() -> SanityAdapter:
    """Create a Sanity adapter from settings."""
    return SanityAdapter()
