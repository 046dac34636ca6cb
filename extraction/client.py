"""
Hosted search-model clients.

One ``generate`` call is one network request with no local retry. Vendor
errors are translated to QuotaExceededError or RemoteQueryError.
"""

from typing import Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI, RateLimitError

from extraction.error_handling import is_quota_error, status_code_of
from portfolio_radar.utils.errors import QuotaExceededError, RemoteQueryError
from portfolio_radar.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 120.0


def translate_gemini_error(error: Exception, action: str = "Gemini request") -> Exception:
    """Map a google-genai failure to QuotaExceededError or RemoteQueryError."""
    code = error.code if isinstance(error, genai_errors.APIError) else status_code_of(error)
    if code == 429 or is_quota_error(error):
        return QuotaExceededError(str(error))
    return RemoteQueryError(f"{action} failed: {error}", status_code=code)


class SearchModelClient:
    """Text generation with web search: prompt in, raw text out."""

    model: str
    search_enabled: bool

    async def generate(self, prompt: str) -> str:
        raise NotImplementedError


class GeminiSearchClient(SearchModelClient):
    """Gemini with the Google Search grounding tool."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        search_enabled: bool = True,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[genai.Client] = None,
    ) -> None:
        self.model = model
        self.search_enabled = search_enabled
        self._client = client or genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout * 1000)),
        )

    def _config(self) -> Optional[types.GenerateContentConfig]:
        if not self.search_enabled:
            return None
        return types.GenerateContentConfig(tools=[types.Tool(google_search=types.GoogleSearch())])

    async def generate(self, prompt: str) -> str:
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=self._config(),
            )
        except Exception as e:
            raise translate_gemini_error(e) from e

        return response.text or ""


class OpenAISearchClient(SearchModelClient):
    """OpenAI Responses API with the web search tool."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        search_enabled: bool = True,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        self.model = model
        self.search_enabled = search_enabled
        self._client = client or AsyncOpenAI(api_key=api_key, timeout=timeout)

    async def generate(self, prompt: str) -> str:
        request_params = {"model": self.model, "input": prompt}
        if self.search_enabled:
            request_params["tools"] = [{"type": "web_search_preview"}]

        try:
            response = await self._client.responses.create(**request_params)
        except RateLimitError as e:
            raise QuotaExceededError(str(e)) from e
        except APIStatusError as e:
            if e.status_code == 429 or is_quota_error(e):
                raise QuotaExceededError(str(e)) from e
            raise RemoteQueryError(f"OpenAI request failed: {e}", status_code=e.status_code) from e
        except (APITimeoutError, APIConnectionError) as e:
            raise RemoteQueryError(f"OpenAI request failed: {e}") from e

        return response.output_text or ""


def create_search_client(settings=None) -> SearchModelClient:
    """Build the client for the configured model (``gemini*`` routes to Gemini)."""
    if settings is None:
        from portfolio_radar.config import get_settings
        settings = get_settings()

    api_key = settings.require_api_key()
    if settings.uses_gemini:
        client = GeminiSearchClient(
            api_key=api_key,
            model=settings.search_model,
            search_enabled=settings.search_enabled,
        )
    else:
        client = OpenAISearchClient(
            api_key=api_key,
            model=settings.search_model,
            search_enabled=settings.search_enabled,
        )
    logger.info(f"Using search model {settings.search_model} (search={'on' if settings.search_enabled else 'off'})")
    return client
