"""
Generative-language client
Calls the Gemini generateContent endpoint with retry and backoff
"""

import asyncio
import json
from typing import Any, Dict, Optional

import httpx

from ideatrium.config.loader import get_config
from ideatrium.core.errors import AIServiceError
from ideatrium.core.logger import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.0-flash"

DEFAULT_GENERATION_CONFIG: Dict[str, Any] = {
    "temperature": 0.7,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 1024,
}


class GeminiClient:
    """Thin async client for models/<model>:generateContent"""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        max_retries: int = 2,
        retry_backoff: float = 1.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or None
        self.model = model
        self.base_url = base_url
        self.timeout = httpx.Timeout(timeout)
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.non_retry_status = {400, 401, 403, 404, 422}
        self.transport = transport

    @classmethod
    def from_config(cls, transport: Optional[httpx.AsyncBaseTransport] = None) -> "GeminiClient":
        """Build a client from the [ai] configuration section"""
        config = get_config()
        return cls(
            api_key=config.get("ai.api_key", ""),
            model=config.get("ai.model", DEFAULT_MODEL),
            base_url=config.get("ai.base_url", DEFAULT_BASE_URL),
            timeout=float(config.get("ai.timeout", 30)),
            max_retries=int(config.get("ai.max_retries", 2)),
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _build_url(self) -> str:
        base = self.base_url.rstrip("/")
        return f"{base}/models/{self.model}:generateContent"

    def _should_retry(self, response: Optional[httpx.Response]) -> bool:
        """Determine whether to continue retrying"""
        if response is None:
            return True
        return (
            response.status_code >= 500
            and response.status_code not in self.non_retry_status
        )

    def _log_request_error(
        self,
        exc: Exception,
        attempt: int,
        response: Optional[httpx.Response],
        final_attempt: bool,
    ) -> None:
        """Log request error details"""
        level = logger.error if final_attempt else logger.warning
        summary: Dict[str, Any] = {
            "model": self.model,
            "attempt": attempt,
            "max_retries": self.max_retries,
            "error_type": exc.__class__.__name__,
            "error_message": str(exc) or None,
        }
        if response is not None:
            summary["status_code"] = response.status_code
            summary["response_text"] = response.text[:500]
        level(f"Gemini API request failed: {json.dumps(summary, ensure_ascii=False)}")

    @staticmethod
    def _extract_text(result: Dict[str, Any]) -> str:
        candidates = result.get("candidates") or []
        if not candidates:
            raise AIServiceError("No response generated from Gemini API")
        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
        if not text.strip():
            raise AIServiceError("Gemini API returned an empty candidate")
        return text

    async def generate_content(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **generation_config: Any,
    ) -> str:
        """Send one prompt and return the candidate text

        Raises:
            AIServiceError: missing key, transport failure, non-2xx status
                or a response without candidates
        """
        if not self.api_key:
            raise AIServiceError("Gemini API key not configured")

        payload: Dict[str, Any] = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {**DEFAULT_GENERATION_CONFIG, **generation_config},
        }
        if system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}

        url = self._build_url()
        headers = {"Content-Type": "application/json"}
        params = {"key": self.api_key}
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_retries + 2):
            response: Optional[httpx.Response] = None
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self.transport
                ) as client:
                    response = await client.post(
                        url, headers=headers, params=params, json=payload
                    )
                response.raise_for_status()
                return self._extract_text(response.json())

            except httpx.HTTPStatusError as exc:
                last_error = exc
                final_attempt = attempt > self.max_retries or not self._should_retry(
                    exc.response
                )
                self._log_request_error(exc, attempt, exc.response, final_attempt)
                if final_attempt:
                    break

            except (httpx.TimeoutException, httpx.RequestError) as exc:
                last_error = exc
                final_attempt = attempt > self.max_retries
                self._log_request_error(exc, attempt, None, final_attempt)
                if final_attempt:
                    break

            except ValueError as exc:
                # Body was not JSON
                last_error = exc
                self._log_request_error(exc, attempt, response, True)
                break

            await asyncio.sleep(self.retry_backoff * attempt)

        raise AIServiceError(self._describe_error(last_error)) from last_error

    @staticmethod
    def _describe_error(error: Optional[Exception]) -> str:
        if error is None:
            return "Gemini API request failed: Unknown error"
        if isinstance(error, httpx.TimeoutException):
            return "Gemini API request timed out"
        if isinstance(error, httpx.HTTPStatusError):
            return f"Gemini API error: {error.response.status_code}"
        if isinstance(error, httpx.RequestError):
            return f"Network request exception: {str(error) or error.__class__.__name__}"
        return str(error) or error.__class__.__name__
