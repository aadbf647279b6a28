from __future__ import annotations

import logging
import time
from typing import Any

from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI

from carview.errors import ConfigurationError, UpstreamError
from carview.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class LlmClient:
    """Async client for the OpenAI-compatible AI gateway."""

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        if not settings.ai_gateway_api_key:
            raise ConfigurationError("AI_GATEWAY_API_KEY is not configured")
        # No retry layer: one attempt per stage
        self._client = AsyncOpenAI(
            api_key=settings.ai_gateway_api_key,
            base_url=settings.ai_gateway_url,
            max_retries=0,
            timeout=settings.ai_request_timeout_seconds,
        )
        self._settings = settings

    @staticmethod
    def extract_content(payload: dict[str, Any]) -> str:
        """Return choices[0].message.content, or "" when the reply has none."""
        choices = payload.get("choices") or []
        if not choices:
            return ""
        message = choices[0].get("message") or {}
        content = message.get("content")
        return content if isinstance(content, str) else ""

    async def vision_completion(
        self,
        system_prompt: str,
        user_text: str,
        image_url: str,
        max_tokens: int,
    ) -> dict[str, Any]:
        messages = [
            {"role": "system", "content": system_prompt},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": user_text},
                    {"type": "image_url", "image_url": {"url": image_url}},
                ],
            },
        ]
        start = time.monotonic()
        try:
            resp = await self._client.chat.completions.create(
                model=self._settings.ai_vision_model,
                messages=messages,
                max_tokens=max_tokens,
            )
        except APIStatusError as e:
            body = e.response.text if e.response is not None else None
            raise UpstreamError(
                f"AI gateway returned {e.status_code}",
                upstream_status=e.status_code,
                body=body,
            ) from e
        except APITimeoutError as e:
            raise UpstreamError("AI gateway request timed out") from e
        except APIConnectionError as e:
            raise UpstreamError(f"AI gateway connection error: {e}") from e
        finally:
            logger.debug(
                "Gateway call model=%s latency_ms=%.2f",
                self._settings.ai_vision_model,
                (time.monotonic() - start) * 1000,
            )
        return resp.model_dump()


_singleton: LlmClient | None = None


def get_llm_client() -> LlmClient:
    """Get LLM client singleton instance."""
    global _singleton
    if _singleton is None:
        _singleton = LlmClient()
    return _singleton
