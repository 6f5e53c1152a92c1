import asyncio
import logging
from typing import Any, Dict, List, Optional

import requests
from tenacity import Retrying, stop_after_attempt, wait_exponential, retry_if_exception_type

from app.core.config import settings
from app.core.exceptions import AIError, AIKillSwitchError

logger = logging.getLogger(__name__)


class OpenRouterClient:
    """
    Chat-completions gateway used by every model-backed stage.

    Requests go through `requests` on a worker thread so callers can await
    them without blocking the event loop.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        max_attempts: Optional[int] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.ai.openrouter_api_key
        self.base_url = base_url or settings.ai.base_url
        self.max_attempts = max(1, max_attempts or settings.ai.max_attempts)
        self.timeout = timeout or settings.ai.timeout_seconds
        self.session = session or requests.Session()

    def _do_call(self, payload: Dict[str, Any]) -> str:
        """Perform one HTTP round-trip and return the message content."""
        logger.info(f"Calling AI Model: {payload['model']}")

        try:
            response = self.session.post(
                self.base_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                    "X-Title": settings.app_name,
                },
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            content = response.json()["choices"][0]["message"]["content"]
        except requests.exceptions.Timeout:
            logger.error("AI service timeout.")
            raise AIError("AI service reached timeout limit.")
        except requests.exceptions.HTTPError as e:
            logger.error(f"AI service HTTP error: {e}")
            raise AIError(f"AI service returned error: {e.response.status_code}")
        except requests.exceptions.RequestException as e:
            logger.error(f"AI service connection error: {e}")
            raise AIError(f"AI service error: {str(e)}")
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"Unexpected AI response shape: {e}")
            raise AIError("AI service returned an unexpected response.")

        if not isinstance(content, str) or not content.strip():
            raise AIError("AI service returned an empty response.")
        return content

    def _call_with_retry(self, payload: Dict[str, Any]) -> str:
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=4, max=10),
            retry=retry_if_exception_type(AIError),
            reraise=True,
        )
        return retrying(self._do_call, payload)

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        model: str,
        temperature: Optional[float] = None,
        response_format: Optional[Dict[str, Any]] = None,
        plugins: Optional[List[Dict[str, Any]]] = None,
    ) -> str:
        """
        Send one chat completion and return the reply text.

        Raises:
            AIKillSwitchError: AI is disabled by configuration.
            AIError: missing credentials, transport failure, non-2xx or empty reply.
        """
        if settings.ai.kill_switch:
            logger.warning("AI Kill-switch is active. Blocking request.")
            raise AIKillSwitchError()

        if not self.api_key:
            logger.error("OpenRouter API Key missing.")
            raise AIError("AI service configuration error.")

        payload: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": settings.ai.temperature if temperature is None else temperature,
        }
        if response_format:
            payload["response_format"] = response_format
        if plugins:
            payload["plugins"] = plugins

        return await asyncio.to_thread(self._call_with_retry, payload)
