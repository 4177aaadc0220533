from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from config import BACKEND_REQUEST_TIMEOUT, IMAGE_PROMPT, OPENAI_BASE_URL, VISION_MODEL
from relaybot.errors import BackendRejected, BackendUnavailable
from relaybot.models import Run, ThreadMessage

logger = logging.getLogger(__name__)


class ConversationClient:
    """
    Thin async adapter over the OpenAI threads/runs API.

    Every call opens its own httpx client. Network errors and 5xx answers
    raise BackendUnavailable, 4xx answers and unreadable bodies raise
    BackendRejected. Nothing is retried here.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = OPENAI_BASE_URL,
        vision_model: str = VISION_MODEL,
        timeout: float = BACKEND_REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.vision_model = vision_model
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "OpenAI-Beta": "assistants=v2",
        }

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Backend request {method} {path} failed: {e}")
            raise BackendUnavailable(f"{method} {path}: {e}") from e

        if response.status_code >= 500:
            logger.error(f"Backend error {response.status_code} on {method} {path}")
            raise BackendUnavailable(f"{method} {path}: HTTP {response.status_code}")

        if response.status_code >= 400:
            detail = _error_message(response)
            logger.warning(f"Backend rejected {method} {path} ({response.status_code}): {detail}")
            raise BackendRejected(f"{method} {path}: {detail}", status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as e:
            raise BackendRejected(f"{method} {path}: malformed response body", status_code=response.status_code) from e
        if not isinstance(body, dict):
            raise BackendRejected(f"{method} {path}: malformed response body", status_code=response.status_code)
        return body

    async def create_thread(self, seed_messages: List[Dict[str, str]]) -> str:
        data = await self._request("POST", "/threads", json={"messages": seed_messages})
        thread_id = data.get("id")
        if not thread_id:
            raise BackendRejected("POST /threads: response has no thread id")
        logger.info(f"Created thread {thread_id}")
        return thread_id

    async def post_message(self, thread_id: str, role: str, text: str) -> None:
        await self._request(
            "POST",
            f"/threads/{thread_id}/messages",
            json={"role": role, "content": text},
        )

    async def start_run(self, thread_id: str, assistant_id: str) -> Run:
        data = await self._request(
            "POST",
            f"/threads/{thread_id}/runs",
            json={"assistant_id": assistant_id},
        )
        return _parse_run(data, thread_id)

    async def get_run_status(self, thread_id: str, run_id: str) -> Run:
        data = await self._request("GET", f"/threads/{thread_id}/runs/{run_id}")
        return _parse_run(data, thread_id)

    async def latest_message(self, thread_id: str, run_id: Optional[str] = None) -> Optional[ThreadMessage]:
        """Return the newest message on the thread, optionally only from one run."""
        params = {"order": "desc", "limit": 1}
        if run_id:
            params["run_id"] = run_id
        data = await self._request("GET", f"/threads/{thread_id}/messages", params=params)
        items = data.get("data") or []
        if not isinstance(items, list):
            raise BackendRejected(f"GET /threads/{thread_id}/messages: malformed message list")
        if not items:
            return None
        try:
            return ThreadMessage.from_api(items[0])
        except ValueError as e:
            raise BackendRejected(f"GET /threads/{thread_id}/messages: {e}") from e

    async def describe_image(self, image_url: str, prompt: str = IMAGE_PROMPT) -> str:
        data = await self._request(
            "POST",
            "/chat/completions",
            json={
                "model": self.vision_model,
                "messages": [
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": prompt},
                            {"type": "image_url", "image_url": {"url": image_url}},
                        ],
                    }
                ],
            },
        )
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise BackendRejected("POST /chat/completions: response has no choices") from e

        if isinstance(content, list):
            parts = []
            for item in content:
                if not isinstance(item, dict) or item.get("type") != "text":
                    continue
                text = item.get("text")
                parts.append(text.get("value", "") if isinstance(text, dict) else str(text or ""))
            return "\n".join(parts)
        if content is not None and not isinstance(content, str):
            raise BackendRejected("POST /chat/completions: malformed message content")
        return content or ""


def _parse_run(data: Dict[str, Any], thread_id: str) -> Run:
    try:
        run = Run.from_api(data)
    except KeyError as e:
        raise BackendRejected(f"run response missing field {e}") from e
    if not run.thread_id:
        run.thread_id = thread_id
    return run


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return f"HTTP {response.status_code}"
