"""Anthropic Messages API ranking backend."""

import logging

import httpx

from ..config import get_api_key, get_ranking_model
from ..errors import AccessRequiredError, RankingError
from ..ranking import Ranker

logger = logging.getLogger(__name__)

API_URL = "https://api.anthropic.com/v1/messages"
API_VERSION = "2023-06-01"

# Status codes meaning the account cannot use the API, as opposed to a failed call
ACCESS_STATUS_CODES = {401, 402, 403}
BILLING_WORDS = ("subscription", "credit balance", "billing")


def _mentions_billing(response: httpx.Response) -> bool:
    text = response.text.lower()
    return any(word in text for word in BILLING_WORDS)


class AnthropicRanker(Ranker):
    """Ranker that asks a small Claude model which messages match a query."""

    name = "anthropic"

    def __init__(self, api_key: str | None = None, timeout: float = 30.0, transport: httpx.AsyncBaseTransport | None = None):
        self.api_key = api_key if api_key is not None else get_api_key()
        self.timeout = timeout
        self._transport = transport

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def ask(self, prompt: str, model: str | None = None) -> str:
        if not self.api_key:
            raise AccessRequiredError("An Anthropic API key is required for AI search")

        payload = {
            "model": model or get_ranking_model(),
            "max_tokens": 1024,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": API_VERSION,
            "content-type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(API_URL, json=payload, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status in ACCESS_STATUS_CODES or _mentions_billing(e.response):
                raise AccessRequiredError(f"Ranking request denied: {status}") from e
            raise RankingError(f"Ranking request failed: {status} {e.response.reason_phrase}") from e
        except httpx.RequestError as e:
            raise RankingError(f"Ranking request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise RankingError("Ranking response was not JSON") from e

        blocks = data.get("content") if isinstance(data, dict) else None
        if not isinstance(blocks, list):
            raise RankingError("Ranking response had no content")

        return "".join(
            block.get("text", "")
            for block in blocks
            if isinstance(block, dict) and block.get("type") == "text"
        )
