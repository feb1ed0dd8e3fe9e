"""
Free-text exit parsing through a language model.

The model sees the player's text and the visible exit labels and must answer
with ``EXIT:<label>`` or ``UNCLEAR``. Anything else counts as unparsable.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Protocol, Sequence

import requests

from ..exceptions import ExitParserError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"

SYSTEM_PROMPT = (
    "You map a text adventure player's movement request to one of the listed exits. "
    "Reply with exactly 'EXIT:<label>' using a label from the list, or 'UNCLEAR' if "
    "the request does not clearly match one exit."
)


class ParseKind(str, Enum):
    EXIT = "exit"
    UNCLEAR = "unclear"
    INVALID = "invalid"


@dataclass(frozen=True)
class ParsedExit:
    kind: ParseKind
    label: Optional[str] = None


class ExitParser(Protocol):
    def parse(self, text: str, labels: Sequence[str]) -> ParsedExit:
        ...


def build_prompt(text: str, labels: Sequence[str]) -> str:
    exits = "\n".join(f"- {label}" for label in labels)
    return f"Player input: {text}\nAvailable exits:\n{exits}"


def parse_exit_reply(reply: str, labels: Sequence[str]) -> ParsedExit:
    """Interpret a model reply; labels outside ``labels`` are INVALID."""
    content = reply.strip().strip("`").strip()
    if content.upper().startswith("UNCLEAR"):
        return ParsedExit(ParseKind.UNCLEAR)
    if content.upper().startswith("EXIT:"):
        wanted = content[len("EXIT:"):].strip().strip("\"'.").lower()
        for label in labels:
            if label.lower() == wanted:
                return ParsedExit(ParseKind.EXIT, label)
        logger.debug("Model chose unknown exit %r", wanted)
    return ParsedExit(ParseKind.INVALID)


class ChatCompletionExitParser:
    """
    Exit parser backed by an OpenAI-compatible ``/chat/completions`` endpoint.

    Notes:
    - Uses a shared Session for connection reuse.
    - Raises ExitParserError on transport failures and non-2xx responses; the
      intent resolver turns those into a "no match".
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        timeout: float = 10.0,
    ) -> None:
        if not api_key:
            api_key = os.getenv("CATACOMB_LLM_API_KEY") or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ValueError("An API key is required. Provide it or set CATACOMB_LLM_API_KEY.")
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "User-Agent": "catacomb-graph/0.1",
            }
        )

    def _request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self._base_url}/chat/completions"
        logger.debug("POST %s model=%s", url, self._model)
        try:
            resp = self._session.post(url, json=payload, timeout=self._timeout)
        except requests.RequestException as e:
            raise ExitParserError(f"Exit parser request failed: {e}") from e
        if not 200 <= resp.status_code < 300:
            try:
                detail = resp.json()
            except ValueError:
                detail = resp.text
            raise ExitParserError(f"Exit parser API error {resp.status_code}: {detail}")
        try:
            return resp.json()
        except ValueError as e:
            raise ExitParserError("Exit parser returned a non-JSON body") from e

    def parse(self, text: str, labels: Sequence[str]) -> ParsedExit:
        payload = {
            "model": self._model,
            "temperature": 0,
            "max_tokens": 20,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(text, labels)},
            ],
        }
        data = self._request(payload)
        try:
            reply = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError):
            logger.warning("Unexpected exit parser response shape: %s", data)
            return ParsedExit(ParseKind.INVALID)
        return parse_exit_reply(reply, labels)

    def close(self) -> None:
        self._session.close()
