"""Item pool and subject detection through an OpenAI-compatible chat API."""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Dict, List, Optional

import requests

from ..errors import GenerationError
from ..models import Item, SubjectContext
from .base import MODES, image_to_data_uri

logger = logging.getLogger(__name__)

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_MODEL = "google/gemini-2.0-flash-001"
DEFAULT_TIMEOUT = 120
PLACEHOLDER = "?"

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")

SUBJECT_SYSTEM = (
    "You are a helpful assistant. Return ONLY valid JSON. "
    "Detect the school subject and whether math notation (LaTeX) is required."
)

SUBJECT_PROMPT = (
    'Analyse the input (text: "{topic}") and/or the image.\n\n'
    "1. Determine the school subject (e.g. Mathematics, History).\n"
    "2. Set 'isMath' to true ONLY for mathematics (LaTeX needed).\n\n"
    'Return JSON: {{ "subject": "Subject name", "isMath": boolean }}'
)

MATH_FORMAT = """
NOTATION (MATH):
- Use LaTeX for symbols in both 'problem' and 'answer'.
- NO dollar signs ($).
- Use \\times for multiplication, \\frac{a}{b} for fractions.
"""

TEXT_FORMAT = """
NOTATION (TEXT):
- Do NOT use LaTeX. Plain text.
- 'problem': the question or description the teacher reads aloud.
- 'answer': the SHORT answer (1-4 words).
"""

ITEMS_SYSTEM = """
You are a teacher of {subject}.
Produce content for a bingo game.
{format}
Variety: every answer must be unique.

IMPORTANT: Return a JSON object with a property "items" containing an array of objects.
Example: {{ "items": [{{ "problem": "...", "answer": "..." }}] }}
"""


def strip_code_fence(content: str) -> str:
    return _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", content.strip()))


def items_prompt(topic: str, count: int, has_image: bool, mode: str) -> str:
    if has_image and mode == "exact":
        return (
            f"List EXACTLY {count} items. EXTRACTION: copy the content EXACTLY from the image. "
            "Add more items if there are too few."
        )
    if has_image:
        return f"Generate {count} NEW unique items similar in style and level to the image."
    return f'Topic: "{topic}". Generate exactly {count} unique items (question + answer).'


def parse_items(payload: Any) -> List[Item]:
    """Accept either a bare array or an object with an "items" array.

    Entries repeating an earlier answer (case-insensitive) are dropped, so no
    card shows the same text twice. Ids are numbered over the kept entries.
    """
    if isinstance(payload, list):
        raw = payload
    elif isinstance(payload, dict):
        raw = payload.get("items") or []
    else:
        raise GenerationError(f"Unexpected item payload type: {type(payload).__name__}")
    if not isinstance(raw, list):
        raise GenerationError("'items' is not a list")

    items: List[Item] = []
    seen: set = set()
    for entry in raw:
        entry = entry if isinstance(entry, dict) else {}
        answer = str(entry.get("answer") or PLACEHOLDER)
        key = answer.strip().casefold()
        if key in seen:
            logger.warning("Dropping item with repeated answer %r", answer)
            continue
        seen.add(key)
        items.append(
            Item(
                id=f"item-{len(items)}",
                problem=str(entry.get("problem") or PLACEHOLDER),
                answer=answer,
            )
        )
    return items


class OpenRouterProvider:
    """Content provider backed by the OpenRouter chat-completions endpoint."""

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        url: str = OPENROUTER_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key or os.environ.get("OPENROUTER_API_KEY") or os.environ.get("API_KEY")
        self.model = model
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def _call(self, messages: List[Dict[str, Any]]) -> Any:
        if not self.api_key:
            raise GenerationError("Missing API key. Set OPENROUTER_API_KEY.")
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "X-Title": "Quiz Bingo",
            "Content-Type": "application/json",
        }
        body = {
            "model": self.model,
            "messages": messages,
            "response_format": {"type": "json_object"},
        }
        try:
            response = self.session.post(self.url, headers=headers, json=body, timeout=self.timeout)
        except requests.RequestException as exc:
            raise GenerationError(f"API request failed: {exc}") from exc
        if not response.ok:
            logger.error("API error %s: %s", response.status_code, response.text[:500])
            raise GenerationError(f"API call failed: {response.status_code} {response.reason}")

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"] or "{}"
            return json.loads(strip_code_fence(content))
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise GenerationError(f"Could not parse API reply: {exc}") from exc

    @staticmethod
    def _user_content(text: str, image: Optional[str]) -> List[Dict[str, Any]]:
        content: List[Dict[str, Any]] = [{"type": "text", "text": text}]
        data_uri = image_to_data_uri(image)
        if data_uri:
            content.append({"type": "image_url", "image_url": {"url": data_uri}})
        return content

    def detect_subject(self, topic: str, image: Optional[str] = None) -> SubjectContext:
        if not topic and not image:
            raise ValueError("Enter a topic or supply a reference image")
        messages = [
            {"role": "system", "content": SUBJECT_SYSTEM},
            {"role": "user", "content": self._user_content(SUBJECT_PROMPT.format(topic=topic), image)},
        ]
        result = self._call(messages)
        if not isinstance(result, dict):
            raise GenerationError("Subject reply is not a JSON object")
        context = SubjectContext(
            subject=str(result.get("subject") or "General"),
            is_math=bool(result.get("isMath")),
        )
        logger.info("Detected subject %r (math=%s)", context.subject, context.is_math)
        return context

    def generate_items(
        self,
        context: SubjectContext,
        topic: str,
        count: int,
        image: Optional[str] = None,
        mode: str = "similar",
    ) -> List[Item]:
        if mode not in MODES:
            raise ValueError(f"mode must be one of {MODES}: {mode!r}")
        system = ITEMS_SYSTEM.format(
            subject=context.subject,
            format=MATH_FORMAT if context.is_math else TEXT_FORMAT,
        )
        prompt = items_prompt(topic, count, bool(image), mode)
        messages = [
            {"role": "system", "content": system},
            {"role": "user", "content": self._user_content(prompt, image)},
        ]
        items = parse_items(self._call(messages))
        logger.info("Provider returned %d items (requested %d)", len(items), count)
        if len(items) > count:
            items = items[:count]
        return items
