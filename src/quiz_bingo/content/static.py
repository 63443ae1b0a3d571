from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Optional

import yaml

from ..errors import GenerationError
from ..models import Item, SubjectContext
from .openrouter import parse_items

logger = logging.getLogger(__name__)


class StaticPoolProvider:
    """Serve a prepared item list from a JSON or YAML file.

    The file holds either a list of {problem, answer} objects or a mapping
    with "items" and optional "subject" / "isMath" keys.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._data: Any = None

    def _load(self) -> Any:
        if self._data is None:
            try:
                text = self.path.read_text(encoding="utf-8")
                if self.path.suffix.lower() in (".yaml", ".yml"):
                    self._data = yaml.safe_load(text)
                else:
                    self._data = json.loads(text)
            except (OSError, ValueError, yaml.YAMLError) as exc:
                raise GenerationError(f"Cannot read pool file {self.path}: {exc}") from exc
        return self._data

    def detect_subject(self, topic: str, image: Optional[str] = None) -> SubjectContext:
        data = self._load()
        meta = data if isinstance(data, dict) else {}
        return SubjectContext(
            subject=str(meta.get("subject") or topic or "General"),
            is_math=bool(meta.get("isMath", meta.get("is_math", False))),
        )

    def generate_items(
        self,
        context: SubjectContext,
        topic: str,
        count: int,
        image: Optional[str] = None,
        mode: str = "similar",
    ) -> List[Item]:
        items = parse_items(self._load())
        if len(items) > count:
            items = items[:count]
        logger.info("Loaded %d items from %s", len(items), self.path)
        return items
