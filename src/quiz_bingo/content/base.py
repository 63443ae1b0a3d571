from __future__ import annotations

import base64
import mimetypes
from pathlib import Path
from typing import List, Optional, Protocol

from ..errors import GenerationError
from ..models import Item, SubjectContext

MODES = ("similar", "exact")


class ContentProvider(Protocol):
    def detect_subject(self, topic: str, image: Optional[str] = None) -> SubjectContext:
        ...

    def generate_items(
        self,
        context: SubjectContext,
        topic: str,
        count: int,
        image: Optional[str] = None,
        mode: str = "similar",
    ) -> List[Item]:
        ...


def image_to_data_uri(image: Optional[str]) -> Optional[str]:
    """Accept a data URI as is, or read a local file into one."""
    if not image:
        return None
    if image.startswith("data:"):
        return image
    path = Path(image)
    mime = mimetypes.guess_type(path.name)[0] or "image/png"
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise GenerationError(f"Cannot read reference image {path}: {exc}") from exc
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime};base64,{encoded}"
