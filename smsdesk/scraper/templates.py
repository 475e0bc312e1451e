"""Known message templates used by the free-text recovery strategies.

Some providers' messages are rendered outside any table.  A template names
the sender, a marker that appears near the message (usually the sender's
brand name), the fixed phrase the message starts with, and optionally exact
message literals that have been observed verbatim on provider pages.

Extra templates can be supplied as a JSON list via ``SMSDESK_TEMPLATES_FILE``::

    [{"sender": "acme", "marker": "ACME", "phrase": "Your ACME code",
      "literals": []}]
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple

from smsdesk.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KnownTemplate:
    sender: str
    marker: str
    phrase: str
    literals: Tuple[str, ...] = ()


DEFAULT_TEMPLATES: Tuple[KnownTemplate, ...] = (
    KnownTemplate(
        sender="comdirect",
        marker="comdirect",
        phrase="Bitte nicht weitergeben",
        literals=(
            "Bitte nicht weitergeben - hier ist das Passwort für Ihren "
            "comdirect Eröffnungsantrag: G98b-TQXb",
        ),
    ),
)


def load_templates(path: Path) -> Tuple[KnownTemplate, ...]:
    """Read templates from a JSON file.

    Raises:
        ValueError: If the file is not a JSON list of template objects.
    """
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a JSON list of templates")
    templates = []
    for entry in raw:
        try:
            templates.append(
                KnownTemplate(
                    sender=entry["sender"],
                    marker=entry["marker"],
                    phrase=entry["phrase"],
                    literals=tuple(entry.get("literals", ())),
                )
            )
        except (KeyError, TypeError, AttributeError) as exc:
            raise ValueError(f"{path}: malformed template entry {entry!r}") from exc
    return tuple(templates)


def get_templates(path: Optional[Path] = None) -> Sequence[KnownTemplate]:
    """Return the built-in templates plus any configured in *path*.

    Args:
        path: Override the templates file.  Defaults to
            ``settings.templates_file``.
    """
    path = path or settings.templates_file
    if path is None:
        return DEFAULT_TEMPLATES
    extra = load_templates(path)
    logger.debug("Loaded %d extra message templates from %s", len(extra), path)
    return DEFAULT_TEMPLATES + extra
