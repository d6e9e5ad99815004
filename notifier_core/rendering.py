"""
Message template rendering.

Templates reference row fields as ``{column1}`` or ``{humidity}``. Unknown
placeholders render as an empty string and are logged, never raised.
``{{`` and ``}}`` produce literal braces.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import List, Mapping

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{\{|\}\}|\{([^{}]*)\}")


@dataclass(frozen=True)
class RenderedMessage:
    text: str
    missing_fields: List[str] = field(default_factory=list)


def render_message(template: str, row: Mapping[str, str], row_index: int = None) -> RenderedMessage:
    """
    Substitute row fields into a message template.

    Args:
        template: Message template from the rule
        row: Row providing field values
        row_index: Optional index exposed to the template as ``{row_index}``

    Returns:
        RenderedMessage with the text and any placeholders that did not resolve
    """
    missing: List[str] = []

    def _substitute(m: re.Match) -> str:
        token = m.group(0)
        if token == '{{':
            return '{'
        if token == '}}':
            return '}'

        name = m.group(1).strip()
        if name in row:
            return row[name]
        if name == 'row_index' and row_index is not None:
            return str(row_index)

        missing.append(name)
        return ''

    text = _PLACEHOLDER.sub(_substitute, template)

    if missing:
        logger.warning(f"Unresolved placeholders in message template: {', '.join(missing)}")

    return RenderedMessage(text=text, missing_fields=missing)
