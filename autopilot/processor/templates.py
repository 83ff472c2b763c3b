import re
from typing import Mapping

from ..models import Message

PLACEHOLDER = re.compile(r"\{\{([^{}]+)\}\}")


def render(template: str, variables: Mapping[str, str]) -> str:
    """
    Replace every {{KEY}} with variables[KEY].
    Unknown placeholders stay as they are, and substituted values are not
    scanned again.
    """
    def substitute(match: re.Match) -> str:
        key = match.group(1)
        if key in variables:
            return variables[key]
        return match.group(0)

    return PLACEHOLDER.sub(substitute, template)


def render_message(message: Message, variables: Mapping[str, str]) -> str:
    return (
        render(message.prefix, variables)
        + render(message.comment, variables)
        + render(message.suffix, variables)
    )
