"""
Two-line message wrapping shared by every card renderer.

The HTML templates and the local compositor both take their line breaks from
format_message_with_line_break; neither wraps text on its own.
"""
from dataclasses import dataclass
from typing import Optional

SINGLE_LINE_MAX_CHARS = 30


@dataclass(frozen=True)
class FormattedMessage:
    first_line: str
    second_line: str = ""
    should_break: bool = False

    @property
    def lines(self) -> list[str]:
        if self.should_break:
            return [self.first_line, self.second_line]
        return [self.first_line]


def _choose_split_index(words: list[str], half_length: int) -> int:
    """
    Index of the first word on the second line.

    Walks the words keeping a running length (one separating space per word
    after the first). At the first word that reaches half_length, picks the
    boundary before or after it, whichever is nearer; ties keep the word on
    the second line.
    """
    character_count = 0
    for i, word in enumerate(words):
        word_length = len(word) + (1 if i > 0 else 0)
        if character_count + word_length >= half_length:
            before_split = character_count
            after_split = character_count + word_length
            if abs(half_length - before_split) <= abs(half_length - after_split):
                return i
            return i + 1
        character_count += word_length
    return 0


def format_message_with_line_break(message: Optional[str]) -> FormattedMessage:
    """Split a message into at most two lines near its midpoint, on a word boundary."""
    text = str(message or "")
    if len(text) <= SINGLE_LINE_MAX_CHARS:
        return FormattedMessage(first_line=text)

    words = text.split(" ")
    split_index = _choose_split_index(words, len(text) // 2)

    if 0 < split_index < len(words):
        return FormattedMessage(
            first_line=" ".join(words[:split_index]),
            second_line=" ".join(words[split_index:]),
            should_break=True,
        )
    return FormattedMessage(first_line=text)
