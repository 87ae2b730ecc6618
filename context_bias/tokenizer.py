"""Greedy longest-match segmentation of phrases into vocabulary units."""

import logging
from typing import List, Tuple

from pynini import SymbolTable

from .vocab import NO_SYMBOL, SPACE_SYMBOL

logger = logging.getLogger(__name__)

WHITESPACE = " \n\r\t\f\v"


def split_utf8_chars(text: str) -> List[str]:
    return list(text)


def utf8_length(text: str) -> int:
    """Length in codepoints."""
    return len(text)


def is_alpha(text: str) -> bool:
    """True if every character is an ASCII letter."""
    return text.isascii() and text.isalpha()


def join_tokens(tokens: List[str]) -> str:
    """Concatenate tokens, turning word-boundary markers back into spaces."""
    return "".join(tokens).replace(SPACE_SYMBOL, " ").strip()


def split_to_tokens(text: str, symbol_table: SymbolTable) -> Tuple[List[str], bool]:
    """Split a phrase into the longest units known to the symbol table.

    Spaces separate words and are dropped. An alphabetic unit at the start of
    a word is looked up with the "▁" marker prepended. When no unit of length
    one matches, the codepoint is skipped and reported as OOV; scanning goes
    on so every OOV unit of the phrase gets logged.

    Args:
        text: Phrase to split
        symbol_table: Vocabulary

    Returns:
        Tuple of (tokens, no_oov) where no_oov is False if any unit was skipped
    """
    chars = split_utf8_chars(text.strip(WHITESPACE))
    tokens = []
    no_oov = True
    beginning = True

    start = 0
    while start < len(chars):
        for end in range(len(chars), start, -1):
            token = "".join(chars[start:end])
            if token == " ":
                start = end
                beginning = True
                break

            marked = beginning and is_alpha(token)
            if marked:
                token = SPACE_SYMBOL + token

            if symbol_table.find(token) != NO_SYMBOL:
                tokens.append(token)
                start = end
                beginning = False
                break

            if end == start + 1:
                if marked:
                    # Match the marker on its own, then retry the bare letter
                    if symbol_table.find(SPACE_SYMBOL) != NO_SYMBOL:
                        tokens.append(SPACE_SYMBOL)
                    beginning = False
                    break
                logger.warning("%s is oov.", token)
                no_oov = False
                start += 1
                break

    return tokens, no_oov
