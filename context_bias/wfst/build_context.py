"""Build the context biasing FST.

This module implements:
1. Per-token bonus scores for phrase prefixes
2. A chain of states per phrase, closing back into the start state
3. Escape arcs that give back the bonus of an abandoned prefix
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

import pynini
from pynini import Fst, SymbolTable

from ..config import ContextConfig
from ..tokenizer import WHITESPACE, is_alpha, split_to_tokens, utf8_length
from ..vocab import SPACE_SYMBOL

logger = logging.getLogger(__name__)

# Label of escape arcs
ESCAPE_LABEL = 0


@dataclass
class BuildStats:
    """Counters collected while compiling a phrase list."""

    accepted: int = 0
    too_long: int = 0
    empty: int = 0
    oov: int = 0
    truncated: bool = False


def token_score(token: str, index: int, config: ContextConfig) -> float:
    """Bonus for the `index`-th token of a phrase.

    Alphabetic and word-initial tokens get a flat bonus; other tokens (CJK
    characters and the like) are scaled by their length in codepoints.
    """
    score = index * config.incremental_context_score + config.context_score
    if is_alpha(token) or token.startswith(SPACE_SYMBOL):
        return score
    return score * utf8_length(token)


def add_phrase(context_fst: Fst,
               tokens: List[str],
               symbol_table: SymbolTable,
               config: ContextConfig) -> None:
    """Add one tokenized phrase to the FST as a chain starting at state 0.

    Args:
        context_fst: FST under construction, state 0 being start and final
        tokens: Phrase tokens, all present in `symbol_table`
        symbol_table: Vocabulary
        config: Scoring parameters
    """
    weight_type = context_fst.weight_type()
    start_state = 0
    prev_state = start_state
    escape_score = 0.0

    for i, token in enumerate(tokens):
        token_id = symbol_table.find(token)
        score = token_score(token, i, config)
        next_state = context_fst.add_state() if i < len(tokens) - 1 else start_state

        context_fst.add_arc(prev_state, pynini.Arc(
            token_id,
            token_id,
            pynini.Weight(weight_type, score),
            next_state
        ))

        # Escape arc cancels the bonus of the prefix matched so far
        if i > 0:
            context_fst.add_arc(prev_state, pynini.Arc(
                ESCAPE_LABEL,
                ESCAPE_LABEL,
                pynini.Weight(weight_type, -escape_score),
                start_state
            ))

        prev_state = next_state
        escape_score += score


def build_context_fst(contexts: Iterable[str],
                      symbol_table: SymbolTable,
                      config: ContextConfig,
                      stats: Optional[BuildStats] = None) -> Fst:
    """Build the nondeterministic context FST.

    Phrases longer than `max_context_length` are skipped, phrases beyond the
    first `max_contexts` are dropped, and phrases with any OOV unit are left
    out entirely.

    Args:
        contexts: Phrases in priority order
        symbol_table: Vocabulary used for tokenization and arc labels
        config: Context configuration
        stats: Optional counters updated in place

    Returns:
        Acceptor whose state 0 is both start and final
    """
    if stats is None:
        stats = BuildStats()

    context_fst = Fst()
    start_state = context_fst.add_state()
    context_fst.set_start(start_state)
    context_fst.set_final(start_state, pynini.Weight.one(context_fst.weight_type()))

    count = 0
    for context in contexts:
        context = context.strip(WHITESPACE)
        if not context:
            stats.empty += 1
            logger.debug("Skip empty context")
            continue
        if utf8_length(context) > config.max_context_length:
            stats.too_long += 1
            logger.info("Skip long context: %s", context)
            continue
        if count >= config.max_contexts:
            stats.truncated = True
            logger.debug("Reached max_contexts=%d, dropping the rest", config.max_contexts)
            break
        count += 1

        tokens, no_oov = split_to_tokens(context, symbol_table)
        if not no_oov:
            stats.oov += 1
            logger.warning("Ignore unknown word found during compilation: %s", context)
            continue

        add_phrase(context_fst, tokens, symbol_table, config)
        stats.accepted += 1

    return context_fst
