"""Symbol table helpers for context biasing.

The vocabulary is a plain pynini SymbolTable shared with the decoder:
- Id 0 is reserved for <eps>, the label of escape arcs
- Word-initial subwords carry the leading marker "▁"
- <context> and </context> are registered on demand as phrase boundary tags
"""

from typing import Iterable, Tuple

from pynini import SymbolTable


EPSILON = "<eps>"
SPACE_SYMBOL = "▁"
CONTEXT_START_TAG = "<context>"
CONTEXT_END_TAG = "</context>"

# Returned by SymbolTable.find for unknown symbols
NO_SYMBOL = -1


def create_symbol_table(tokens: Iterable[str]) -> SymbolTable:
    """Create a symbol table with <eps> at id 0 followed by `tokens`.

    Args:
        tokens: Vocabulary units in id order

    Returns:
        Symbol table
    """
    symbol_table = SymbolTable()
    symbol_table.add_symbol(EPSILON)

    for token in tokens:
        symbol_table.add_symbol(token)

    return symbol_table


def load_symbol_table(file_path: str) -> SymbolTable:
    """Load a units file into a symbol table.

    File format: token id

    Args:
        file_path: Path to units file

    Returns:
        Symbol table keyed by the ids in the file
    """
    symbol_table = SymbolTable()

    with open(file_path, 'r', encoding='utf-8') as f:
        for line_no, line in enumerate(f, 1):
            parts = line.split()
            if not parts:
                continue
            if len(parts) != 2:
                raise ValueError(
                    f"{file_path}:{line_no}: expected 'token id', got {line.rstrip()!r}")
            token, key = parts
            try:
                symbol_table.add_symbol(token, int(key))
            except ValueError as e:
                raise ValueError(f"{file_path}:{line_no}: invalid id {key!r}") from e

    return symbol_table


def add_context_tags(symbol_table: SymbolTable) -> Tuple[int, int]:
    """Register the phrase boundary tags, keeping existing ids.

    Returns:
        Tuple of (start_tag_id, end_tag_id)
    """
    start_tag_id = symbol_table.add_symbol(CONTEXT_START_TAG)
    end_tag_id = symbol_table.add_symbol(CONTEXT_END_TAG)
    return start_tag_id, end_tag_id
