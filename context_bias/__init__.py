"""Context biasing for ASR decoding.

This package implements phrase biasing for beam search decoders.
"""

__version__ = "0.1.0"

from .config import ContextConfig
from .context_graph import ContextGraph, read_contexts
from .errors import ContextGraphError, DeterminizationError
from .tokenizer import split_to_tokens
from .vocab import create_symbol_table, load_symbol_table
from .wfst.walk import ContextStep, GraphWalker

__all__ = [
    "ContextConfig",
    "ContextGraph",
    "read_contexts",
    "ContextGraphError",
    "DeterminizationError",
    "split_to_tokens",
    "create_symbol_table",
    "load_symbol_table",
    "ContextStep",
    "GraphWalker",
]
