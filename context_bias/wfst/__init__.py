"""WFST modules for context biasing.

This package implements the context graph used during decoding:
- Build: phrases to a nondeterministic acceptor with escape arcs
- Determinize: OpenFST determinization into a deterministic acceptor
- Walk: single-step token lookup over the compiled graph
"""

from .build_context import BuildStats, build_context_fst, token_score
from .determinize import determinize_context_fst
from .walk import CompiledGraph, ContextStep, GraphWalker

__all__ = [
    "BuildStats",
    "build_context_fst",
    "token_score",
    "determinize_context_fst",
    "CompiledGraph",
    "ContextStep",
    "GraphWalker",
]
