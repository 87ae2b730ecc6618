"""Context graph owned by a decoding session.

The graph is rebuilt wholesale from a phrase list. Each build installs a new
immutable walker; streams that took a reference to the previous walker keep
using it until they finish.
"""

import logging
from typing import List, Optional, Sequence

from pynini import SymbolTable

from .config import ContextConfig
from .vocab import NO_SYMBOL, add_context_tags
from .wfst.build_context import BuildStats, build_context_fst
from .wfst.determinize import determinize_context_fst
from .wfst.walk import CompiledGraph, ContextStep, GraphWalker

logger = logging.getLogger(__name__)


class ContextGraph:
    """Biasing graph rewarding tokens that continue known phrases."""

    start_state = 0

    def __init__(self, config: Optional[ContextConfig] = None):
        """Initialize an empty context graph.

        Args:
            config: Context configuration, defaults when omitted
        """
        self.config = config if config is not None else ContextConfig()
        self.symbol_table: Optional[SymbolTable] = None
        self.start_tag_id = NO_SYMBOL
        self.end_tag_id = NO_SYMBOL
        self._walker = GraphWalker()

    @property
    def walker(self) -> GraphWalker:
        """Walker over the currently installed graph."""
        return self._walker

    @property
    def is_empty(self) -> bool:
        return self._walker.is_empty

    @property
    def num_states(self) -> int:
        graph = self._walker.graph
        return len(graph) if graph is not None else 0

    def build_context_graph(self,
                            query_contexts: Sequence[str],
                            symbol_table: SymbolTable) -> BuildStats:
        """Compile phrases into a new graph and install it.

        Args:
            query_contexts: Phrases in priority order
            symbol_table: Vocabulary shared with the decoder; the boundary
                tags are added to it if absent

        Returns:
            Counters of accepted and skipped phrases

        Raises:
            ValueError: If `symbol_table` is None
            DeterminizationError: If the graph cannot be determinized
        """
        if symbol_table is None:
            raise ValueError("Symbol table should not be None!")
        self.start_tag_id, self.end_tag_id = add_context_tags(symbol_table)
        self.symbol_table = symbol_table

        stats = BuildStats()
        if not query_contexts:
            self._walker = GraphWalker()
            return stats

        logger.info("Contexts count size: %d", len(query_contexts))
        context_fst = build_context_fst(query_contexts, symbol_table, self.config, stats)
        det_fst = determinize_context_fst(context_fst)
        self._walker = GraphWalker(CompiledGraph.from_fst(det_fst))

        logger.info("Context graph built: %d phrases, %d states "
                    "(skipped %d long, %d empty, %d with OOV)",
                    stats.accepted, self.num_states,
                    stats.too_long, stats.empty, stats.oov)
        return stats

    def get_next_state(self, cur_state: int, word_id: int) -> ContextStep:
        """Look up the transition for `word_id` from `cur_state`."""
        return self._walker.next_state(cur_state, word_id)


def read_contexts(file_path: str) -> List[str]:
    """Read one phrase per line, ignoring blank lines."""
    contexts = []
    with open(file_path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if line:
                contexts.append(line)
    return contexts
