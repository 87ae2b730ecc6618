"""Single-step traversal of a compiled context graph.

The decoder queries the graph once per candidate token:
1. A labeled arc at the current state continues (or starts) a phrase
2. Otherwise the escape score gives back the bonus of the abandoned prefix
   and the token is retried from the start state
3. Otherwise the walk falls back to the start state
"""

from types import MappingProxyType
from typing import List, Mapping, NamedTuple, Optional, Sequence, Tuple

import pynini
from pynini import Fst

from .build_context import ESCAPE_LABEL


class ContextStep(NamedTuple):
    """Result of one lookup."""

    next_state: int
    score_delta: float
    is_start_boundary: bool
    is_end_boundary: bool


NO_MATCH = ContextStep(0, 0.0, False, False)


class CompiledState(NamedTuple):
    arcs: Mapping[int, Tuple[int, float]]
    escape_score: Optional[float]
    is_final: bool


class CompiledGraph:
    """Read-only arena of a determinized context FST.

    States are addressed by index; the arcs of each state are a frozen
    mapping from token id to (next_state, score).
    """

    def __init__(self, states: Sequence[CompiledState]):
        self.states = tuple(states)

    def __len__(self) -> int:
        return len(self.states)

    @classmethod
    def from_fst(cls, det_fst: Fst) -> "CompiledGraph":
        """Flatten a deterministic context FST.

        Args:
            det_fst: Deterministic acceptor with start state 0

        Returns:
            Compiled graph
        """
        one = pynini.Weight.one(det_fst.weight_type())
        states = []

        for state in range(det_fst.num_states()):
            arcs = {}
            escape_score = None
            for arc in det_fst.arcs(state):
                if arc.ilabel == ESCAPE_LABEL:
                    escape_score = float(arc.weight)
                elif arc.ilabel not in arcs:
                    arcs[arc.ilabel] = (arc.nextstate, float(arc.weight))
            states.append(CompiledState(
                arcs=MappingProxyType(arcs),
                escape_score=escape_score,
                is_final=det_fst.final(state) == one,
            ))

        return cls(states)


class GraphWalker:
    """Looks up the next state of a compiled context graph.

    A walker never mutates its graph, so one instance may be shared by any
    number of decoding streams.
    """

    def __init__(self, graph: Optional[CompiledGraph] = None):
        self.graph = graph

    @property
    def is_empty(self) -> bool:
        return self.graph is None or len(self.graph) == 0

    def next_state(self, cur_state: int, token_id: int) -> ContextStep:
        """Advance from `cur_state` on `token_id`.

        Args:
            cur_state: Current graph state, 0 at the start of decoding
            token_id: Candidate token id

        Returns:
            ContextStep with the next state, the score delta and the phrase
            boundary flags
        """
        if self.is_empty:
            return NO_MATCH
        states = self.graph.states
        if not 0 <= cur_state < len(states):
            raise ValueError(f"Invalid context state: {cur_state}")

        state = states[cur_state]
        score = state.escape_score or 0.0

        arc = state.arcs.get(token_id)
        if arc is not None:
            next_state, arc_score = arc
            return ContextStep(next_state, arc_score, cur_state == 0,
                               states[next_state].is_final)

        # Retry from the start state on top of the escape score
        arc = states[0].arcs.get(token_id)
        if arc is not None:
            next_state, arc_score = arc
            return ContextStep(next_state, score + arc_score, cur_state == 0,
                               states[next_state].is_final)

        return ContextStep(0, score, False, False)

    def walk(self, token_ids: Sequence[int], state: int = 0) -> List[ContextStep]:
        """Apply `next_state` over a token sequence."""
        steps = []
        for token_id in token_ids:
            step = self.next_state(state, token_id)
            steps.append(step)
            state = step.next_state
        return steps
