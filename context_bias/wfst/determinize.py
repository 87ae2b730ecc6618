"""Determinization of the context FST.

OpenFST's determinization treats label 0 as an ordinary symbol, so escape
arcs survive as explicit transitions of the deterministic result.
"""

import logging

import pynini
from pynini import Fst

from ..errors import DeterminizationError

logger = logging.getLogger(__name__)


def determinize_context_fst(context_fst: Fst) -> Fst:
    """Determinize the context FST, preserving path weights.

    Args:
        context_fst: Nondeterministic acceptor with start state 0

    Returns:
        Deterministic acceptor whose start state is 0 and accepting

    Raises:
        DeterminizationError: If OpenFST fails or the result has no usable
            start state
    """
    try:
        det_fst = pynini.determinize(context_fst)
    except pynini.FstOpError as e:
        raise DeterminizationError(f"Failed to determinize context FST: {e}") from e

    start_state = det_fst.start()
    if start_state != 0:
        raise DeterminizationError(
            f"Determinized context FST must start at state 0, got {start_state}")
    if det_fst.final(start_state) != pynini.Weight.one(det_fst.weight_type()):
        raise DeterminizationError("Start state of the context FST is not accepting")

    logger.debug("Determinized context FST: %d -> %d states",
                 context_fst.num_states(), det_fst.num_states())
    return det_fst
