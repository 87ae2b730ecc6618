"""Exceptions raised while building context graphs."""


class ContextGraphError(RuntimeError):
    """Base class for unrecoverable context graph failures."""


class DeterminizationError(ContextGraphError):
    """The context automaton could not be determinized."""
