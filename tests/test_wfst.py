"""Tests for WFST modules."""

import pytest
import pynini

from context_bias.config import ContextConfig
from context_bias.errors import DeterminizationError
from context_bias.vocab import create_symbol_table
from context_bias.wfst.build_context import (
    ESCAPE_LABEL,
    BuildStats,
    build_context_fst,
    token_score,
)
from context_bias.wfst.determinize import determinize_context_fst
from context_bias.wfst.walk import CompiledGraph, ContextStep, GraphWalker


UNITS = ["▁hello", "▁world", "▁hi", "你好", "世界", "▁"]


def compile_phrases(phrases, symbol_table, config):
    context_fst = build_context_fst(phrases, symbol_table, config)
    return GraphWalker(CompiledGraph.from_fst(determinize_context_fst(context_fst)))


class TestTokenScore:
    """Test cases for per-token bonus scores."""

    def test_alpha_tokens_are_flat(self):
        """Test that alphabetic tokens ignore their length."""
        config = ContextConfig(context_score=3.0, incremental_context_score=1.0)

        assert token_score("hello", 0, config) == pytest.approx(3.0)
        assert token_score("▁hello", 2, config) == pytest.approx(5.0)

    def test_other_tokens_scale_with_length(self):
        """Test that CJK tokens are scaled by codepoint length."""
        config = ContextConfig(context_score=3.0, incremental_context_score=1.0)

        assert token_score("你好", 0, config) == pytest.approx(6.0)
        assert token_score("你好", 1, config) == pytest.approx(8.0)

    def test_non_decreasing_in_position(self):
        """Test that scores never shrink along a phrase."""
        config = ContextConfig(context_score=2.0, incremental_context_score=0.5)
        scores = [token_score("▁hi", i, config) for i in range(5)]

        assert scores == sorted(scores)


class TestContextFstBuilding:
    """Test cases for the nondeterministic context FST."""

    def setup_method(self):
        self.symbol_table = create_symbol_table(UNITS)
        self.config = ContextConfig(context_score=3.0, incremental_context_score=1.0)

    def test_start_state_is_final(self):
        """Test that state 0 is start and final even without phrases."""
        context_fst = build_context_fst([], self.symbol_table, self.config)

        assert context_fst.num_states() == 1
        assert context_fst.start() == 0
        assert context_fst.final(0) == pynini.Weight.one(context_fst.weight_type())

    def test_phrase_chain(self):
        """Test the chain and escape arc built for a two-token phrase."""
        context_fst = build_context_fst(["hello world"], self.symbol_table, self.config)

        assert context_fst.num_states() == 2

        start_arcs = list(context_fst.arcs(0))
        assert len(start_arcs) == 1
        assert start_arcs[0].ilabel == self.symbol_table.find("▁hello")
        assert start_arcs[0].nextstate == 1
        assert float(start_arcs[0].weight) == pytest.approx(3.0)

        inner_arcs = list(context_fst.arcs(1))
        assert len(inner_arcs) == 2
        word_arc, escape_arc = inner_arcs
        assert word_arc.ilabel == self.symbol_table.find("▁world")
        assert word_arc.nextstate == 0
        assert float(word_arc.weight) == pytest.approx(4.0)
        assert escape_arc.ilabel == ESCAPE_LABEL
        assert escape_arc.nextstate == 0
        assert float(escape_arc.weight) == pytest.approx(-3.0)

    def test_escape_accumulates_prefix(self):
        """Test that escape arcs cancel the whole prefix score."""
        context_fst = build_context_fst(["你好 hello world"], self.symbol_table, self.config)

        # 你好 -> 6, ▁hello -> 4, ▁world -> 5
        escapes = {}
        for state in range(context_fst.num_states()):
            for arc in context_fst.arcs(state):
                if arc.ilabel == ESCAPE_LABEL:
                    escapes[state] = float(arc.weight)

        assert sorted(escapes.values()) == pytest.approx([-10.0, -6.0])

    def test_skip_policy(self):
        """Test length, count and OOV filtering."""
        config = ContextConfig(max_contexts=2, max_context_length=5)
        stats = BuildStats()

        build_context_fst(
            ["hello world", "  ", "hi zz", "hi", "hello", "世界"],
            self.symbol_table, config, stats,
        )

        assert stats.too_long == 1
        assert stats.empty == 1
        assert stats.oov == 1
        assert stats.accepted == 1
        assert stats.truncated


class TestDeterminize:
    """Test cases for determinization."""

    def setup_method(self):
        self.symbol_table = create_symbol_table(UNITS)
        self.config = ContextConfig()

    def test_deterministic_result(self):
        """Test that each state has at most one arc per label."""
        context_fst = build_context_fst(
            ["hello world", "hello", "hi", "你好世界"], self.symbol_table, self.config)

        det_fst = determinize_context_fst(context_fst)

        assert det_fst.start() == 0
        assert det_fst.final(0) == pynini.Weight.one(det_fst.weight_type())
        for state in range(det_fst.num_states()):
            labels = [arc.ilabel for arc in det_fst.arcs(state)]
            assert len(labels) == len(set(labels))

    def test_shared_prefix_is_merged(self):
        """Test that phrases with a common first token share one arc."""
        context_fst = build_context_fst(
            ["hello world", "hello hi"], self.symbol_table, self.config)

        det_fst = determinize_context_fst(context_fst)

        assert len(list(det_fst.arcs(0))) == 1

    def test_empty_fst_fails(self):
        """Test that an FST without start state is rejected."""
        with pytest.raises(DeterminizationError):
            determinize_context_fst(pynini.Fst())


class TestGraphWalker:
    """Test cases for single-step lookup."""

    def setup_method(self):
        self.symbol_table = create_symbol_table(UNITS)
        self.config = ContextConfig(context_score=3.0, incremental_context_score=1.0)
        self.hello = self.symbol_table.find("▁hello")
        self.world = self.symbol_table.find("▁world")
        self.hi = self.symbol_table.find("▁hi")

    def test_empty_walker(self):
        """Test that a walker without graph never matches."""
        walker = GraphWalker()

        assert walker.is_empty
        assert walker.next_state(0, self.hello) == ContextStep(0, 0.0, False, False)
        assert walker.next_state(3, self.hello) == ContextStep(0, 0.0, False, False)

    def test_full_match(self):
        """Test walking a complete phrase."""
        walker = compile_phrases(["hello world"], self.symbol_table, self.config)

        first = walker.next_state(0, self.hello)
        assert first.next_state != 0
        assert first.score_delta == pytest.approx(3.0)
        assert first.is_start_boundary
        assert not first.is_end_boundary

        second = walker.next_state(first.next_state, self.world)
        assert second.next_state == 0
        assert second.score_delta == pytest.approx(4.0)
        assert not second.is_start_boundary
        assert second.is_end_boundary

    def test_failed_continuation_cancels_prefix(self):
        """Test that the escape score gives back the prefix bonus."""
        walker = compile_phrases(["hello hello world"], self.symbol_table, self.config)

        steps = walker.walk([self.hello, self.hello, self.hi])

        assert steps[-1] == ContextStep(0, pytest.approx(-7.0), False, False)
        assert sum(step.score_delta for step in steps) == pytest.approx(0.0)

    def test_fallback_to_start_state(self):
        """Test that a fresh match is credited on top of the escape score."""
        walker = compile_phrases(["hello world", "hi"], self.symbol_table, self.config)

        first = walker.next_state(0, self.hello)
        step = walker.next_state(first.next_state, self.hi)

        assert step.next_state == 0
        assert step.score_delta == pytest.approx(0.0)
        assert not step.is_start_boundary
        assert step.is_end_boundary

    def test_fallback_into_phrase(self):
        """Test that the fallback can start another multi-token phrase."""
        walker = compile_phrases(["hello world", "hi hi"], self.symbol_table, self.config)

        first = walker.next_state(0, self.hello)
        step = walker.next_state(first.next_state, self.hi)

        assert step.next_state not in (0, first.next_state)
        assert step.score_delta == pytest.approx(0.0)
        assert not step.is_end_boundary

    def test_nested_phrase_ends(self):
        """Test that a phrase which is a prefix of another ends early."""
        walker = compile_phrases(["hello world", "hello"], self.symbol_table, self.config)

        first = walker.next_state(0, self.hello)
        assert first.next_state != 0
        assert first.is_start_boundary
        assert first.is_end_boundary

        second = walker.next_state(first.next_state, self.world)
        assert second.next_state == 0
        assert second.score_delta == pytest.approx(4.0)
        assert second.is_end_boundary

    def test_no_match_from_start(self):
        """Test an unrelated token at the start state."""
        walker = compile_phrases(["hello world"], self.symbol_table, self.config)

        assert walker.next_state(0, self.hi) == ContextStep(0, 0.0, False, False)

    def test_lookup_is_idempotent(self):
        """Test that repeated lookups agree."""
        walker = compile_phrases(["hello world"], self.symbol_table, self.config)

        assert walker.next_state(0, self.hello) == walker.next_state(0, self.hello)

    def test_invalid_state(self):
        """Test that unknown states are rejected."""
        walker = compile_phrases(["hello world"], self.symbol_table, self.config)

        with pytest.raises(ValueError):
            walker.next_state(len(walker.graph), self.hello)
        with pytest.raises(ValueError):
            walker.next_state(-1, self.hello)

    def test_compiled_start_state(self):
        """Test that the compiled start state is accepting."""
        walker = compile_phrases(["hello world", "你好"], self.symbol_table, self.config)

        assert walker.graph.states[0].is_final
        assert walker.graph.states[0].escape_score is None
