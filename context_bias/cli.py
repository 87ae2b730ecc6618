"""Command line tool to inspect context biasing.

Builds a context graph from a units file and a phrase file, then walks each
given text token by token and prints the bonus collected at every step.
"""

import argparse
import logging
from dataclasses import replace
from typing import List, Optional

from .config import ContextConfig
from .context_graph import ContextGraph, read_contexts
from .tokenizer import split_to_tokens
from .vocab import load_symbol_table


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="context_bias",
        description="Score texts against a context biasing graph.",
    )
    p.add_argument("--units", required=True, help="Units file: token id per line")
    p.add_argument("--context-path", required=True, help="Phrase file: one phrase per line")
    p.add_argument("--config", default=None, help="Path to ContextConfig JSON")
    p.add_argument("--context-score", type=float, default=None)
    p.add_argument("--incremental-context-score", type=float, default=None)
    p.add_argument("--max-contexts", type=int, default=None)
    p.add_argument("--max-context-length", type=int, default=None)
    p.add_argument("--log-level", default="INFO", help="Logging level (e.g., INFO, DEBUG)")
    p.add_argument("texts", nargs="*", help="Texts to score")
    return p


def load_config(args: argparse.Namespace) -> ContextConfig:
    config = ContextConfig.from_json(args.config) if args.config else ContextConfig()
    overrides = {
        "context_score": args.context_score,
        "incremental_context_score": args.incremental_context_score,
        "max_contexts": args.max_contexts,
        "max_context_length": args.max_context_length,
    }
    return replace(config, **{k: v for k, v in overrides.items() if v is not None})


def score_text(graph: ContextGraph, text: str) -> float:
    """Walk `text` through the graph, printing one line per token.

    Returns:
        Total bonus collected over the text
    """
    tokens, _ = split_to_tokens(text, graph.symbol_table)
    token_ids = [graph.symbol_table.find(token) for token in tokens]

    total = 0.0
    for token, step in zip(tokens, graph.walker.walk(token_ids)):
        total += step.score_delta
        print(f"{token}\t{step.next_state}\t{step.score_delta:+.3f}\t"
              f"{int(step.is_start_boundary)}\t{int(step.is_end_boundary)}")
    print(f"total\t{total:+.3f}")
    return total


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    try:
        config = load_config(args)
    except ValueError as e:
        logging.getLogger(__name__).error("Invalid context config: %s", e)
        return 1

    symbol_table = load_symbol_table(args.units)
    graph = ContextGraph(config)
    graph.build_context_graph(read_contexts(args.context_path), symbol_table)

    for text in args.texts:
        print(f"# {text}")
        score_text(graph, text)
    return 0
