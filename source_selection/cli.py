#!/usr/bin/env python3
"""
Command-line runner for source selection.

Reads a JSON array of ranked sources (``-`` for stdin), runs the selection
and prints either the synthesis prompt block or the SelectionResult JSON.

Exit codes: 0 ok, 2 invalid configuration or input.
"""

import argparse
import copy
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from .configs import DEFAULT_SELECTION_PIPELINE
from .core.errors import InvalidConfiguration, InvalidSourceData
from .formatting import format_sources_for_synthesis
from .selector import select_sources
from .similarity import LexicalSimilarity


def _read_json(path: str) -> Any:
    if path == "-":
        return json.load(sys.stdin)
    return json.loads(Path(path).expanduser().read_text(encoding="utf-8"))


def _build_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if args.config:
        loaded = _read_json(args.config)
        if not isinstance(loaded, dict):
            raise InvalidConfiguration(f"Config file {args.config} must contain a JSON object")
        overrides.update(loaded)
    if args.token_budget is not None:
        overrides["token_budget"] = args.token_budget
    if args.similarity_threshold is not None:
        overrides["semantic_similarity_threshold"] = args.similarity_threshold
    if args.min_score is not None:
        overrides["min_relevance_score"] = args.min_score
    if args.no_dedup:
        overrides["enable_semantic_dedup"] = False
    return overrides


def _build_similarity(args: argparse.Namespace):
    if args.similarity == "embedding":
        from .embeddings import EmbeddingSimilarity

        return EmbeddingSimilarity(model_name=args.model)
    return LexicalSimilarity()


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="source_selection", description="Select ranked sources for synthesis.")
    ap.add_argument("sources", type=str, help="JSON file with an array of ranked sources ('-' for stdin).")
    ap.add_argument("--config", type=str, default=None, help="JSON file with SelectionConfig overrides.")
    ap.add_argument("--token_budget", "--token-budget", dest="token_budget", type=int, default=None)
    ap.add_argument("--similarity_threshold", "--similarity-threshold", dest="similarity_threshold", type=float, default=None)
    ap.add_argument("--min_score", "--min-score", dest="min_score", type=float, default=None)
    ap.add_argument("--no_dedup", "--no-dedup", dest="no_dedup", action="store_true")
    ap.add_argument("--similarity", choices=["lexical", "embedding"], default="lexical")
    ap.add_argument("--model", type=str, default="sentence-transformers/all-MiniLM-L6-v2",
                    help="sentence-transformers model for --similarity embedding.")
    ap.add_argument("--json", action="store_true", help="Print the SelectionResult as JSON.")
    ap.add_argument("--summary", action="store_true", help="Print the step summary table to stderr.")
    ap.add_argument("--debug", action="store_true", help="Write a debug log under ./logs.")
    args = ap.parse_args(argv)

    pipeline = copy.deepcopy(DEFAULT_SELECTION_PIPELINE)
    pipeline["debug"] = args.debug
    pipeline["show_summary"] = args.summary

    if not args.debug:
        # Keep stdout clean for the prompt block; only warnings reach stderr
        logger.remove()
        logger.add(sys.stderr, level="WARNING")

    try:
        raw_sources = _read_json(args.sources)
        overrides = _build_overrides(args)
        result = select_sources(
            raw_sources,
            overrides,
            similarity=_build_similarity(args),
            pipeline=pipeline,
        )
    except (InvalidConfiguration, InvalidSourceData, json.JSONDecodeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.json:
        print(result.model_dump_json(indent=2, by_alias=True))
    else:
        print(format_sources_for_synthesis(result.selected_sources))
    return 0


if __name__ == "__main__":
    sys.exit(main())
