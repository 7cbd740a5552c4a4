from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml
from dotenv import load_dotenv

from prdsmith.adapters.registry import adapter_factory_for
from prdsmith.config import config_loader, config_path, load_config
from prdsmith.dispatcher import Dispatcher
from prdsmith.errors import ConfigError
from prdsmith.pipeline_documents import DocumentPipeline
from prdsmith.utils.console import ConsoleOperator
from prdsmith.utils.io import read_text

DEFAULT_IDEA_TEMPLATE = """---
questions: 10
---
# Project Idea

Describe the product you want to build in a few sentences:
who it is for, what problem it solves, and what makes it different.
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prdsmith",
        description="Interview-driven PRD, TRD and TODO generator",
    )
    parser.add_argument("--config", type=Path, default=None, help="Config file path")
    sub = parser.add_subparsers(dest="command")

    config_cmd = sub.add_parser("config", help="Inspect the effective configuration")
    config_cmd.add_argument("action", choices=["show", "path"])

    parser.add_argument("--mode", choices=["live", "mock"], default="live")
    parser.add_argument("--idea", help="Project idea as a sentence")
    parser.add_argument("--idea-file", type=Path, help="Markdown file describing the idea")
    parser.add_argument("-q", "--questions", type=int, default=None, help="Number of questions (1-50)")
    parser.add_argument("--provider", choices=["openai", "gemini", "claude"], default=None)
    parser.add_argument("--output-dir", type=Path, default=None)
    parser.add_argument("--skip-trd", action="store_true", help="Generate only the PRD")
    parser.add_argument("--skip-todo", action="store_true", help="Generate PRD and TRD only")
    parser.add_argument("--log", action="store_true", default=None, help="Write API audit logs")
    parser.add_argument("-v", "--verbose", action="store_true", default=None)
    return parser


def _parse_frontmatter(content: str) -> Tuple[Dict, str]:
    if not content.startswith("---"):
        return {}, content
    parts = content.split("---", 2)
    if len(parts) < 3:
        return {}, content
    try:
        meta = yaml.safe_load(parts[1].strip()) or {}
    except yaml.YAMLError:
        meta = {}
    if not isinstance(meta, dict):
        meta = {}
    return meta, parts[2].lstrip("\n")


def _resolve_idea(args: argparse.Namespace) -> Tuple[Optional[str], Dict]:
    if args.idea:
        return args.idea, {}
    if args.idea_file:
        if not args.idea_file.exists():
            args.idea_file.parent.mkdir(parents=True, exist_ok=True)
            args.idea_file.write_text(DEFAULT_IDEA_TEMPLATE, encoding="utf-8")
            print(f"Idea template created at {args.idea_file}. Please edit it and run again.")
            return None, {}
        meta, body = _parse_frontmatter(read_text(args.idea_file))
        return body, meta
    if not sys.stdin.isatty():
        return sys.stdin.read(), {}
    try:
        return input("Describe your project idea: "), {}
    except EOFError:
        return None, {}


def _show_config(args: argparse.Namespace) -> int:
    if args.action == "path":
        print(config_path(args.config))
        return 0
    config = load_config(args.config)
    sections = {
        name: {key: ("***" if key == "api_key" and value else value) for key, value in section.items()}
        for name, section in config.sections.items()
    }
    print(
        json.dumps(
            {
                "source": str(config.source),
                "provider": config.provider.value,
                **sections,
                "app": {key: str(value) for key, value in vars(config.app).items()},
            },
            indent=2,
        )
    )
    return 0


def run(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    load_dotenv()

    try:
        if args.command == "config":
            return _show_config(args)

        idea, meta = _resolve_idea(args)
        if not idea or not idea.strip():
            print("No project idea given.", file=sys.stderr)
            return 1

        loader = config_loader(
            args.config,
            provider=args.provider,
            log=args.log,
            verbose=args.verbose,
            output_dir=args.output_dir,
            skip_trd=args.skip_trd or bool(meta.get("skip_trd")),
            skip_todo=args.skip_todo or bool(meta.get("skip_todo")),
        )
        loader()

        questions = args.questions if args.questions is not None else meta.get("questions")
        if questions is not None:
            try:
                questions = int(questions)
            except (TypeError, ValueError):
                print(f"Invalid question count: {questions!r}", file=sys.stderr)
                return 2
            if not 1 <= questions <= 50:
                print("--questions must be between 1 and 50.", file=sys.stderr)
                return 2

        operator = ConsoleOperator()
        dispatcher = Dispatcher(adapter_factory=adapter_factory_for(args.mode), operator=operator)
        # Piped ideas have no one to review the answers.
        review = sys.stdin.isatty() or bool(args.idea or args.idea_file)
        pipeline = DocumentPipeline(dispatcher, loader, operator, review_answers=review)
        written = pipeline.run(idea, questions)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nInterrupted; no files were written.", file=sys.stderr)
        return 130

    print("Generated files:")
    for path in written:
        print(f"  - {path}")
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
