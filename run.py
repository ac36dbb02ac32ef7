"""CLI entry point for the CV evaluator.

Usage:
    python run.py serve                               # API on 0.0.0.0:8080
    python run.py serve --port 9000 --reload          # Development server
    python run.py evaluate cv.pdf report.pdf          # One-off evaluation
    python run.py evaluate cv.pdf report.pdf --json   # Raw JSON result
    python run.py seed-context                        # Seed built-in guidelines
    python run.py seed-context --dir guidelines/      # ...plus *.txt files in a directory
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from cv_evaluator.config import get_evaluator_settings, get_settings
from cv_evaluator.errors import EvaluationError
from cv_evaluator.logging_config import setup_logging
from cv_evaluator.pipeline.factory import create_evaluation_pipeline, create_retriever
from cv_evaluator.retrieval_seeds import GUIDELINE_DOCUMENTS, load_guideline_dir
from cv_evaluator.utils.console import (
    console,
    print_error,
    print_evaluation_result,
    print_header,
    print_info,
    print_langsmith_status,
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="CV & project report evaluator",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0).")
    serve.add_argument("--port", type=int, default=8080, help="Port (default: 8080).")
    serve.add_argument(
        "--reload",
        action="store_true",
        default=False,
        help="Auto-reload on code changes (development only).",
    )

    evaluate = subparsers.add_parser("evaluate", help="Evaluate one CV and project report in-process.")
    evaluate.add_argument("cv", type=Path, help="Path to the CV (.pdf, .txt, .md).")
    evaluate.add_argument("report", type=Path, help="Path to the project report (.pdf, .txt, .md).")
    evaluate.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print the raw result JSON instead of the formatted summary.",
    )

    seed = subparsers.add_parser("seed-context", help="Load guideline documents into the vector store.")
    seed.add_argument(
        "--dir",
        type=Path,
        default=None,
        help="Directory of additional .txt guideline documents.",
    )

    return parser.parse_args(argv)


def serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run(
        "cv_evaluator.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )
    return 0


async def evaluate(args: argparse.Namespace) -> int:
    settings = get_settings()
    setup_logging(settings.log_level)

    if not args.json:
        print_header(str(args.cv), str(args.report), get_evaluator_settings().llm.model)
        print_langsmith_status(settings.langchain_tracing_v2)
        print_info("Running evaluation...")

    pipeline, retriever = create_evaluation_pipeline(settings)
    try:
        result = await pipeline.run(args.cv, args.report)
    except EvaluationError as exc:
        print_error(f"Evaluation failed ({exc.kind.value}): {exc}")
        return 1
    finally:
        await retriever.close()

    if args.json:
        print(result.model_dump_json(indent=2))
    else:
        print_evaluation_result(result)
    return 0


async def seed_context(args: argparse.Namespace) -> int:
    settings = get_settings()
    setup_logging(settings.log_level)

    documents = list(GUIDELINE_DOCUMENTS)
    if args.dir is not None:
        if not args.dir.is_dir():
            print_error(f"Not a directory: {args.dir}")
            return 1
        documents.extend(load_guideline_dir(args.dir))

    retriever = create_retriever(settings)
    try:
        collection_id = await retriever.ensure_collection()
        print_info(f"Collection: {collection_id}")
        for doc in documents:
            await retriever.add(doc.id, doc.content, doc.metadata)
            console.print(f"  [green]✓[/green] {doc.id}")
    except EvaluationError as exc:
        print_error(f"Seeding failed: {exc}")
        return 1
    finally:
        await retriever.close()

    console.print(f"\n[bold]Seeded {len(documents)} guideline documents.[/bold]")
    return 0


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    if args.command == "serve":
        code = serve(args)
    elif args.command == "evaluate":
        code = asyncio.run(evaluate(args))
    else:
        code = asyncio.run(seed_context(args))
    sys.exit(code)


if __name__ == "__main__":
    main()
