"""
Command-line interface for the Rust Coder RAG Assistant.

This module defines an entrypoint that can be invoked with
``python -m rust_coder_rag_assistant`` or ``rust-coder``.  The query is
taken from the command line or, when omitted, read interactively.  The
pipeline defined in :mod:`rust_coder_rag_assistant.orchestrator` is run,
the response is printed, and any generated project is written to the
configured output directory.
"""

from __future__ import annotations

import argparse
import sys

# Load environment variables from .env file if it exists
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass  # python-dotenv not installed, skip

from .orchestrator import run_from_text
from .app_config import CARGO_COMMANDS, settings


def main(argv: list[str] | None = None) -> int:
    """Parse command-line arguments and run the pipeline.

    Parameters
    ----------
    argv : list of str, optional
        List of arguments to parse.  Defaults to ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit status code: ``0`` on success, non-zero on error.
    """
    parser = argparse.ArgumentParser(
        description=(
            "Run the Rust Coder RAG Assistant to generate a compiling Rust "
            "program from a natural-language request."
        )
    )
    parser.add_argument(
        "query",
        nargs="?",
        help="The request. Read interactively when omitted.",
    )
    parser.add_argument(
        "--output-dir",
        required=False,
        help="Directory where the generated project will be saved.  Defaults to settings.output_dir.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode to show retrieved context, raw model replies and timings.",
    )
    parser.add_argument(
        "--planner-model",
        default=settings.planner_model,
        help=f"OpenAI model for the Dependency Planner. Default: {settings.planner_model}",
    )
    parser.add_argument(
        "--code-writer-model",
        default=settings.code_writer_model,
        help=f"OpenAI model for the Code Writer. Default: {settings.code_writer_model}",
    )
    parser.add_argument(
        "--cargo-command",
        choices=CARGO_COMMANDS,
        default=settings.cargo_command,
        help=f"Cargo subcommand used to validate the code. Default: {settings.cargo_command}",
    )

    args = parser.parse_args(argv)

    try:
        settings.planner_model = args.planner_model
        settings.code_writer_model = args.code_writer_model
        settings.cargo_command = args.cargo_command

        query = args.query
        if not query:
            print("="*80)
            print("Rust Coder RAG Assistant - Interactive Mode")
            print("="*80)
            print("\nDescribe the Rust program you need.")
            print("(Press Enter when finished)\n")
            print("Example: Read a CSV file and print the average of the second column.\n")
            print("Your request:")
            query = input().strip()

        if not query:
            print("Error: No query provided.", file=sys.stderr)
            return 1

        if args.debug:
            print("\n" + "="*80)
            print("Starting Rust code generation...")
            print("="*80)
            print(f"Dependency Planner: {settings.planner_model}")
            print(f"Code Writer: {settings.code_writer_model}")
            print(f"Validation: cargo {settings.cargo_command}")
            print("="*80 + "\n")

        response = run_from_text(query, args.output_dir, debug=args.debug)

        print("\n" + "="*80)
        print(response)

    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user.", file=sys.stderr)
        return 1
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
