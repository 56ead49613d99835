"""
Batch processing script for the Rust Coder RAG Assistant.

This script processes multiple requests from a CSV file, runs the pipeline
for each, and saves the results (plan, researched crates, generated code
and build verdict) to a new CSV.  A failing row records its error and the
batch continues.

Usage:
    python scripts/batch_process.py --input queries.csv --output results.csv
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

# Add parent directory to path to import rust_coder_rag_assistant
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rust_coder_rag_assistant.app_config import settings
from rust_coder_rag_assistant.orchestrator import build_graph, run_pipeline, save_artifact
from rust_coder_rag_assistant.resources import PipelineResources


def summarize_state(state: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten a final pipeline state into CSV columns."""
    context = state.get("context_bundle")
    plan = state.get("plan")
    dossier = state.get("dossier")
    artifact = state.get("artifact")
    outcome = state.get("outcome")
    code = artifact.code if artifact is not None else ""
    return {
        "error": "",
        "num_context_sections": len(context.sections) if context is not None else 0,
        "planned_crates": json.dumps(plan.dependencies if plan is not None else []),
        "researched_crates": json.dumps(list(dossier.entries) if dossier is not None else []),
        "manifest_dependencies": json.dumps(
            [dep.model_dump() for dep in artifact.dependencies] if artifact is not None else []
        ),
        "code_length": len(code),
        "code": code,
        "build_attempted": outcome is not None,
        "build_success": bool(outcome and outcome.success),
        "diagnostics": outcome.diagnostics if outcome is not None else "",
        "response": state.get("response", ""),
    }


def error_columns(exc: Exception) -> Dict[str, Any]:
    return {
        "error": f"{type(exc).__name__}: {exc}",
        "num_context_sections": 0,
        "planned_crates": "[]",
        "researched_crates": "[]",
        "manifest_dependencies": "[]",
        "code_length": 0,
        "code": "",
        "build_attempted": False,
        "build_success": False,
        "diagnostics": "",
        "response": "",
    }


async def _run_rows(
    df: pd.DataFrame,
    query_column: str,
    projects_dir: str | None,
) -> List[Dict[str, Any]]:
    resources = PipelineResources.from_settings(settings)
    graph = build_graph(resources)
    results: List[Dict[str, Any]] = []

    for idx, row in df.iterrows():
        query = str(row[query_column])
        query_id = row.get("query_id", f"query_{idx}")

        print(f"{'='*80}")
        print(f"Processing query {len(results) + 1}/{len(df)}: {query_id}")
        print(f"{'='*80}")
        print(f"Query: {query[:100]}..." if len(query) > 100 else f"Query: {query}")
        print()

        # Start with all input columns
        flat_result = row.to_dict()
        try:
            state = await run_pipeline(query, resources, graph)
            flat_result.update(summarize_state(state))

            artifact = state.get("artifact")
            if projects_dir and artifact is not None and not artifact.is_empty:
                save_artifact(artifact, str(Path(projects_dir) / str(query_id)), settings.rust_edition)

            if flat_result["build_success"]:
                print("✅ Compiled successfully")
            elif flat_result["build_attempted"]:
                print("❌ Build failed")
            else:
                print("⚠️  No code returned")
        except Exception as exc:
            print(f"❌ Pipeline error: {exc}")
            flat_result.update(error_columns(exc))
        print()
        results.append(flat_result)

    return results


def process_batch(
    input_csv: str,
    output_csv: str,
    projects_dir: str | None = None,
    query_column: str = "query",
) -> None:
    """Process a batch of queries from a CSV file.

    Parameters
    ----------
    input_csv : str
        Path to input CSV file with a column containing queries.
    output_csv : str
        Path to output CSV file where results will be saved.
    projects_dir : str or None, optional
        Directory where each generated cargo project will be saved.
    query_column : str, optional
        Name of the column containing queries. Default: "query".
    """
    print(f"📖 Reading queries from: {input_csv}")
    try:
        # Try UTF-8 first, then fall back to latin-1
        try:
            df = pd.read_csv(input_csv, encoding='utf-8')
        except UnicodeDecodeError:
            df = pd.read_csv(input_csv, encoding='latin-1')
    except Exception as exc:
        print(f"❌ Error reading CSV: {exc}", file=sys.stderr)
        return

    if query_column not in df.columns:
        print(f"❌ Column '{query_column}' not found in CSV.", file=sys.stderr)
        print(f"Available columns: {', '.join(df.columns)}", file=sys.stderr)
        return

    print(f"✅ Found {len(df)} queries to process\n")

    results = asyncio.run(_run_rows(df, query_column, projects_dir))

    print(f"{'='*80}")
    print(f"💾 Saving results to: {output_csv}")
    pd.DataFrame(results).to_csv(output_csv, index=False)
    print("✅ Batch processing complete!")
    print(f"{'='*80}\n")

    if not results:
        return
    compiled = sum(1 for r in results if r["build_success"])
    errored = sum(1 for r in results if r["error"])
    print("📊 Summary:")
    print(f"   Total queries: {len(results)}")
    print(f"   Compiled: {compiled}")
    print(f"   Failed to compile or no code: {len(results) - compiled - errored}")
    print(f"   Pipeline errors: {errored}")
    print(f"   Compile rate: {compiled/len(results)*100:.1f}%")
    print()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for batch processing."""
    parser = argparse.ArgumentParser(
        description="Batch process multiple Rust code requests from a CSV file."
    )
    parser.add_argument("--input", required=True, help="Path to input CSV file with queries.")
    parser.add_argument("--output", required=True, help="Path to output CSV file for results.")
    parser.add_argument(
        "--projects-dir",
        required=False,
        help="Directory where generated cargo projects will be saved.",
    )
    parser.add_argument(
        "--query-column",
        default="query",
        help="Name of the column containing queries (default: 'query').",
    )
    parser.add_argument("--debug", action="store_true", help="Enable verbose debug output.")

    args = parser.parse_args(argv)
    settings.debug = args.debug

    try:
        process_batch(
            input_csv=args.input,
            output_csv=args.output,
            projects_dir=args.projects_dir,
            query_column=args.query_column,
        )
        return 0
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
