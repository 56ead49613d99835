#!/usr/bin/env python
"""
Build the knowledge-base vector store from Rust documentation.

This script automates the process of:
1. Cloning a documentation repository from GitHub (or reading a local directory)
2. Extracting text from markdown and plain-text files
3. Generating OpenAI embeddings
4. Upserting the chunks into the ``knowledge_base`` FAISS collection

Usage:
    rust-coder-build-store
    rust-coder-build-store --source path/to/docs
    rust-coder-build-store --repo https://github.com/rust-lang/book.git
"""

from __future__ import annotations

import argparse
import asyncio
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

# Load environment variables from .env file if it exists
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass  # python-dotenv not installed, skip

from .app_config import settings
from .ingestion import ingest_document
from .resources import PipelineResources
from .vector_store import KNOWLEDGE_BASE_COLLECTION


DEFAULT_REPO = "https://github.com/rust-lang/rust-by-example.git"
DOC_PATTERNS = ("**/*.md", "**/*.txt")
MIN_DOC_LENGTH = 100


def clone_repo(temp_dir: Path, repo_url: str, branch: Optional[str] = None) -> Path:
    """Shallow-clone ``repo_url`` into ``temp_dir`` and return the checkout path."""
    print(f"Cloning {repo_url}...")
    repo_path = temp_dir / "docs_repo"
    command = ["git", "clone", "--depth", "1"]
    if branch:
        command += ["--branch", branch]
    command += [repo_url, str(repo_path)]
    try:
        subprocess.run(command, check=True, capture_output=True, text=True)
    except subprocess.CalledProcessError as e:
        raise RuntimeError(f"Error cloning repository: {e.stderr.strip()}") from e
    except FileNotFoundError as e:
        raise RuntimeError("git command not found. Please install git.") from e
    print(f"  Successfully cloned to {repo_path}")
    return repo_path


def extract_docs(root: Path) -> List[Dict[str, str]]:
    """Collect markdown and text files under ``root``.

    Files shorter than ``MIN_DOC_LENGTH`` characters are skipped, as are
    files that cannot be decoded.
    """
    print("\nExtracting documentation...")
    documents: List[Dict[str, str]] = []
    files = sorted({path for pattern in DOC_PATTERNS for path in root.glob(pattern) if path.is_file()})
    for path in files:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            print(f"  Warning: Could not read {path.name}: {e}")
            continue
        if len(content) < MIN_DOC_LENGTH:
            continue
        documents.append({"source": str(path.relative_to(root)), "content": content})
    print(f"  Extracted {len(documents)} files")
    return documents


async def ingest_documents(resources: PipelineResources, documents: List[Dict[str, str]]) -> int:
    total = 0
    for doc in documents:
        written = await ingest_document(resources, doc["content"], source=doc["source"])
        print(f"  Ingested {doc['source']} ({written} chunks)")
        total += written
    return total


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Build the Rust documentation vector store")
    parser.add_argument(
        "--source",
        help="Local directory of documentation to ingest instead of cloning a repository",
    )
    parser.add_argument(
        "--repo",
        default=DEFAULT_REPO,
        help=f"Git repository to clone (default: {DEFAULT_REPO})",
    )
    parser.add_argument("--branch", help="Branch or tag to clone")
    parser.add_argument(
        "--output",
        help=f"Vector store directory (default: {settings.vectorstore_path})",
    )
    parser.add_argument("--debug", action="store_true", help="Print per-batch progress")

    args = parser.parse_args(argv)

    if args.output:
        settings.vectorstore_path = args.output
    settings.debug = args.debug

    print("="*80)
    print("RUST DOCUMENTATION VECTOR STORE BUILDER")
    print("="*80)
    print(f"Source: {args.source or args.repo}")
    print(f"Output directory: {settings.vectorstore_path}")
    print(f"Embedding model: {settings.embedding_model} ({settings.embedding_dimensions} dims)")
    print("="*80)

    temp_dir: Optional[Path] = None
    try:
        resources = PipelineResources.from_settings(settings)

        if args.source:
            root = Path(args.source)
            if not root.is_dir():
                print(f"Error: {root} is not a directory.", file=sys.stderr)
                return 1
        else:
            temp_dir = Path(tempfile.mkdtemp())
            root = clone_repo(temp_dir, args.repo, args.branch)

        documents = extract_docs(root)
        if not documents:
            print("Error: No documentation files found.", file=sys.stderr)
            return 1

        total = asyncio.run(ingest_documents(resources, documents))

        print("\nStatistics:")
        print(f"  Total documentation files: {len(documents)}")
        print(f"  Total chunks: {total}")
        print(
            f"  Points in {KNOWLEDGE_BASE_COLLECTION}: "
            f"{resources.vector_store.count(KNOWLEDGE_BASE_COLLECTION)}"
        )
        print(f"  Location: {Path(settings.vectorstore_path).absolute()}\n")
    except KeyboardInterrupt:
        print("\n\nCancelled by user.", file=sys.stderr)
        return 1
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        if temp_dir is not None:
            shutil.rmtree(temp_dir, ignore_errors=True)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
