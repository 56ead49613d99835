"""
Configuration management for the Rust Coder RAG Assistant.

This module defines a simple dataclass, :class:`Settings`, that holds
configuration values for the pipeline.  These values can be overridden
via environment variables or programmatically at runtime.  A global
instance, :data:`settings`, is created on import for convenience; the
pipeline itself receives its settings explicitly through
:class:`~rust_coder_rag_assistant.resources.PipelineResources`.

The following configuration options are supported:

``model_name``
    Default chat model used when no stage-specific model is given.
    Override via the ``OPENAI_MODEL_NAME`` environment variable.

``openai_api_key``
    Your OpenAI API key, used by both the chat models and the embedding
    model.  Override via the ``OPENAI_API_KEY`` environment variable.

``embedding_model`` / ``embedding_dimensions``
    Embedding model and its output dimensionality.  The dimensionality
    must match the vector store exactly or every search and write fails.

``vectorstore_path``
    Directory holding the two FAISS collections (``knowledge_base`` and
    ``approved_solutions``).  Override via ``VECTORSTORE_PATH``.

``cargo_command``
    ``"build"`` (default) resolves and compiles every dependency, which
    catches missing crates and type errors.  ``"check"`` skips code
    generation and is faster.  Override via ``CARGO_COMMAND``.
"""

from dataclasses import dataclass, field
import os

# Load environment variables from .env file if it exists
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass  # python-dotenv not installed, skip


CARGO_COMMANDS = ("build", "check")


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


@dataclass
class Settings:
    """Container for configuration values.

    Attributes
    ----------
    model_name : str
        Identifier of the default OpenAI chat model.
    planner_model : str
        Model used by the Dependency Planner (first LLM pass).  Falls back
        to ``model_name`` when ``DEPENDENCY_PLANNER_MODEL`` is unset.
    code_writer_model : str
        Model used by the Code Writer (second LLM pass).
    openai_api_key : str
        Secret API key used to authenticate with the OpenAI API.
    embedding_model : str
        OpenAI embedding model used for queries and ingested chunks.
    embedding_dimensions : int
        Fixed dimensionality of every vector (384 by default).
    vectorstore_path : str
        Directory where the FAISS collections are persisted.
    knowledge_top_k : int
        Number of knowledge-base chunks added to the context.
    solutions_top_k : int
        Number of approved solutions added to the context.
    web_results : int
        Number of search results whose pages are scraped.
    web_timeout : float
        Timeout in seconds for each search or page request.
    research_index : str
        Prefix of every dependency research query.
    cargo_binary : str
        Name or path of the ``cargo`` executable.
    cargo_command : str
        ``"build"`` or ``"check"``.
    rust_edition : str
        Edition written into the sandbox manifest.
    sandbox_root : str
        Parent directory for sandbox workspaces.  Empty means the system
        temporary directory.
    build_timeout : float
        Seconds before a running build is killed.  ``0`` disables it.
    output_dir : str
        Directory where the CLI writes generated projects.
    debug : bool
        Whether to print verbose debug output.  Set at runtime via the
        ``--debug`` CLI flag.
    """

    model_name: str = field(default_factory=lambda: os.getenv("OPENAI_MODEL_NAME", "gpt-4o-mini"))
    planner_model: str = field(
        default_factory=lambda: os.getenv(
            "DEPENDENCY_PLANNER_MODEL", os.getenv("OPENAI_MODEL_NAME", "gpt-4o-mini")
        )
    )
    code_writer_model: str = field(default_factory=lambda: os.getenv("CODE_WRITER_MODEL", "gpt-4o"))
    openai_api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    embedding_model: str = field(default_factory=lambda: os.getenv("EMBEDDING_MODEL", "text-embedding-3-small"))
    embedding_dimensions: int = field(default_factory=lambda: _env_int("EMBEDDING_DIMENSIONS", 384))
    vectorstore_path: str = field(
        default_factory=lambda: os.getenv("VECTORSTORE_PATH", "./data/processed/rust_coder_vectorstore")
    )
    knowledge_top_k: int = field(default_factory=lambda: _env_int("KNOWLEDGE_TOP_K", 2))
    solutions_top_k: int = field(default_factory=lambda: _env_int("SOLUTIONS_TOP_K", 1))
    web_results: int = field(default_factory=lambda: _env_int("WEB_SEARCH_RESULTS", 2))
    web_timeout: float = field(default_factory=lambda: _env_float("WEB_SEARCH_TIMEOUT", 10.0))
    research_index: str = field(default_factory=lambda: os.getenv("RESEARCH_INDEX", "crates.io rust crate"))
    cargo_binary: str = field(default_factory=lambda: os.getenv("CARGO_BINARY", "cargo"))
    cargo_command: str = field(default_factory=lambda: os.getenv("CARGO_COMMAND", "build"))
    rust_edition: str = field(default_factory=lambda: os.getenv("RUST_EDITION", "2024"))
    sandbox_root: str = field(default_factory=lambda: os.getenv("SANDBOX_ROOT", ""))
    build_timeout: float = field(default_factory=lambda: _env_float("BUILD_TIMEOUT", 600.0))
    output_dir: str = field(default_factory=lambda: os.getenv("OUTPUT_DIR", "./rust_coder_output"))
    debug: bool = False  # Set at runtime, not from environment

    def __post_init__(self) -> None:
        if self.cargo_command not in CARGO_COMMANDS:
            raise ValueError(
                f"cargo_command must be one of {CARGO_COMMANDS}, got {self.cargo_command!r}"
            )

    def reload_from_env(self):
        """Reload settings from environment variables.

        Useful when environment variables are set after the module is imported,
        such as in notebooks.  The runtime ``debug`` flag is preserved.
        """
        fresh = Settings()
        for name in self.__dataclass_fields__:
            if name != "debug":
                setattr(self, name, getattr(fresh, name))


# A singleton instance for easy access throughout the package
settings = Settings()
