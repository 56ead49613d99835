"""Shared fixtures: fake clients for the LLM, embeddings, web and cargo."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding, Embeddings
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from rust_coder_rag_assistant import sandbox
from rust_coder_rag_assistant.app_config import Settings
from rust_coder_rag_assistant.errors import WebSearchError
from rust_coder_rag_assistant.resources import PipelineResources
from rust_coder_rag_assistant.vector_store import VectorStore


DIMENSIONS = 16


class FakeWebSearcher:
    """Records every query; returns canned text or raises for listed queries."""

    def __init__(self, pages: Optional[Dict[str, str]] = None, fail_on: tuple = (), default: str = "web text"):
        self.pages = pages or {}
        self.fail_on = fail_on
        self.default = default
        self.queries: List[str] = []

    async def search_and_scrape(self, query: str) -> str:
        self.queries.append(query)
        if any(marker in query for marker in self.fail_on):
            raise WebSearchError(f"search failed for {query}")
        return self.pages.get(query, self.default)


class CountingEmbeddings(Embeddings):
    """Deterministic embeddings that count calls and can be made to fail."""

    def __init__(self, size: int = DIMENSIONS, fail: bool = False):
        self.inner = DeterministicFakeEmbedding(size=size)
        self.fail = fail
        self.query_calls = 0
        self.document_calls = 0

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        self.document_calls += 1
        if self.fail:
            raise RuntimeError("embedding provider unavailable")
        return self.inner.embed_documents(texts)

    def embed_query(self, text: str) -> List[float]:
        self.query_calls += 1
        if self.fail:
            raise RuntimeError("embedding provider unavailable")
        return self.inner.embed_query(text)


class FakeProcess:
    """Stand-in for ``asyncio.subprocess.Process``."""

    def __init__(self, returncode: int = 0, stderr: bytes = b"", delay: float = 0.0):
        self._final_returncode = returncode
        self._stderr = stderr
        self._delay = delay
        self.returncode: Optional[int] = None
        self.killed = False

    async def communicate(self):
        if self._delay:
            await asyncio.sleep(self._delay)
        self.returncode = self._final_returncode
        return None, self._stderr

    def kill(self) -> None:
        self.killed = True
        self.returncode = -9

    async def wait(self) -> int:
        return self.returncode


class FakeCargo:
    """Replacement for ``asyncio.create_subprocess_exec`` that records each build."""

    def __init__(self, returncode: int = 0, stderr: bytes = b"", delay: float = 0.0, launch_error: Optional[OSError] = None):
        self.returncode = returncode
        self.stderr = stderr
        self.delay = delay
        self.launch_error = launch_error
        self.calls: List[dict] = []
        self.processes: List[FakeProcess] = []
        self.started = asyncio.Event()

    async def __call__(self, *command, cwd=None, **kwargs):
        workspace = Path(cwd)
        manifest = workspace / "Cargo.toml"
        main_rs = workspace / "src" / "main.rs"
        self.calls.append({
            "command": list(command),
            "new_session": kwargs.get("start_new_session", False),
            "cwd": workspace,
            "manifest": manifest.read_text(encoding="utf-8") if manifest.exists() else None,
            "main_rs": main_rs.read_text(encoding="utf-8") if main_rs.exists() else None,
        })
        self.started.set()
        if self.launch_error is not None:
            raise self.launch_error
        process = FakeProcess(self.returncode, self.stderr, self.delay)
        self.processes.append(process)
        return process


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        openai_api_key="test-key",
        embedding_dimensions=DIMENSIONS,
        vectorstore_path=str(tmp_path / "store"),
        sandbox_root=str(tmp_path / "sandboxes"),
        output_dir=str(tmp_path / "output"),
        build_timeout=30.0,
    )


@pytest.fixture
def fake_cargo(monkeypatch) -> Callable[..., FakeCargo]:
    def install(**kwargs) -> FakeCargo:
        cargo = FakeCargo(**kwargs)
        monkeypatch.setattr(asyncio, "create_subprocess_exec", cargo)
        monkeypatch.setattr(sandbox, "kill_process_group", lambda process: process.kill())
        return cargo
    return install


@pytest.fixture
def make_resources(test_settings):
    def build(
        planner_replies: Optional[List[str]] = None,
        writer_replies: Optional[List[str]] = None,
        web_searcher: Optional[FakeWebSearcher] = None,
        embeddings: Optional[Embeddings] = None,
        settings: Optional[Settings] = None,
    ) -> PipelineResources:
        settings = settings or test_settings
        embeddings = embeddings or CountingEmbeddings(settings.embedding_dimensions)
        store = VectorStore(settings.vectorstore_path, embeddings, settings.embedding_dimensions)
        store.ensure_collections()
        return PipelineResources(
            settings=settings,
            planner_llm=FakeListChatModel(responses=planner_replies or ['{"dependencies": []}']),
            writer_llm=FakeListChatModel(responses=writer_replies or ['{"dependencies": [], "code": ""}']),
            embeddings=embeddings,
            vector_store=store,
            web_searcher=web_searcher or FakeWebSearcher(),
        )
    return build


def sandbox_entries(settings: Settings) -> List[Path]:
    root = Path(settings.sandbox_root)
    return list(root.iterdir()) if root.exists() else []
