import importlib.util
from pathlib import Path

import pytest

from rust_coder_rag_assistant.vector_store import APPROVED_SOLUTIONS_COLLECTION

pytest.importorskip("gradio")

APP_PATH = Path(__file__).resolve().parents[1] / "app.py"


@pytest.fixture
def app_module():
    spec = importlib.util.spec_from_file_location("rust_coder_app", APP_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


async def test_upvote_stores_solution(app_module, make_resources, monkeypatch):
    resources = make_resources()
    monkeypatch.setattr(app_module, "get_pipeline", lambda *args: (resources, None))

    message = await app_module.upvote_solution(
        " print hello ", 'fn main() { println!("hello"); }', "test-key", "gpt-4o-mini", "gpt-4o"
    )

    assert message.startswith("👍")
    assert resources.vector_store.count(APPROVED_SOLUTIONS_COLLECTION) == 1


async def test_upvote_without_code_stores_nothing(app_module, make_resources, monkeypatch):
    resources = make_resources()
    monkeypatch.setattr(app_module, "get_pipeline", lambda *args: (resources, None))

    message = await app_module.upvote_solution("print hello", "  ", "test-key", "gpt-4o-mini", "gpt-4o")

    assert message.startswith("⚠️")
    assert resources.vector_store.count(APPROVED_SOLUTIONS_COLLECTION) == 0
