import asyncio
import json

import pytest
import toml

from conftest import FakeWebSearcher, sandbox_entries
from rust_coder_rag_assistant.errors import LlmProtocolError, ResearchFailure
from rust_coder_rag_assistant.nodes.result_formatter import NO_CODE_MESSAGE
from rust_coder_rag_assistant.orchestrator import (
    build_graph,
    process_query,
    route_after_code_writer,
    run_from_text,
    run_pipeline,
)
from rust_coder_rag_assistant.extractors import GeneratedArtifact


def artifact_reply(code, dependencies=()):
    return json.dumps({
        "dependencies": [{"name": name, "features": []} for name in dependencies],
        "code": code,
    })


def test_router_skips_build_for_empty_code():
    assert route_after_code_writer({"artifact": GeneratedArtifact(dependencies=[], code="")}) == "format_response"
    assert route_after_code_writer({}) == "format_response"
    assert route_after_code_writer({"artifact": GeneratedArtifact(dependencies=[], code="fn main() {}")}) == "validate_build"


async def test_empty_plan_still_writes_code(make_resources, fake_cargo):
    searcher = FakeWebSearcher()
    cargo = fake_cargo(returncode=0)
    resources = make_resources(
        planner_replies=['{"dependencies": []}'],
        writer_replies=[artifact_reply("fn main() { let mut v = vec![3, 1, 2]; v.sort(); }")],
        web_searcher=searcher,
    )

    state = await run_pipeline("sort a list of integers", resources)

    # only the retrieval search ran; research made no calls
    assert searcher.queries == ["sort a list of integers"]
    assert state["dossier"].is_empty
    assert len(cargo.calls) == 1
    assert state["response"].startswith("OK. AI-generated code compiled successfully.\n---\nfn main()")


async def test_planned_crates_flow_into_the_manifest(make_resources, fake_cargo):
    searcher = FakeWebSearcher()
    cargo = fake_cargo(returncode=0)
    resources = make_resources(
        planner_replies=['{"dependencies": ["left-pad"]}'],
        writer_replies=[artifact_reply("fn main(){}", ["left-pad"])],
        web_searcher=searcher,
    )

    response = await process_query("pad a string", resources)

    assert searcher.queries[1] == "crates.io rust crate left-pad latest API examples"
    manifest = toml.loads(cargo.calls[0]["manifest"])
    assert manifest["dependencies"] == {"left-pad": {"version": "*", "features": []}}
    assert response == "OK. AI-generated code compiled successfully.\n---\nfn main(){}"


async def test_build_failure_is_a_normal_response(make_resources, fake_cargo, test_settings):
    fake_cargo(returncode=101, stderr=b"error[E0308]: mismatched types")
    resources = make_resources(writer_replies=[artifact_reply("fn main() { let x: i32 = \"a\"; }")])

    response = await process_query("broken", resources)

    assert response == "FAIL. AI-generated code failed to compile.\n---\nErrors:\nerror[E0308]: mismatched types"
    assert sandbox_entries(test_settings) == []


async def test_malformed_writer_reply_fails_before_sandbox(make_resources, fake_cargo, test_settings):
    cargo = fake_cargo()
    resources = make_resources(writer_replies=["I am unable to help with that."])

    with pytest.raises(LlmProtocolError):
        await process_query("anything", resources)

    assert cargo.calls == []
    assert sandbox_entries(test_settings) == []


async def test_empty_code_returns_fixed_message(make_resources, fake_cargo):
    cargo = fake_cargo()
    resources = make_resources(writer_replies=[artifact_reply("")])

    state = await run_pipeline("anything", resources)

    assert state["response"] == NO_CODE_MESSAGE
    assert "outcome" not in state
    assert cargo.calls == []


async def test_research_failure_aborts_request(make_resources, fake_cargo):
    cargo = fake_cargo()
    resources = make_resources(
        planner_replies=['{"dependencies": ["serde"]}'],
        writer_replies=[artifact_reply("fn main(){}")],
        web_searcher=FakeWebSearcher(fail_on=(" serde ",)),
    )

    with pytest.raises(ResearchFailure):
        await process_query("parse json", resources)
    assert cargo.calls == []


async def test_retrieval_failure_does_not_fail_request(make_resources, fake_cargo):
    fake_cargo(returncode=0)
    resources = make_resources(
        writer_replies=[artifact_reply("fn main(){}")],
        web_searcher=FakeWebSearcher(fail_on=("hello",)),
    )
    state = await run_pipeline("hello world", resources)
    assert state["context_bundle"].by_label("web") == []
    assert state["response"].startswith("OK.")


async def test_concurrent_requests_get_separate_sandboxes(make_resources, fake_cargo, test_settings):
    cargo = fake_cargo(returncode=0, delay=0.05)
    resources = make_resources(
        planner_replies=['{"dependencies": []}'] * 2,
        writer_replies=[artifact_reply("fn main(){}")] * 2,
    )
    graph = build_graph(resources)

    responses = await asyncio.gather(
        process_query("first", resources, graph),
        process_query("second", resources, graph),
    )

    assert all(r.startswith("OK.") for r in responses)
    first, second = (call["cwd"] for call in cargo.calls)
    assert first != second
    assert sandbox_entries(test_settings) == []


def test_run_from_text_writes_cargo_project(make_resources, fake_cargo, tmp_path):
    fake_cargo(returncode=0)
    resources = make_resources(writer_replies=[artifact_reply('fn main() { println!("hi"); }', ["rand"])])
    output_dir = tmp_path / "project"

    response = run_from_text("say hi", str(output_dir), resources=resources)

    assert response.startswith("OK.")
    assert (output_dir / "src" / "main.rs").read_text(encoding="utf-8") == 'fn main() { println!("hi"); }'
    manifest = toml.loads((output_dir / "Cargo.toml").read_text(encoding="utf-8"))
    assert manifest["dependencies"] == {"rand": {"version": "*", "features": []}}


def test_run_from_text_writes_nothing_without_code(make_resources, fake_cargo, tmp_path):
    fake_cargo()
    resources = make_resources(writer_replies=[artifact_reply("")])
    output_dir = tmp_path / "project"

    assert run_from_text("say hi", str(output_dir), resources=resources) == NO_CODE_MESSAGE
    assert not output_dir.exists()
