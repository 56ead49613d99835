import pytest

from rust_coder_rag_assistant.errors import LlmProtocolError
from rust_coder_rag_assistant.extractors import (
    CrateDependency,
    DependencyPlan,
    GeneratedArtifact,
    extract_json_object,
    message_text,
    parse_model_reply,
    strip_code_fences,
)


def test_extract_tolerates_wrapper_text():
    raw = 'Here you go:\n{"dependencies": ["serde"]}\nLet me know if you need more!'
    assert extract_json_object(raw) == '{"dependencies": ["serde"]}'


def test_extract_spans_first_to_last_brace():
    raw = 'x {"a": {"b": 1}} y'
    assert extract_json_object(raw) == '{"a": {"b": 1}}'


@pytest.mark.parametrize("raw", ["", "no json at all", "} backwards {"])
def test_extract_without_brace_pair_fails(raw):
    with pytest.raises(LlmProtocolError):
        extract_json_object(raw)


def test_parse_is_idempotent():
    raw = 'Sure! {"dependencies": [{"name": "rand", "features": ["small_rng"]}], "code": "fn main() {}"}'
    first = parse_model_reply(raw, GeneratedArtifact)
    second = parse_model_reply(raw, GeneratedArtifact)
    assert first == second
    assert first.dependencies == [CrateDependency(name="rand", features=["small_rng"])]


def test_plan_dedupes_and_strips_names():
    plan = parse_model_reply('{"dependencies": ["serde", " serde ", "", "rand"]}', DependencyPlan)
    assert plan.dependencies == ["serde", "rand"]


def test_invalid_json_keeps_raw_reply():
    raw = '{"dependencies": [serde]}'
    with pytest.raises(LlmProtocolError) as info:
        parse_model_reply(raw, DependencyPlan)
    assert info.value.raw_text == raw
    assert raw in str(info.value)


def test_schema_mismatch_is_protocol_error():
    with pytest.raises(LlmProtocolError):
        parse_model_reply('{"dependencies": []}', GeneratedArtifact)


def test_blank_dependency_name_rejected():
    with pytest.raises(LlmProtocolError):
        parse_model_reply('{"dependencies": [{"name": "  "}], "code": "fn main() {}"}', GeneratedArtifact)


def test_artifact_without_dependencies_field_is_rejected():
    raw = '{"code": "use serde_json; fn main() {}"}'
    with pytest.raises(LlmProtocolError) as excinfo:
        parse_model_reply(raw, GeneratedArtifact)
    assert excinfo.value.raw_text == raw


def test_plan_under_wrong_key_is_rejected():
    with pytest.raises(LlmProtocolError):
        parse_model_reply('{"crates": ["serde", "tokio"]}', DependencyPlan)


def test_empty_plan_must_be_explicit():
    assert parse_model_reply('{"dependencies": []}', DependencyPlan).dependencies == []


def test_empty_code_is_valid_but_empty():
    artifact = parse_model_reply('{"dependencies": [], "code": ""}', GeneratedArtifact)
    assert artifact.is_empty


def test_fenced_code_is_unwrapped():
    artifact = GeneratedArtifact(dependencies=[], code="```rust\nfn main() {\n    println!(\"hi\");\n}\n```")
    assert artifact.code == 'fn main() {\n    println!("hi");\n}'


def test_unfenced_code_is_untouched():
    code = "fn main() {}\n"
    assert strip_code_fences(code) == code


def test_message_text_joins_content_blocks():
    class Message:
        content = [{"type": "text", "text": "{\"a\""}, {"type": "image"}, ": 1}"]

    assert message_text(Message()) == '{"a": 1}'
