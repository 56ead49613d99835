import pytest

from rust_coder_rag_assistant import __main__ as cli
from rust_coder_rag_assistant.app_config import Settings
from rust_coder_rag_assistant.resources import PipelineResources


@pytest.fixture(autouse=True)
def restore_global_settings(monkeypatch):
    # the CLI writes its flags into the module-level settings
    for name in ("planner_model", "code_writer_model", "cargo_command", "debug"):
        monkeypatch.setattr(cli.settings, name, getattr(cli.settings, name))


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("OPENAI_MODEL_NAME", "gpt-test")
    monkeypatch.delenv("DEPENDENCY_PLANNER_MODEL", raising=False)
    monkeypatch.setenv("CARGO_COMMAND", "check")
    monkeypatch.setenv("EMBEDDING_DIMENSIONS", "768")
    monkeypatch.setenv("BUILD_TIMEOUT", "12.5")

    settings = Settings()

    assert settings.model_name == "gpt-test"
    assert settings.planner_model == "gpt-test"
    assert settings.cargo_command == "check"
    assert settings.embedding_dimensions == 768
    assert settings.build_timeout == 12.5


def test_invalid_cargo_command_rejected():
    with pytest.raises(ValueError):
        Settings(cargo_command="run")


def test_reload_from_env_keeps_debug(monkeypatch):
    settings = Settings()
    settings.debug = True
    monkeypatch.setenv("CODE_WRITER_MODEL", "gpt-reloaded")
    settings.reload_from_env()
    assert settings.code_writer_model == "gpt-reloaded"
    assert settings.debug is True


def test_resources_require_api_key():
    with pytest.raises(RuntimeError):
        PipelineResources.from_settings(Settings(openai_api_key=""))


def test_cli_prints_response(monkeypatch, capsys, tmp_path):
    calls = []

    def fake_run(query, output_dir=None, debug=False):
        calls.append((query, output_dir, debug))
        return "OK. AI-generated code compiled successfully.\n---\nfn main() {}"

    monkeypatch.setattr(cli, "run_from_text", fake_run)
    code = cli.main(["sort numbers", "--output-dir", str(tmp_path), "--cargo-command", "check"])

    assert code == 0
    assert calls == [("sort numbers", str(tmp_path), False)]
    assert "OK. AI-generated code compiled successfully." in capsys.readouterr().out
    assert cli.settings.cargo_command == "check"


def test_cli_reports_errors(monkeypatch, capsys):
    def failing_run(query, output_dir=None, debug=False):
        raise RuntimeError("OPENAI_API_KEY is not set")

    monkeypatch.setattr(cli, "run_from_text", failing_run)
    assert cli.main(["anything"]) == 1
    assert "Error: OPENAI_API_KEY is not set" in capsys.readouterr().err


def test_cli_rejects_empty_interactive_query(monkeypatch, capsys):
    monkeypatch.setattr("builtins.input", lambda: "   ")
    assert cli.main([]) == 1
    assert "No query provided" in capsys.readouterr().err
