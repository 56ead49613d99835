"""
Gradio interface for the Rust Coder RAG Assistant.

This app provides a web UI for the Rust Coder RAG Assistant, allowing users to:
- Describe a Rust program in natural language
- Select OpenAI models for the planner and the code writer
- View the generated code together with the cargo build verdict
- Upvote a compiling solution so it is reused as a golden example
- Add documentation text to the knowledge base
- Download the generated ``main.rs``

Deployment: Designed for Hugging Face Spaces with Gradio SDK.
"""

import dataclasses
import sys
import tempfile
import traceback
from pathlib import Path
from typing import Dict, Tuple

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

try:
    import gradio as gr
except ImportError:
    print("ERROR: gradio is not installed. Install with: pip install gradio")
    sys.exit(1)

# Load environment variables from .env file if it exists
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass  # python-dotenv not installed, skip

from rust_coder_rag_assistant.app_config import settings
from rust_coder_rag_assistant.feedback import process_feedback
from rust_coder_rag_assistant.ingestion import ingest_document
from rust_coder_rag_assistant.orchestrator import build_graph, run_pipeline
from rust_coder_rag_assistant.resources import PipelineResources


MODEL_CHOICES = ["gpt-4o", "gpt-4o-mini", "gpt-4.1", "gpt-4.1-mini"]

# Example prompts for quick testing
EXAMPLES = [
    ["Sort a list of integers and print the median.", "gpt-4o-mini", "gpt-4o"],
    ["Parse a JSON string into a struct with serde and print one of its fields.", "gpt-4o-mini", "gpt-4o"],
    ["Generate 10 random numbers with the rand crate and print their sum.", "gpt-4o-mini", "gpt-4o"],
    ["Count word frequencies in a text using a HashMap and print the top 5 words.", "gpt-4o-mini", "gpt-4o"],
]

# One set of clients (and one compiled graph) per configuration, shared by all sessions
_PIPELINES: Dict[Tuple[str, str, str], Tuple[PipelineResources, object]] = {}


def get_pipeline(api_key: str, planner_model: str, code_writer_model: str):
    """Return cached ``(resources, graph)`` for this configuration."""
    key = (api_key, planner_model, code_writer_model)
    if key not in _PIPELINES:
        run_settings = dataclasses.replace(
            settings,
            openai_api_key=api_key,
            planner_model=planner_model,
            code_writer_model=code_writer_model,
        )
        resources = PipelineResources.from_settings(run_settings)
        _PIPELINES[key] = (resources, build_graph(resources))
    return _PIPELINES[key]


def _error_message(e: Exception) -> str:
    error_msg = f"❌ Error: {str(e)}\n\n"
    if "api_key" in str(e).lower() or "authentication" in str(e).lower():
        error_msg += "Please check that your OpenAI API key is valid."
    else:
        error_msg += "Full traceback:\n" + traceback.format_exc()
    return error_msg


async def generate_code(
    query: str,
    api_key: str,
    planner_model: str,
    code_writer_model: str,
) -> Tuple[str, str, str]:
    """
    Generate a Rust program and validate it with cargo.

    Returns:
        Tuple of (code, status_message, response_text)
    """
    if not query or not query.strip():
        return "", "⚠️ Please describe the program you need.", ""

    api_key = (api_key or settings.openai_api_key or "").strip()
    if not api_key:
        return "", "⚠️ Please enter your OpenAI API key.", ""

    try:
        resources, graph = get_pipeline(api_key, planner_model, code_writer_model)
        state = await run_pipeline(query.strip(), resources, graph)
    except Exception as e:
        return "", _error_message(e), ""

    artifact = state.get("artifact")
    outcome = state.get("outcome")
    code = artifact.code if artifact is not None else ""
    if outcome is None:
        status = "⚠️ The model did not return any code."
    elif outcome.success:
        status = f"✅ Code compiled successfully with cargo {resources.settings.cargo_command} ({code_writer_model})"
    else:
        status = "❌ Code failed to compile. See the build output below."
    return code, status, state["response"]


async def upvote_solution(query: str, code: str, api_key: str, planner_model: str, code_writer_model: str) -> str:
    """Store the current solution as an approved answer."""
    if not code or not code.strip():
        return "⚠️ Generate a solution before upvoting."
    api_key = (api_key or settings.openai_api_key or "").strip()
    try:
        resources, _ = get_pipeline(api_key, planner_model, code_writer_model)
        await process_feedback(resources, query.strip(), code, upvote=True)
    except Exception as e:
        return _error_message(e)
    return "👍 Thanks! This solution will be used as an example for similar requests."


async def ingest_text(text: str, source: str, api_key: str, planner_model: str, code_writer_model: str) -> str:
    """Add documentation text to the knowledge base."""
    if not text or not text.strip():
        return "⚠️ Paste some documentation text first."
    api_key = (api_key or settings.openai_api_key or "").strip()
    try:
        resources, _ = get_pipeline(api_key, planner_model, code_writer_model)
        written = await ingest_document(resources, text, source=source.strip() or "ui")
    except Exception as e:
        return _error_message(e)
    return f"✅ Stored {written} chunk(s) in the knowledge base."


def create_interface():
    """Create and configure the Gradio interface."""

    # Custom CSS for better styling
    custom_css = """
    .gradio-container {
        max-width: 1200px !important;
    }
    .output-code {
        font-family: 'Monaco', 'Menlo', 'Consolas', monospace !important;
        font-size: 13px !important;
    }
    """

    with gr.Blocks(
        title="Rust Coder RAG Assistant",
        theme=gr.themes.Soft(),
        css=custom_css
    ) as demo:

        gr.Markdown("""
        # 🦀 Rust Coder RAG Assistant

        **Compiler-verified Rust code generation**

        Describe a program in plain English and get a complete `main.rs` that has been built with `cargo`.

        This assistant uses LangGraph to orchestrate a pipeline that:
        1. Gathers context from the web, the Rust documentation and previously approved solutions
        2. Plans which crates are needed and researches their latest APIs
        3. Generates the code and its `Cargo.toml` dependencies
        4. Builds the result in a throwaway sandbox and reports the verdict

        ---
        """)

        with gr.Row():
            with gr.Column(scale=1):
                gr.Markdown("### 🔑 Configuration")

                api_key = gr.Textbox(
                    label="OpenAI API Key",
                    type="password",
                    placeholder="sk-...",
                    info="Leave empty to use OPENAI_API_KEY from the environment"
                )

                gr.Markdown("### 🎯 Model Selection")

                planner_model = gr.Dropdown(
                    choices=MODEL_CHOICES,
                    value="gpt-4o-mini",
                    label="Dependency Planner",
                    info="Decides which crates are needed"
                )

                code_writer_model = gr.Dropdown(
                    choices=MODEL_CHOICES,
                    value="gpt-4o",
                    label="Code Writer",
                    info="Generates the final code (recommended: gpt-4o)"
                )

            with gr.Column(scale=2):
                gr.Markdown("### 📝 Request")

                query = gr.Textbox(
                    label="Describe the Rust program you need",
                    placeholder="Example: Read a CSV file and print the average of the second column.",
                    lines=6,
                )

                with gr.Row():
                    clear_btn = gr.Button("🗑️ Clear", variant="secondary", scale=1)
                    generate_btn = gr.Button("🚀 Generate Code", variant="primary", scale=3)

        gr.Markdown("### 📋 Example Prompts")

        gr.Examples(
            examples=EXAMPLES,
            inputs=[query, planner_model, code_writer_model],
            label=None,
        )

        gr.Markdown("---")
        gr.Markdown("### 💻 Generated Code")

        status = gr.Textbox(label="Status", interactive=False, lines=2)

        code_output = gr.Code(
            label="src/main.rs",
            lines=20,
            elem_classes=["output-code"]
        )

        build_output = gr.Textbox(label="Build Result", interactive=False, lines=8)

        with gr.Row():
            upvote_btn = gr.Button("👍 Upvote Solution", variant="secondary")
            download_btn = gr.DownloadButton(label="📥 Download main.rs", visible=False)

        with gr.Accordion("📚 Add Documentation to the Knowledge Base", open=False):
            ingest_source = gr.Textbox(label="Source", placeholder="e.g. https://docs.rs/serde")
            ingest_body = gr.Textbox(label="Documentation text", lines=8)
            ingest_btn = gr.Button("Ingest")

        # Event handlers
        async def on_generate(query, api_key, planner, writer):
            """Handle generate button click."""
            code, status_msg, response = await generate_code(query, api_key, planner, writer)

            # Show download button only if code was generated
            download_visible = bool(code and code.strip())

            temp_file = None
            if download_visible:
                temp_file = tempfile.NamedTemporaryFile(
                    mode='w',
                    suffix='.rs',
                    delete=False,
                    prefix='main_'
                )
                temp_file.write(code)
                temp_file.close()

            return (
                code,
                status_msg,
                response,
                gr.DownloadButton(visible=download_visible, value=temp_file.name if temp_file else None)
            )

        def on_clear():
            """Handle clear button click."""
            return "", "", "", gr.DownloadButton(visible=False)

        generate_btn.click(
            fn=on_generate,
            inputs=[query, api_key, planner_model, code_writer_model],
            outputs=[code_output, status, build_output, download_btn],
            api_name="generate"
        )

        upvote_btn.click(
            fn=upvote_solution,
            inputs=[query, code_output, api_key, planner_model, code_writer_model],
            outputs=[status],
            api_name="upvote"
        )

        ingest_btn.click(
            fn=ingest_text,
            inputs=[ingest_body, ingest_source, api_key, planner_model, code_writer_model],
            outputs=[status],
            api_name="ingest"
        )

        clear_btn.click(
            fn=on_clear,
            outputs=[code_output, status, build_output, download_btn]
        )

    return demo


if __name__ == "__main__":
    # Create and launch the interface
    demo = create_interface()

    # Launch with configuration suitable for HF Spaces
    demo.queue()  # Enable queuing for better handling of concurrent requests
    demo.launch(
        server_name="0.0.0.0",  # Listen on all interfaces (required for HF Spaces)
        server_port=7860,  # Default port for HF Spaces
        share=False,  # Don't create a public link (HF Spaces provides its own)
    )
