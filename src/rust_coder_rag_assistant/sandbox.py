"""
Sandboxed build validation.

This module is the correctness oracle of the pipeline.  For one
:class:`~rust_coder_rag_assistant.extractors.GeneratedArtifact` it:

1. creates a fresh, uniquely named, empty working directory,
2. writes a minimal ``Cargo.toml`` listing exactly the artifact's
   dependencies (each pinned to ``"*"`` with its features verbatim),
3. writes the artifact's source as ``src/main.rs``,
4. runs ``cargo build`` (or ``cargo check``) inside that directory, and
5. removes the directory on every exit path, including cancellation.

On timeout or cancellation the whole process group of the build is killed,
so no compiler or build script keeps writing into a directory being removed.

A build that fails is a normal :class:`BuildOutcome` with ``success=False``.
Failing to create the directory, write the files or launch ``cargo`` raises
:class:`~rust_coder_rag_assistant.errors.SandboxInfrastructureError`.

The sandbox only isolates the build directory; it applies no resource
limits and no network or filesystem confinement.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import signal
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Iterable

import toml

from .app_config import Settings
from .errors import SandboxInfrastructureError
from .extractors import CrateDependency, GeneratedArtifact


SANDBOX_PREFIX = "rust-sandbox-"
PACKAGE_NAME = "sandbox"


@dataclass(frozen=True)
class BuildOutcome:
    """Verdict of one sandbox build.

    ``diagnostics`` holds the build tool's stderr when the build failed and
    is empty on success.
    """

    success: bool
    diagnostics: str = ""


def render_manifest(dependencies: Iterable[CrateDependency], edition: str = "2024") -> str:
    """Render the sandbox ``Cargo.toml``.

    Every crate is declared with ``version = "*"`` and its features verbatim,
    so cargo resolves the newest published release.
    """
    manifest: Dict[str, Any] = {
        "package": {"name": PACKAGE_NAME, "version": "0.1.0", "edition": edition},
        "dependencies": {},
    }
    for dependency in dependencies:
        manifest["dependencies"][dependency.name] = {
            "version": "*",
            "features": list(dependency.features),
        }
    return toml.dumps(manifest)


@asynccontextmanager
async def sandbox_workspace(root: str = "") -> AsyncIterator[Path]:
    """Yield a new empty directory that is removed when the block exits.

    ``tempfile.mkdtemp`` guarantees a unique name, so concurrent
    validations never share a directory.  Removal runs on a worker thread
    and is shielded, so a cancelled caller still leaves no directory behind.
    """
    try:
        if root:
            Path(root).mkdir(parents=True, exist_ok=True)
        workspace = Path(tempfile.mkdtemp(prefix=SANDBOX_PREFIX, dir=root or None))
    except OSError as exc:
        raise SandboxInfrastructureError(f"Failed to create sandbox directory: {exc}") from exc
    try:
        yield workspace
    finally:
        await asyncio.shield(asyncio.to_thread(shutil.rmtree, workspace, ignore_errors=True))


def write_project(workspace: Path, artifact: GeneratedArtifact, edition: str) -> None:
    """Write ``Cargo.toml`` and ``src/main.rs`` into ``workspace``."""
    try:
        (workspace / "Cargo.toml").write_text(
            render_manifest(artifact.dependencies, edition), encoding="utf-8"
        )
        src_dir = workspace / "src"
        src_dir.mkdir(exist_ok=True)
        (src_dir / "main.rs").write_text(artifact.code, encoding="utf-8")
    except OSError as exc:
        raise SandboxInfrastructureError(f"Failed to write sandbox project: {exc}") from exc


def kill_process_group(process: asyncio.subprocess.Process) -> None:
    """Kill the build tool together with every compiler or build script it spawned.

    The build tool is started in its own session, so its pid is also the
    id of a process group holding all of its descendants.
    """
    try:
        if hasattr(os, "killpg"):
            os.killpg(process.pid, signal.SIGKILL)
        else:
            process.kill()
    except ProcessLookupError:
        pass


async def _terminate(process: asyncio.subprocess.Process) -> None:
    # descendants may outlive the build tool while still holding its stderr
    kill_process_group(process)
    await process.wait()


async def run_build(workspace: Path, settings: Settings) -> BuildOutcome:
    """Run the configured cargo command in ``workspace`` and classify the result."""
    command = [settings.cargo_binary, settings.cargo_command]
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            cwd=str(workspace),
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
            env={**os.environ, "CARGO_TERM_COLOR": "never"},
            start_new_session=True,
        )
    except OSError as exc:
        raise SandboxInfrastructureError(
            f"Failed to launch '{' '.join(command)}': {exc}"
        ) from exc

    timeout = settings.build_timeout if settings.build_timeout > 0 else None
    try:
        _, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        await _terminate(process)
        raise SandboxInfrastructureError(
            f"'{' '.join(command)}' did not finish within {settings.build_timeout:.0f}s"
        ) from exc
    except asyncio.CancelledError:
        await _terminate(process)
        raise

    if process.returncode == 0:
        return BuildOutcome(success=True, diagnostics="")
    return BuildOutcome(
        success=False,
        diagnostics=(stderr or b"").decode("utf-8", errors="replace"),
    )


async def validate_artifact(artifact: GeneratedArtifact, settings: Settings) -> BuildOutcome:
    """Build ``artifact`` in a throwaway cargo project.

    Parameters
    ----------
    artifact : GeneratedArtifact
        Source plus manifest entries.  The source must not be empty.
    settings : Settings
        Provides the cargo binary, command, edition, sandbox root and
        build timeout.

    Returns
    -------
    BuildOutcome
        ``success`` is true iff cargo exited with status zero.

    Raises
    ------
    SandboxInfrastructureError
        If the sandbox cannot be prepared or cargo cannot be launched.
    """
    if artifact.is_empty:
        raise ValueError("Cannot validate an artifact without source code")
    async with sandbox_workspace(settings.sandbox_root) as workspace:
        await asyncio.to_thread(write_project, workspace, artifact, settings.rust_edition)
        return await run_build(workspace, settings)
