"""Text-generation backend using AI CLI tools (claude -p, codex, gemini).

Instead of adding SDK dependencies, this module shells out to whichever AI
CLI tool the user already has installed. :class:`CliTextGenerator` wraps this
as a plain ``prompt -> text`` callable so the insight orchestrator can take
any generator, including a test double.
"""

from __future__ import annotations

import logging
import subprocess
from typing import Callable

logger = logging.getLogger(__name__)

TextGenerator = Callable[[str], str]

DEFAULT_TIMEOUT = 120

# CLI backends in detection order
BACKENDS = [
    {
        "name": "claude",
        "check_cmd": ["claude", "--version"],
        "run_cmd": ["claude", "-p"],
        "stdin_mode": True,
    },
    {
        "name": "codex",
        "check_cmd": ["codex", "--version"],
        "run_cmd": ["codex", "--quiet"],
        "stdin_mode": False,
    },
    {
        "name": "gemini",
        "check_cmd": ["gemini", "--version"],
        "run_cmd": ["gemini"],
        "stdin_mode": True,
    },
]


class CollaboratorError(RuntimeError):
    """The text-generation backend failed, timed out or returned nothing."""


def detect_available_backend() -> str | None:
    """Find the first available CLI tool.

    Returns:
        Backend name ('claude', 'codex', 'gemini') or None.
    """
    for backend in BACKENDS:
        try:
            subprocess.run(
                backend["check_cmd"],
                capture_output=True,
                timeout=10,
            )
            return backend["name"]
        except (FileNotFoundError, subprocess.TimeoutExpired, OSError):
            continue
    return None


def run_llm_prompt(
    prompt: str,
    backend_name: str | None = None,
    timeout: int = DEFAULT_TIMEOUT,
) -> str:
    """Send a prompt to a CLI LLM tool and return the response.

    Args:
        prompt: The prompt text.
        backend_name: Which CLI to use. Auto-detects if None.
        timeout: Seconds to wait for the CLI to answer.

    Returns:
        The LLM's response text.

    Raises:
        CollaboratorError: If no backend is available, the command fails or
            times out, or the response is empty.
    """
    if backend_name is None:
        backend_name = detect_available_backend()

    if backend_name is None:
        msg = "No LLM CLI tool found. Install claude, codex, or gemini CLI."
        raise CollaboratorError(msg)

    backend = next((b for b in BACKENDS if b["name"] == backend_name), None)
    if backend is None:
        msg = f"Unknown backend: {backend_name}"
        raise CollaboratorError(msg)

    logger.debug("Sending %d-char prompt to %s", len(prompt), backend_name)
    try:
        if backend["stdin_mode"]:
            result = subprocess.run(
                backend["run_cmd"],
                input=prompt,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        else:
            result = subprocess.run(
                backend["run_cmd"] + [prompt],
                capture_output=True,
                text=True,
                timeout=timeout,
            )
    except subprocess.TimeoutExpired as e:
        msg = f"LLM call timed out after {timeout}s ({backend_name})"
        raise CollaboratorError(msg) from e
    except FileNotFoundError as e:
        msg = f"CLI tool not found: {backend_name}"
        raise CollaboratorError(msg) from e
    except OSError as e:
        msg = f"Could not start {backend_name}: {e}"
        raise CollaboratorError(msg) from e
    except UnicodeDecodeError as e:
        msg = f"LLM returned undecodable output ({backend_name}): {e}"
        raise CollaboratorError(msg) from e

    if result.returncode != 0:
        msg = f"LLM call failed ({backend_name}): {result.stderr[:200]}"
        raise CollaboratorError(msg)

    text = result.stdout.strip()
    if not text:
        msg = f"LLM returned an empty response ({backend_name})"
        raise CollaboratorError(msg)

    return text


class CliTextGenerator:
    """Callable text generator backed by an installed AI CLI.

    The backend is resolved on first use and reused afterwards.
    """

    def __init__(self, backend_name: str | None = None, timeout: int = DEFAULT_TIMEOUT) -> None:
        self.backend_name = backend_name or None
        self.timeout = timeout

    def __call__(self, prompt: str) -> str:
        if self.backend_name is None:
            self.backend_name = detect_available_backend()
        return run_llm_prompt(prompt, self.backend_name, timeout=self.timeout)
