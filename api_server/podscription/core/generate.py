# podscription/core/generate.py
# -*- coding: utf-8 -*-
"""
Podscription API — Diagnosis generation
---------------------------------------
Turns one classified user message into a "prescription":

- Pick the prompt by intent category:
    - networking -> Dr. Network specialist
    - storage    -> Dr. Volume specialist
    - otherwise  -> generic Pod Doctor with the category briefing
- Call the model backend with the diagnosis sampling settings
  (not the low-temperature classification ones).
- Parse the markdown-ish reply into a Prescription, keeping the raw text
  as the assistant message.

Failures are NOT softened here. A BackendError propagates and the pipeline
aborts the turn: a guessed category is acceptable, an invented fix is not.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from podscription.core import prompts
from podscription.core.types import DiagnosisResult, IntentCategory, PromptPair, category_value
from podscription.models.session_model import Intent, Message, Prescription
from podscription.providers.openai_chat import BackendError, CompletionBackend
from podscription.utils import Stopwatch

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Reply markers
# ---------------------------------------------------------------------------

DIAGNOSIS_MARKER = "Diagnosis:"
FOLLOW_UP_MARKER = "Follow-up Care:"
COMMAND_PREFIX = "kubectl"

FALLBACK_DIAGNOSIS = "Kubernetes Issue Diagnosis"
TREATMENT_BOILERPLATE = "Refer to the detailed diagnosis above for treatment recommendations."


# ---------------------------------------------------------------------------
# Prompt dispatch
# ---------------------------------------------------------------------------

def build_diagnosis_prompt(
    message: str,
    intent: Intent,
    history: Sequence[Message],
) -> PromptPair:
    """Specialist prompt for networking/storage, generic prompt otherwise."""
    if intent.category == IntentCategory.NETWORKING:
        return prompts.get_networking_prompt(message, history)
    if intent.category == IntentCategory.STORAGE:
        return prompts.get_storage_prompt(message, history)
    return prompts.get_generic_prompt(message, intent.category, history)


# ---------------------------------------------------------------------------
# Reply parsing
# ---------------------------------------------------------------------------

def _extract_diagnosis(response: str) -> str:
    if DIAGNOSIS_MARKER not in response:
        return FALLBACK_DIAGNOSIS
    # Text between the first marker and the next one (if any), first line only.
    after = response.split(DIAGNOSIS_MARKER)[1]
    first_line = after.split("\n")[0]
    return first_line.removeprefix("🩺").strip()


def _extract_commands(response: str) -> List[str]:
    """
    One candidate per line: the text between the first and last back-tick.
    Only candidates starting with `kubectl` survive; other inline code
    (file names, YAML keys, placeholders) is dropped.
    """
    commands: List[str] = []
    for line in response.split("\n"):
        if "`" not in line:
            continue
        start = line.find("`")
        end = line.rfind("`")
        if start == end:
            continue
        command = line[start + 1:end].strip()
        if command and command.startswith(COMMAND_PREFIX):
            commands.append(command)
    return commands


def _extract_follow_up(response: str) -> str:
    if FOLLOW_UP_MARKER not in response:
        return ""
    after = response.split(FOLLOW_UP_MARKER)[1]
    # Stop at the closing "*joke*" line.
    return after.split("*")[0].strip()


def parse_diagnosis_response(response: str) -> Prescription:
    """Best-effort Prescription from a diagnosis reply. Never raises."""
    return Prescription(
        diagnosis=_extract_diagnosis(response),
        treatment=TREATMENT_BOILERPLATE,
        commands=_extract_commands(response),
        follow_up=_extract_follow_up(response),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def generate_diagnosis(
    message: str,
    intent: Intent,
    history: Sequence[Message],
    backend: CompletionBackend,
    *,
    temperature: float,
    max_tokens: int,
    timeout: Optional[float] = None,
) -> DiagnosisResult:
    """
    Generate a diagnosis for `message`.

    Parameters
    ----------
    message:
        The user's problem description for this turn.
    intent:
        Classified (or default) intent; selects the prompt.
    history:
        Recent prior messages of the session, oldest first.
    backend:
        Model backend to call.
    temperature, max_tokens:
        Diagnosis sampling settings.
    timeout:
        Seconds left in the turn's budget.

    Returns
    -------
    DiagnosisResult
        .prescription -> parsed structure
        .raw_text     -> full model reply

    Raises
    ------
    BackendError
        Call failure or no completion.
    """
    prompt = build_diagnosis_prompt(message, intent, history)

    try:
        with Stopwatch("generate_diagnosis backend call", logger, logging.DEBUG):
            reply = backend.complete(
                prompt.system,
                prompt.user,
                temperature=temperature,
                max_tokens=max_tokens,
                timeout=timeout,
            )
    except BackendError as exc:
        raise BackendError(f"failed to generate diagnosis: {exc}") from exc

    prescription = parse_diagnosis_response(reply)
    logger.debug(
        "generate_diagnosis: category=%s diagnosis=%r commands=%d",
        category_value(intent.category),
        prescription.diagnosis,
        len(prescription.commands),
    )
    return DiagnosisResult(prescription=prescription, raw_text=reply)
