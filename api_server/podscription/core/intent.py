"""
intent.py
---------
Decides which Kubernetes problem area a user message is about, by asking the
model backend and parsing its three-line reply:

    CATEGORY: networking
    CONFIDENCE: 0.85
    SYMPTOMS: dns failure, timeout

Categories the classifier knows: networking, storage, pod-issues, rbac,
performance, general. Anything else the model says is kept as-is.

The parsing below is deliberately coarse. Confidence is bucketed by substring
("0.9"/"0.8" -> 0.9, "0.7"/"0.6" -> 0.8, any other "0."/"1." -> 0.7) rather
than parsed as a number. Clients have been built against these buckets, so
keep them as they are.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from podscription.core.types import IntentCategory, PromptPair, to_category
from podscription.models.session_model import Intent
from podscription.providers.openai_chat import BackendError, CompletionBackend
from podscription.utils import Stopwatch

logger = logging.getLogger(__name__)

# -------------------------------------------------------------------------
# Sampling for classification calls
# -------------------------------------------------------------------------

CLASSIFICATION_TEMPERATURE = 0.3
CLASSIFICATION_MAX_TOKENS = 200

DEFAULT_CONFIDENCE = 0.7

# -------------------------------------------------------------------------
# Prompt
# -------------------------------------------------------------------------

_CLASSIFICATION_SYSTEM = """You are an expert Kubernetes troubleshooting assistant. Your job is to classify user messages into specific Kubernetes problem categories.

Analyze the user's message and classify it into one of these categories:
- networking: Service discovery, ingress, connectivity, DNS issues
- storage: PVC, PV, volume mounts, disk space, storage classes
- pod-issues: Pod startup, container crashes, image pulls, resource constraints
- rbac: Permissions, service accounts, cluster roles, security
- performance: CPU, memory, scaling, resource optimization
- general: General questions, cluster info, basic troubleshooting

Respond with ONLY this format:
CATEGORY: [category name]
CONFIDENCE: [0.0-1.0]
SYMPTOMS: [comma-separated list of 2-3 key symptoms detected]

Be concise and accurate."""


def build_classification_prompt(message: str) -> PromptPair:
    """Fixed instructions + the message to classify."""
    return PromptPair(
        system=_CLASSIFICATION_SYSTEM,
        user=f"Classify this Kubernetes issue: {message}",
    )


# -------------------------------------------------------------------------
# Reply parsing
# -------------------------------------------------------------------------

def _bucket_confidence(raw: str, current: float) -> float:
    """
    Substring buckets. Order matters: "0.85" hits the first test, "0.65"
    the second, "0.5" or "1.0" fall to the third.
    """
    if "0." not in raw and "1." not in raw:
        return current
    if "0.9" in raw or "0.8" in raw:
        return 0.9
    if "0.7" in raw or "0.6" in raw:
        return 0.8
    return 0.7


def parse_intent_response(response: str) -> Intent:
    """
    Turn the classifier's reply into an Intent.

    - Lines are trimmed; lines without a known prefix are ignored.
    - No CATEGORY line -> "general".
    - No usable CONFIDENCE line -> 0.7.
    - SYMPTOMS is comma-split and trimmed; empty -> [].
    """
    category = IntentCategory.GENERAL.value
    confidence = DEFAULT_CONFIDENCE
    symptoms: List[str] = []

    for line in response.strip().split("\n"):
        line = line.strip()

        if line.startswith("CATEGORY:"):
            category = line[len("CATEGORY:"):].strip()
        elif line.startswith("CONFIDENCE:"):
            confidence = _bucket_confidence(line[len("CONFIDENCE:"):].strip(), confidence)
        elif line.startswith("SYMPTOMS:"):
            raw_symptoms = line[len("SYMPTOMS:"):].strip()
            if raw_symptoms:
                symptoms.extend(s.strip() for s in raw_symptoms.split(","))

    return Intent(
        category=to_category(category),
        confidence=confidence,
        symptoms=symptoms,
    )


def default_intent() -> Intent:
    """Intent used when classification itself fails."""
    return Intent(
        category=IntentCategory.GENERAL,
        confidence=0.5,
        symptoms=["unknown issue"],
    )


# -------------------------------------------------------------------------
# Intent classification
# -------------------------------------------------------------------------

def classify_intent(
    message: str,
    backend: CompletionBackend,
    *,
    temperature: float = CLASSIFICATION_TEMPERATURE,
    max_tokens: int = CLASSIFICATION_MAX_TOKENS,
    timeout: Optional[float] = None,
) -> Intent:
    """
    Classify `message` with one backend call.

    Raises
    ------
    BackendError
        If the call fails or yields no completion. Callers are expected to
        recover (see default_intent()); this is never fatal to a turn.
    """
    prompt = build_classification_prompt(message)

    try:
        with Stopwatch("classify_intent backend call", logger, logging.DEBUG):
            reply = backend.complete(
                prompt.system,
                prompt.user,
                temperature=temperature,
                max_tokens=max_tokens,
                timeout=timeout,
            )
    except BackendError as exc:
        raise BackendError(f"failed to classify intent: {exc}") from exc

    intent = parse_intent_response(reply)
    logger.debug("classify_intent: reply=%r -> %s", reply, intent)
    return intent
