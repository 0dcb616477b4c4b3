# podscription/core/types.py
# -*- coding: utf-8 -*-
"""
Podscription API — Shared type helpers
--------------------------------------
Small shared definitions used across the core:

- IntentCategory  : the known troubleshooting categories
- CategoryLabel   : a known category OR any other string the model returned
- PromptPair      : (system, user) instructions for one backend call
- DiagnosisResult : parsed prescription + the raw narrative text
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:  # pragma: no cover
    from podscription.models.session_model import Prescription


class IntentCategory(str, Enum):
    """Kubernetes problem areas the classifier knows about."""

    NETWORKING = "networking"
    STORAGE = "storage"
    POD_ISSUES = "pod-issues"
    RBAC = "rbac"
    PERFORMANCE = "performance"
    GENERAL = "general"


# The model may answer with a category we never listed. We keep whatever it
# said instead of rejecting the reply.
CategoryLabel = Union[IntentCategory, str]


def to_category(value: str) -> CategoryLabel:
    """
    Map a raw category string to IntentCategory when it is a known value,
    otherwise return the string unchanged.
    """
    try:
        return IntentCategory(value)
    except ValueError:
        return value


def category_value(category: CategoryLabel) -> str:
    """Plain string form of a category, for prompts and logs."""
    if isinstance(category, IntentCategory):
        return category.value
    return str(category)


@dataclass(frozen=True)
class PromptPair:
    """
    One backend call's instructions.

    Attributes
    ----------
    system:
        System message (persona, format rules, context).
    user:
        User message (the reported problem, sometimes with history).
    """
    system: str
    user: str


@dataclass
class DiagnosisResult:
    """
    Result of one diagnosis call.

    Attributes
    ----------
    prescription:
        Structured remediation parsed out of the reply.
    raw_text:
        The full reply, stored as the assistant message content.
    """
    prescription: "Prescription"
    raw_text: str
