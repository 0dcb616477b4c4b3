import pytest

from podscription.core.generate import (
    FALLBACK_DIAGNOSIS,
    TREATMENT_BOILERPLATE,
    generate_diagnosis,
    parse_diagnosis_response,
)
from podscription.core.types import IntentCategory
from podscription.models.session_model import Intent, Message, MessageRole
from podscription.providers.openai_chat import BackendError

from .fakes import NETWORK_DIAGNOSIS, FakeBackend


def test_parse_network_reply():
    rx = parse_diagnosis_response(NETWORK_DIAGNOSIS)

    assert rx.diagnosis == "Acute DNS Resolution Failure"
    assert rx.treatment == TREATMENT_BOILERPLATE
    assert rx.commands == [
        "kubectl get pods -n kube-system -l k8s-app=kube-dns",
        "kubectl describe svc payments",
    ]
    assert rx.follow_up == "Watch CoreDNS restarts for a day."


def test_command_uses_outer_backticks_and_skips_non_kubectl():
    reply = "\n".join(
        [
            "1. **Check**: `kubectl get pods`",
            "2. **Edit**: `vim deployment.yaml`",
            "3. **Logs**: `kubectl logs x` then `grep err`",
            "4. **Nothing**: `",
            "no code here",
        ]
    )
    rx = parse_diagnosis_response(reply)
    # Line 3 spans from the first to the last back-tick.
    assert rx.commands == ["kubectl get pods", "kubectl logs x` then `grep err"]


def test_diagnosis_title_keeps_emoji_after_space():
    # The emoji prefix is only removed when it directly follows the marker.
    rx = parse_diagnosis_response("## Diagnosis: 🩺 Chronic CrashLoopBackOff\nbody")
    assert rx.diagnosis == "🩺 Chronic CrashLoopBackOff"

    rx = parse_diagnosis_response("## Diagnosis:🩺 Chronic CrashLoopBackOff\nbody")
    assert rx.diagnosis == "Chronic CrashLoopBackOff"


def test_fallbacks_when_markers_missing():
    rx = parse_diagnosis_response("Everything looks healthy to me.")
    assert rx.diagnosis == FALLBACK_DIAGNOSIS
    assert rx.commands == []
    assert rx.follow_up == ""
    assert rx.treatment == TREATMENT_BOILERPLATE


def test_follow_up_stops_at_first_asterisk():
    reply = "### Follow-up Care:\nRe-check in **an hour**.\n*joke*"
    assert parse_diagnosis_response(reply).follow_up == "Re-check in"


def test_prescription_serializes_follow_up_in_camel_case():
    rx = parse_diagnosis_response(NETWORK_DIAGNOSIS)
    dumped = rx.model_dump(by_alias=True)
    assert "followUp" in dumped
    assert "follow_up" not in dumped


def test_generate_diagnosis_returns_raw_text_and_uses_caller_sampling():
    backend = FakeBackend()
    intent = Intent(category=IntentCategory.NETWORKING, confidence=0.9)
    history = [Message(role=MessageRole.USER, content="dns is flaky")]

    result = generate_diagnosis(
        "still failing",
        intent,
        history,
        backend,
        temperature=0.7,
        max_tokens=1000,
        timeout=9.5,
    )

    assert result.raw_text == NETWORK_DIAGNOSIS
    assert result.prescription.diagnosis == "Acute DNS Resolution Failure"
    (call,) = backend.calls_of("diagnose")
    assert call["user"] == "Network issue reported: still failing"
    assert "Previous networking context: dns is flaky" in call["system"]
    assert (call["temperature"], call["max_tokens"], call["timeout"]) == (0.7, 1000, 9.5)


def test_generate_diagnosis_propagates_backend_errors():
    backend = FakeBackend(diagnosis_reply=BackendError("HTTP 500"))
    with pytest.raises(BackendError, match="failed to generate diagnosis: HTTP 500"):
        generate_diagnosis(
            "x",
            Intent(category=IntentCategory.GENERAL),
            [],
            backend,
            temperature=0.7,
            max_tokens=1000,
        )


def test_empty_commands_and_follow_up_are_left_out_of_json():
    rx = parse_diagnosis_response("## Diagnosis: Healthy Pod\nNothing to do.")
    assert rx.commands == []
    assert rx.follow_up == ""

    dumped = rx.model_dump(mode="json", by_alias=True)
    assert dumped == {"diagnosis": "Healthy Pod", "treatment": TREATMENT_BOILERPLATE}

    again = type(rx).model_validate(dumped)
    assert again.commands == [] and again.follow_up == ""
