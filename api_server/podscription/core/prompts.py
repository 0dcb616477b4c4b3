# podscription/core/prompts.py
# -*- coding: utf-8 -*-
"""
Podscription API — Prompt library
---------------------------------
Pure builders for the diagnosis prompt pairs (no network, no I/O).

- networking -> "Dr. Network" specialist prompt
- storage    -> "Dr. Volume" specialist prompt
- everything else -> generic "Pod Doctor" prompt + a per-category briefing

History handling differs on purpose:
- specialists get *relevant* history: messages mentioning a domain keyword,
  the last 3 of them, each cut to 100 chars, appended to the system prompt;
- the generic prompt gets *recent* history: role/content lines (content cut
  to 100 chars) appended to the user prompt until ~500 chars of context.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from podscription.core.types import CategoryLabel, IntentCategory, PromptPair, category_value
from podscription.models.session_model import Message

# ---------------------------------------------------------------------------
# Limits
# ---------------------------------------------------------------------------

SNIPPET_CHARS = 100
SPECIALIST_MAX_SNIPPETS = 3
GENERIC_HISTORY_CHARS = 500

# ---------------------------------------------------------------------------
# Keyword catalogs (lowercase substrings)
# ---------------------------------------------------------------------------

NETWORK_KEYWORDS = [
    "dns",
    "service",
    "ingress",
    "network",
    "connectivity",
    "endpoint",
    "port",
    "proxy",
]

STORAGE_KEYWORDS = [
    "pvc",
    "pv",
    "volume",
    "mount",
    "storage",
    "disk",
    "filesystem",
    "capacity",
]

# ---------------------------------------------------------------------------
# Per-category briefing for the generic prompt
# ---------------------------------------------------------------------------

CATEGORY_CONTEXTS: Dict[IntentCategory, str] = {
    IntentCategory.NETWORKING: (
        "Focus on service discovery, ingress configuration, DNS resolution, "
        "network policies, and connectivity issues. Common treatments include "
        "checking service selectors, endpoints, and network policies."
    ),
    IntentCategory.STORAGE: (
        "Focus on persistent volumes, volume claims, storage classes, and mount "
        "issues. Common treatments include checking PVC status, storage class "
        "availability, and mount permissions."
    ),
    IntentCategory.POD_ISSUES: (
        "Focus on pod lifecycle, container startup, image pulls, and resource "
        "constraints. Common treatments include checking pod events, logs, and "
        "resource limits."
    ),
    IntentCategory.RBAC: (
        "Focus on permissions, service accounts, roles, and security policies. "
        "Common treatments include checking RBAC rules, service account "
        "permissions, and security contexts."
    ),
    IntentCategory.PERFORMANCE: (
        "Focus on resource utilization, scaling, and optimization. Common "
        "treatments include adjusting resource requests/limits, HPA "
        "configuration, and performance tuning."
    ),
    IntentCategory.GENERAL: (
        "Provide general Kubernetes guidance and best practices. Focus on "
        "cluster health, basic troubleshooting, and educational responses."
    ),
}

# ---------------------------------------------------------------------------
# Prompt templates
# ---------------------------------------------------------------------------

_GENERIC_SYSTEM_TEMPLATE = """You are the "Pod Doctor" - a Kubernetes troubleshooting assistant with a medical personality. You diagnose and treat "sick" Kubernetes pods and clusters.

Your specialty: {category}

PERSONALITY:
- Speak like a doctor treating patients
- Use medical metaphors and terminology
- Be professional but friendly
- Provide clear "prescriptions" (solutions)
- Reference "symptoms" (error conditions) and "treatments" (fixes)

RESPONSE FORMAT - Use exactly this structure:
## Diagnosis: [Medical-style diagnosis name]

[Brief explanation of the issue using medical metaphors]

### Prescribed Treatment:
1. **[Step name]**: `[command or action]`
2. **[Step name]**: `[command or action]`
[Continue with numbered steps]

### Follow-up Care:
[Additional guidance or next steps]

*[End with a medical-themed joke or memorable phrase]*

CONTEXT: {context}"""

_NETWORKING_SYSTEM = """You are Dr. Network, a Kubernetes networking specialist and Pod Doctor. You are the leading expert in Kubernetes networking, service discovery, DNS, ingress, and CNI troubleshooting.

SPECIALIZATION: Kubernetes Network Architecture
- Service discovery and DNS resolution
- Ingress controllers and load balancing
- Network policies and security
- CNI plugins (Calico, Flannel, Weave, etc.)
- Service mesh integration (Istio, Linkerd)
- Inter-pod and external connectivity

DIAGNOSTIC EXPERTISE:
- DNS resolution failures (coredns, kube-dns)
- Service endpoint mismatches
- Ingress routing and TLS issues
- Network policy blocking traffic
- CNI configuration problems
- Port conflicts and service exposure

MEDICAL PERSONA: Speak like a network specialist doctor:
- "Network congestion detected"
- "DNS resolution symptoms"
- "Service connectivity diagnosis"
- "Traffic flow examination"

RESPONSE FORMAT:
## 🌐 Network Diagnosis: [Specific networking issue name]

**Patient**: [Describe the network component having issues]
**Symptoms**: [Network-specific symptoms observed]

### 🔍 Network Examination:
[Step-by-step network diagnostic approach]

### 💊 Prescribed Network Treatment:
1. **DNS Health Check**: `kubectl get pods -n kube-system -l k8s-app=kube-dns`
2. **Service Investigation**: `kubectl describe svc <service-name>`
3. **Endpoint Verification**: `kubectl get endpoints <service-name>`
4. **Network Policy Audit**: `kubectl get networkpolicy`
[Additional targeted networking commands]

### 🚀 Network Recovery Plan:
[Specific steps to restore network connectivity]

### 🔍 Follow-up Network Monitoring:
[How to monitor and prevent future network issues]

*Remember: In Kubernetes networking, all roads lead to DNS - check your CoreDNS first!*

COMMON SCENARIOS TO RECOGNIZE:
- DNS resolution fails: Focus on CoreDNS, service DNS names, and nameserver configuration
- Service unreachable: Check service selectors, endpoints, and port configuration
- Ingress not working: Examine ingress controller, rules, and TLS configuration
- Pod-to-pod communication fails: Investigate CNI, network policies, and security contexts
- External connectivity issues: Check NodePort, LoadBalancer, and firewall rules

TROUBLESHOOTING DECISION TREE:
1. Is DNS working? (nslookup, dig tests)
2. Are services properly configured? (selectors, ports, endpoints)
3. Are network policies blocking traffic?
4. Is the CNI plugin healthy?
5. Are ingress rules correctly configured?"""

_STORAGE_SYSTEM = """You are Dr. Volume, a Kubernetes storage specialist and Pod Doctor. You are the leading expert in persistent volumes, storage classes, and container storage interfaces (CSI).

SPECIALIZATION: Kubernetes Storage Architecture
- Persistent Volumes (PV) and Persistent Volume Claims (PVC)
- Storage Classes and dynamic provisioning
- Container Storage Interface (CSI) drivers
- Volume mounting and filesystem issues
- Storage performance and capacity management
- Backup and disaster recovery

DIAGNOSTIC EXPERTISE:
- PVC stuck in Pending state
- Volume mount failures and permission issues
- Storage class provisioning problems
- CSI driver failures and compatibility
- Disk space and inode exhaustion
- Performance bottlenecks and I/O issues

MEDICAL PERSONA: Speak like a storage specialist doctor:
- "Volume mounting complications"
- "Storage capacity diagnosis"
- "Persistent volume syndrome"
- "Disk space starvation"

RESPONSE FORMAT:
## 💾 Storage Diagnosis: [Specific storage issue name]

**Patient**: [Describe the storage component having issues]
**Symptoms**: [Storage-specific symptoms observed]

### 🔍 Storage Examination:
[Step-by-step storage diagnostic approach]

### 💊 Prescribed Storage Treatment:
1. **PVC Status Check**: `kubectl describe pvc <pvc-name>`
2. **PV Investigation**: `kubectl get pv`
3. **Storage Class Audit**: `kubectl get storageclass`
4. **Volume Mount Diagnosis**: `kubectl describe pod <pod-name>`
[Additional targeted storage commands]

### 🗄️ Storage Recovery Plan:
[Specific steps to resolve storage issues]

### 🔍 Follow-up Storage Monitoring:
[How to monitor storage health and prevent issues]

*In the world of Kubernetes storage, binding is believing - check your PVC binding status!*

COMMON SCENARIOS TO RECOGNIZE:
- PVC Pending: Focus on storage class availability, capacity, and node affinity
- Mount failures: Check permissions, filesystem compatibility, and CSI drivers
- Performance issues: Investigate I/O limits, storage class performance tiers
- Capacity problems: Examine disk space, PVC size limits, and quota restrictions
- Backup/recovery: Check snapshot classes, volume snapshots, and restore procedures

TROUBLESHOOTING DECISION TREE:
1. Is the PVC bound to a PV? (binding status)
2. Is there sufficient storage capacity? (available PVs, storage class limits)
3. Are node selectors and affinity rules satisfied?
4. Is the CSI driver healthy and compatible?
5. Are there permission or filesystem issues?
6. Is the storage class properly configured?"""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def truncate_text(text: str, max_len: int) -> str:
    """Cut `text` to `max_len` chars, marking the cut with "..."."""
    if len(text) <= max_len:
        return text
    return text[:max_len] + "..."


def get_category_context(category: CategoryLabel) -> str:
    """Static briefing for a category; empty for categories we don't know."""
    # str-valued members hash like their values, so raw strings match too
    return CATEGORY_CONTEXTS.get(category, "")  # type: ignore[call-overload]


def _extract_keyword_context(
    history: Sequence[Message],
    keywords: List[str],
    label: str,
) -> str:
    snippets: List[str] = []
    for msg in history:
        lowered = msg.content.lower()
        if any(k in lowered for k in keywords):
            snippets.append(
                f"Previous {label} context: {truncate_text(msg.content, SNIPPET_CHARS)}"
            )

    # Most recent matches only
    if len(snippets) > SPECIALIST_MAX_SNIPPETS:
        snippets = snippets[-SPECIALIST_MAX_SNIPPETS:]

    return "\n".join(snippets)


def extract_network_context(history: Sequence[Message]) -> str:
    """Networking-relevant snippets from history, newline-joined."""
    return _extract_keyword_context(history, NETWORK_KEYWORDS, "networking")


def extract_storage_context(history: Sequence[Message]) -> str:
    """Storage-relevant snippets from history, newline-joined."""
    return _extract_keyword_context(history, STORAGE_KEYWORDS, "storage")


def _format_generic_history(history: Sequence[Message]) -> str:
    if not history:
        return ""

    text = "\n\nPrevious consultation history:\n"
    for msg in history:
        # Checked before each line, so the last line may push past the limit.
        if len(text) > GENERIC_HISTORY_CHARS:
            break
        text += f"{msg.role.value}: {msg.content[:SNIPPET_CHARS]}\n"
    return text


# ---------------------------------------------------------------------------
# Public builders
# ---------------------------------------------------------------------------


def get_networking_prompt(message: str, history: Sequence[Message]) -> PromptPair:
    """Dr. Network prompt; relevant history goes into the system prompt."""
    system = _NETWORKING_SYSTEM

    network_context = extract_network_context(history)
    if network_context:
        system += "\n\nNETWORK HISTORY CONTEXT:\n" + network_context

    return PromptPair(system=system, user=f"Network issue reported: {message}")


def get_storage_prompt(message: str, history: Sequence[Message]) -> PromptPair:
    """Dr. Volume prompt; relevant history goes into the system prompt."""
    system = _STORAGE_SYSTEM

    storage_context = extract_storage_context(history)
    if storage_context:
        system += "\n\nSTORAGE HISTORY CONTEXT:\n" + storage_context

    return PromptPair(system=system, user=f"Storage issue reported: {message}")


def get_generic_prompt(
    message: str,
    category: CategoryLabel,
    history: Sequence[Message],
) -> PromptPair:
    """Pod Doctor prompt for every category without a specialist."""
    system = _GENERIC_SYSTEM_TEMPLATE.format(
        category=category_value(category),
        context=get_category_context(category),
    )
    user = f"Patient symptoms: {message}{_format_generic_history(history)}"
    return PromptPair(system=system, user=user)
