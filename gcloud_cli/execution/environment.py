"""Environment composition for gcloud command runs."""

from __future__ import annotations

from typing import Dict, Mapping, Optional

CLOUDSDK_CORE_PROJECT = "CLOUDSDK_CORE_PROJECT"


def project_binding(project_id: Optional[str]) -> Dict[str, str]:
    if project_id is None:
        return {}
    return {CLOUDSDK_CORE_PROJECT: project_id}


def compose_environment(
    credential_env: Optional[Mapping[str, str]] = None,
    project_id: Optional[str] = None,
    user_env: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Merge credential bindings, project scope and user variables.

    Later sources win on key collision, so user ``env`` may override any
    binding this module injects. Keys are passed through unvalidated.
    """

    composed: Dict[str, str] = {}
    composed.update(credential_env or {})
    composed.update(project_binding(project_id))
    composed.update(user_env or {})
    return composed
