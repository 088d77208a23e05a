"""Materialisation of service account keys for the gcloud CLI."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from gcloud_cli.errors import CredentialIOError

from .context import WorkingDirectory

LOGGER = logging.getLogger(__name__)

GOOGLE_APPLICATION_CREDENTIALS = "GOOGLE_APPLICATION_CREDENTIALS"
CLOUDSDK_AUTH_CREDENTIAL_FILE_OVERRIDE = "CLOUDSDK_AUTH_CREDENTIAL_FILE_OVERRIDE"
# Hidden so that output file globs never collect the key.
CREDENTIAL_FILE_PREFIX = ".gcloud-credentials-"


def materialize_credentials(service_account: Optional[str], working_dir: WorkingDirectory) -> Dict[str, str]:
    """Write the rendered key into the working directory and bind it for gcloud.

    Both the application-default variable and the gcloud-specific override
    point at the same file. Returns an empty mapping when no key is set.
    """

    if service_account is None:
        return {}
    try:
        path = working_dir.create_temp_file(
            service_account.encode("utf-8"), prefix=CREDENTIAL_FILE_PREFIX, suffix=".json"
        )
    except OSError as exc:
        raise CredentialIOError(f"Failed to write service account key in {working_dir.path}") from exc
    LOGGER.debug("Service account key written to %s", path)
    return {
        GOOGLE_APPLICATION_CREDENTIALS: str(path),
        CLOUDSDK_AUTH_CREDENTIAL_FILE_OVERRIDE: str(path),
    }
