"""Client SDK: local pre-submission gate, warning dialog contract and HTTP client."""

from jobboard.client.dialog import WarningDialog
from jobboard.client.gate import ClientGate
from jobboard.client.content_client import ContentClient, SubmissionResult

__all__ = ["ClientGate", "ContentClient", "SubmissionResult", "WarningDialog"]
