"""Auto-detect the generation of a discovery document."""

from enum import Enum

from api_discovery.errors import ValidationError


class DiscoveryVersion(str, Enum):
    """Discovery document generations."""

    V0_3 = "0.3"
    V1_0 = "1.0"


def detect_discovery_version(document: dict) -> DiscoveryVersion:
    """Detect the generation of a parsed discovery document.

    v1.0 documents declare ``"discoveryVersion": "v1"`` and carry a
    ``basePath``; v0.3 documents carry a ``restBasePath`` instead.
    """
    if not isinstance(document, dict):
        raise ValidationError("Discovery document must be a JSON object")

    if document.get("discoveryVersion") == "v1" or "basePath" in document:
        return DiscoveryVersion.V1_0
    if "restBasePath" in document:
        return DiscoveryVersion.V0_3

    raise ValidationError("Cannot detect discovery version: no 'discoveryVersion', 'basePath' or 'restBasePath'")
