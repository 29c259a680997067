"""Artifact checks the coordinator applies after the status check, before the write.

The state machine never inspects artifact contents; these validators reject
blobs that are obviously not a signed transaction envelope.
Neither validator verifies signatures.
"""

import base64
import binascii
from typing import Protocol

# BIP-174 partially signed transaction magic
PSBT_MAGIC = b"psbt\xff"


class ArtifactValidator(Protocol):
    def is_valid(self, artifact: str) -> bool: ...


class AcceptAllValidator:
    def is_valid(self, artifact: str) -> bool:
        return True


class PsbtEnvelopeValidator:
    """Accepts base64 strings that decode to a PSBT envelope."""

    def is_valid(self, artifact: str) -> bool:
        if not isinstance(artifact, str) or not artifact:
            return False
        try:
            raw = base64.b64decode(artifact, validate=True)
        except (binascii.Error, ValueError):
            return False
        return raw.startswith(PSBT_MAGIC) and len(raw) > len(PSBT_MAGIC)


def get_validator(name: str) -> ArtifactValidator:
    if name == "psbt":
        return PsbtEnvelopeValidator()
    if name == "none":
        return AcceptAllValidator()
    raise ValueError(f"Unknown artifact check: {name}")
