from dataclasses import dataclass
from typing import Union

from .algorithms import DigestAlgorithm
from .fingerprint import fingerprint_cert, fingerprint_digest_algorithm, normalize_fingerprint
from .util import PEM_HEADER, ensure_str


@dataclass(frozen=True)
class Fingerprint:
    """
    A trust anchor given as a certificate fingerprint. Case and separator characters are ignored. The digest is
    inferred from the length: 64 hex characters for SHA-256, 40 for SHA-1.
    """

    value: str

    @property
    def normalized(self) -> str:
        return normalize_fingerprint(self.value)

    @property
    def digest_algorithm(self) -> DigestAlgorithm:
        """
        :raises: :class:`saml_idp.exceptions.InvalidFingerprint` if the length matches no supported digest
        """
        return fingerprint_digest_algorithm(self.normalized)

    def to_fingerprint(self) -> "Fingerprint":
        return self


@dataclass(frozen=True)
class Certificate:
    """
    A trust anchor given as a full certificate (PEM or DER). It is compared through its SHA-256 fingerprint.
    """

    data: Union[str, bytes]

    def to_fingerprint(self) -> Fingerprint:
        return Fingerprint(fingerprint_cert(self.data, DigestAlgorithm.SHA256))


TrustAnchor = Union[Fingerprint, Certificate]


def trust_anchor_from_string(value: Union[str, bytes]) -> TrustAnchor:
    """
    Build a trust anchor from a configuration string that may hold either a PEM certificate or a fingerprint.
    """
    if PEM_HEADER in ensure_str(value):
        return Certificate(value)
    return Fingerprint(ensure_str(value))
