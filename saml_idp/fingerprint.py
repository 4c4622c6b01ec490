"""
Certificate fingerprints: the hex digest of a certificate's DER encoding. They serve as compact trust anchors for
service provider and IdP certificates, and are published in IdP metadata.
"""

import re
from typing import Union

from cryptography import x509

from .algorithms import DigestAlgorithm, fingerprint_digest_algorithms
from .exceptions import InvalidFingerprint
from .util import load_certificate

_non_alphanumeric = re.compile(r"[^a-zA-Z0-9]")


def fingerprint_cert(
    cert: Union[str, bytes, x509.Certificate], algorithm: DigestAlgorithm = DigestAlgorithm.SHA256
) -> str:
    """
    Compute the lower-case hex fingerprint of a certificate.

    :param cert: PEM string or bytes, bare base64 string, DER bytes, or a :class:`cryptography.x509.Certificate`
    :param algorithm: Digest to use. SHA-256 unless a SHA-1 fingerprint is specifically wanted.
    :raises: :class:`saml_idp.exceptions.InvalidCertificate` if the certificate cannot be parsed
    """
    return load_certificate(cert).fingerprint(algorithm.hash_algorithm).hex()


def normalize_fingerprint(fingerprint: str) -> str:
    """
    Remove separators and case from a fingerprint, so that ``AA:BB:CC`` and ``aabbcc`` compare equal.
    """
    return _non_alphanumeric.sub("", fingerprint).lower()


def fingerprint_digest_algorithm(normalized_fingerprint: str) -> DigestAlgorithm:
    """
    Infer the digest that produced a normalized fingerprint from its length. Lengths other than those of SHA-256 and
    SHA-1 digests are rejected rather than guessed at.
    """
    try:
        return fingerprint_digest_algorithms[len(normalized_fingerprint)]
    except KeyError:
        raise InvalidFingerprint(f"Unexpected certificate fingerprint length: {normalized_fingerprint}")
