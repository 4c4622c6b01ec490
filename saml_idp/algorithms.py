"""
Algorithm identifiers for the XML Signature elements a SAML IdP produces and accepts. See the
`Algorithm Identifiers <http://www.w3.org/TR/xmldsig-core1/#sec-AlgID>`_ section of XML Signature 1.1.
"""

from enum import Enum
from typing import Dict

from cryptography.hazmat.primitives import hashes

from .exceptions import InvalidInput

ENVELOPED_SIGNATURE_TRANSFORM = "http://www.w3.org/2000/09/xmldsig#enveloped-signature"


class AlgorithmEnum(Enum):
    @classmethod
    def _missing_(cls, value):
        raise InvalidInput(f"Unsupported {cls.__name__} algorithm: {value}")

    def __repr__(self):
        return f"{type(self).__name__}.{self.name}"


class DigestAlgorithm(AlgorithmEnum):
    """
    Digests used for reference digests and for certificate fingerprints.
    """

    SHA1 = "http://www.w3.org/2000/09/xmldsig#sha1"
    "Accepted from service providers and used for 40-digit fingerprints. Never used for signing."

    SHA224 = "http://www.w3.org/2001/04/xmldsig-more#sha224"
    SHA256 = "http://www.w3.org/2001/04/xmlenc#sha256"
    SHA384 = "http://www.w3.org/2001/04/xmldsig-more#sha384"
    SHA512 = "http://www.w3.org/2001/04/xmlenc#sha512"

    @property
    def hash_algorithm(self) -> hashes.HashAlgorithm:
        "A fresh cryptography hash instance for this digest"
        return getattr(hashes, self.name)()

    @property
    def insecure(self) -> bool:
        return self is DigestAlgorithm.SHA1


class SignatureMethod(AlgorithmEnum):
    """
    Certificate-based signature methods. Member names are ``<key type>_<digest>``; RSA signatures use
    RSASSA-PKCS1-v1_5.
    """

    RSA_SHA256 = "http://www.w3.org/2001/04/xmldsig-more#rsa-sha256"
    RSA_SHA224 = "http://www.w3.org/2001/04/xmldsig-more#rsa-sha224"
    RSA_SHA384 = "http://www.w3.org/2001/04/xmldsig-more#rsa-sha384"
    RSA_SHA512 = "http://www.w3.org/2001/04/xmldsig-more#rsa-sha512"
    ECDSA_SHA224 = "http://www.w3.org/2001/04/xmldsig-more#ecdsa-sha224"
    ECDSA_SHA256 = "http://www.w3.org/2001/04/xmldsig-more#ecdsa-sha256"
    ECDSA_SHA384 = "http://www.w3.org/2001/04/xmldsig-more#ecdsa-sha384"
    ECDSA_SHA512 = "http://www.w3.org/2001/04/xmldsig-more#ecdsa-sha512"
    DSA_SHA256 = "http://www.w3.org/2009/xmldsig11#dsa-sha256"

    RSA_SHA1 = "http://www.w3.org/2000/09/xmldsig#rsa-sha1"
    ECDSA_SHA1 = "http://www.w3.org/2001/04/xmldsig-more#ecdsa-sha1"
    DSA_SHA1 = "http://www.w3.org/2000/09/xmldsig#dsa-sha1"

    @property
    def key_type(self) -> str:
        "``RSA``, ``ECDSA`` or ``DSA``"
        return self.name.partition("_")[0]

    @property
    def digest(self) -> DigestAlgorithm:
        return DigestAlgorithm[self.name.partition("_")[2]]

    @property
    def insecure(self) -> bool:
        return self.digest.insecure


class CanonicalizationMethod(AlgorithmEnum):
    """
    XML canonicalization methods. SAML 2.0 signatures use exclusive canonicalization; the others are accepted when
    verifying.
    """

    CANONICAL_XML_1_0 = "http://www.w3.org/TR/2001/REC-xml-c14n-20010315"
    CANONICAL_XML_1_0_WITH_COMMENTS = "http://www.w3.org/TR/2001/REC-xml-c14n-20010315#WithComments"
    CANONICAL_XML_1_1 = "http://www.w3.org/2006/12/xml-c14n11"
    CANONICAL_XML_1_1_WITH_COMMENTS = "http://www.w3.org/2006/12/xml-c14n11#WithComments"
    EXCLUSIVE_XML_CANONICALIZATION_1_0 = "http://www.w3.org/2001/10/xml-exc-c14n#"
    EXCLUSIVE_XML_CANONICALIZATION_1_0_WITH_COMMENTS = "http://www.w3.org/2001/10/xml-exc-c14n#WithComments"

    @property
    def exclusive(self) -> bool:
        return self.name.startswith("EXCLUSIVE_")

    @property
    def with_comments(self) -> bool:
        return self.name.endswith("_WITH_COMMENTS")

    @classmethod
    def is_canonicalization(cls, uri) -> bool:
        return any(method.value == uri for method in cls)


# Keyed by the number of hex characters in a normalized fingerprint.
fingerprint_digest_algorithms: Dict[int, DigestAlgorithm] = {
    64: DigestAlgorithm.SHA256,
    40: DigestAlgorithm.SHA1,
}
