from dataclasses import dataclass, replace
from typing import Optional, Union

from .algorithms import CanonicalizationMethod, DigestAlgorithm, SignatureMethod
from .exceptions import InvalidInput
from .fingerprint import fingerprint_cert
from .signer import SignatureOptions


@dataclass(frozen=True)
class IdpConfiguration:
    """
    The IdP's own signing material and algorithm defaults, as supplied by the host application.
    """

    x509_certificate: Optional[Union[str, bytes]] = None
    "PEM-formatted IdP certificate"

    secret_key: Optional[Union[str, bytes]] = None
    "PEM-formatted private key matching **x509_certificate**"

    password: Optional[bytes] = None
    "Passphrase protecting **secret_key**, if any"

    algorithm: DigestAlgorithm = DigestAlgorithm.SHA256
    "Digest used for reference digests and for the published certificate fingerprint"

    signature_algorithm: SignatureMethod = SignatureMethod.RSA_SHA256
    c14n_algorithm: CanonicalizationMethod = CanonicalizationMethod.EXCLUSIVE_XML_CANONICALIZATION_1_0

    def signature_options(self, **overrides) -> SignatureOptions:
        """
        Build :class:`saml_idp.SignatureOptions` from this configuration. Keyword arguments replace individual fields.
        """
        if self.secret_key is None or self.x509_certificate is None:
            raise InvalidInput("Both x509_certificate and secret_key must be configured to sign")
        options = SignatureOptions(
            key=self.secret_key,
            cert=self.x509_certificate,
            passphrase=self.password,
            signature_algorithm=self.signature_algorithm,
            digest_algorithm=self.algorithm,
            c14n_algorithm=self.c14n_algorithm,
        )
        return replace(options, **overrides)

    def fingerprint(self, algorithm: Optional[DigestAlgorithm] = None) -> str:
        """
        Fingerprint of the IdP certificate, for publication in metadata.
        """
        if self.x509_certificate is None:
            raise InvalidInput("No x509_certificate configured")
        return fingerprint_cert(self.x509_certificate, algorithm or self.algorithm)
