"""
Use :func:`saml_idp.sign_root_element` to sign outgoing SAML documents and :class:`saml_idp.SignatureValidator` to
check the signatures on documents received from service providers.
"""

from .signer import XMLSigner, SignatureOptions, place_signature, sign_root_element
from .verifier import XMLVerifier, SignatureConfiguration, SignatureValidator, is_signature_valid
from .algorithms import DigestAlgorithm, SignatureMethod, CanonicalizationMethod
from .exceptions import (
    InvalidCertificate,
    InvalidDigest,
    InvalidFingerprint,
    InvalidInput,
    InvalidSignature,
    MissingCertificate,
    SigningError,
    ValidationError,
)
from .document import XmlDocument
from .fingerprint import fingerprint_cert, normalize_fingerprint
from .trust import Certificate, Fingerprint, TrustAnchor, trust_anchor_from_string
from .config import IdpConfiguration
from .processor import XMLSignatureProcessor
from . import namespaces
