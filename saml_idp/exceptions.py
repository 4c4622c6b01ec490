"""
saml_idp exception types.

Two families matter to callers. :class:`ValidationError` and its subclasses mean trust could not even be evaluated
(the cryptographic material is missing or unusable) and always propagate. :class:`InvalidSignature` and
:class:`InvalidInput` raised while checking a signature are ordinary rejections, which
:class:`saml_idp.SignatureValidator` reports as ``False``.
"""

import cryptography.exceptions


class SamlIdpException(Exception):
    pass


class ValidationError(SamlIdpException):
    """
    Raised when signature trust cannot be evaluated.
    """


class MissingCertificate(ValidationError):
    """
    Raised when a signature carries no X509Certificate element.
    """


class InvalidFingerprint(ValidationError):
    """
    Raised when a configured certificate fingerprint has an unrecognized length.
    """


class InvalidCertificate(ValidationError):
    """
    Raised when certificate data cannot be parsed as an X.509 certificate.
    """


class InvalidSignature(cryptography.exceptions.InvalidSignature, SamlIdpException):
    """
    Raised when signature validation fails.
    """


class InvalidDigest(InvalidSignature):
    """
    Raised when digest validation fails (causing the signature to be untrusted).
    """


class InvalidInput(ValueError, SamlIdpException):
    pass


class SigningError(SamlIdpException):
    """
    Raised when a signature cannot be produced with the given key and certificate.
    """
