"""
Helpers shared by the signer and the verifier: tag names, text/bytes coercion, certificate loading and ID generation.
"""

import binascii
import re
import secrets
import textwrap
from base64 import b64decode
from typing import List, Union

from cryptography import x509
from lxml.etree import QName

from ..exceptions import InvalidCertificate, InvalidInput
from ..namespaces import nsmap

PEM_HEADER = "-----BEGIN CERTIFICATE-----"
PEM_FOOTER = "-----END CERTIFICATE-----"

_pem_block = re.compile(f"{PEM_HEADER}(.+?){PEM_FOOTER}", flags=re.S)

CertificateData = Union[str, bytes, x509.Certificate]


def ds_tag(tag):
    return QName(nsmap.ds, tag)


def ec_tag(tag):
    return QName(nsmap.ec, tag)


def ensure_bytes(value, encoding="utf-8") -> bytes:
    return value if isinstance(value, bytes) else value.encode(encoding)


def ensure_str(value, encoding="utf-8") -> str:
    return value if isinstance(value, str) else value.decode(encoding)


def b64decode_text(text, what="element") -> bytes:
    """
    Decode the base64 text content of an XML element. Embedded whitespace is ignored.
    """
    try:
        return b64decode("".join((text or "").split()), validate=True)
    except binascii.Error as e:
        raise InvalidInput(f"Unable to decode base64 content of {what}: {e}") from e


def pem_blocks(data) -> List[str]:
    "Every certificate in **data**, re-wrapped as a standalone PEM string"
    bodies = _pem_block.findall(ensure_str(data, encoding="latin-1"))
    return [f"{PEM_HEADER}\n{textwrap.fill(''.join(body.split()), 64)}\n{PEM_FOOTER}\n" for body in bodies]


def load_certificate(cert: CertificateData) -> x509.Certificate:
    """
    Load a certificate given as a cryptography object, a PEM string or bytes, a bare base64 string, or DER bytes.

    :raises: :class:`saml_idp.exceptions.InvalidCertificate`
    """
    if isinstance(cert, x509.Certificate):
        return cert
    try:
        if isinstance(cert, bytes) and PEM_HEADER.encode() not in cert:
            return x509.load_der_x509_certificate(cert)
        blocks = pem_blocks(cert)
        if not blocks:
            # A bare base64 body, as found in IdP configuration and metadata
            return x509.load_der_x509_certificate(b64decode_text(cert, "certificate"))
        return x509.load_pem_x509_certificate(blocks[0].encode())
    except (ValueError, InvalidInput) as e:
        raise InvalidCertificate(f"Unable to parse X.509 certificate: {e}") from e


def load_certificate_chain(certs) -> List[x509.Certificate]:
    """
    Load the signing certificate, optionally followed by intermediates: a list of certificates, or PEM text holding
    several of them. The signing certificate comes first.
    """
    if isinstance(certs, (list, tuple)):
        return [load_certificate(cert) for cert in certs]
    if isinstance(certs, (str, bytes)):
        blocks = pem_blocks(certs)
        if len(blocks) > 1:
            return [load_certificate(block) for block in blocks]
    return [load_certificate(certs)]


def generate_id() -> str:
    # SAML IDs are xs:ID values and must not start with a digit.
    return "_" + secrets.token_hex(20)


def remove_enveloped_signature(signature) -> None:
    """
    Detach **signature** from its parent, as the enveloped-signature transform requires. Text that followed the
    signature is kept in place.
    """
    parent = signature.getparent()
    if parent is None:
        raise InvalidInput("An enveloped signature cannot be the root element")
    if signature.tail:
        previous = signature.getprevious()
        if previous is None:
            parent.text = (parent.text or "") + signature.tail
        else:
            previous.tail = (previous.tail or "") + signature.tail
    parent.remove(signature)
