from base64 import b64encode
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Union

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import dsa, ec, rsa
from cryptography.hazmat.primitives.asymmetric.padding import PKCS1v15
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat, load_pem_private_key
from lxml.etree import Element, SubElement, _Element

from .algorithms import ENVELOPED_SIGNATURE_TRANSFORM, CanonicalizationMethod, DigestAlgorithm, SignatureMethod
from .document import XmlDocument
from .dtd import add_id_doctype, remove_doctype
from .exceptions import InvalidCertificate, InvalidInput, SigningError
from .namespaces import nsmap
from .processor import XMLSignatureProcessor
from .util import ds_tag, ec_tag, ensure_bytes, generate_id, load_certificate_chain

PrivateKey = Union[rsa.RSAPrivateKey, dsa.DSAPrivateKey, ec.EllipticCurvePrivateKey]

_private_key_types = {"RSA": rsa.RSAPrivateKey, "ECDSA": ec.EllipticCurvePrivateKey, "DSA": dsa.DSAPrivateKey}


@dataclass(frozen=True)
class SignatureOptions:
    """
    Signing material and settings for :func:`sign_root_element`. Instances are never modified; per-call adjustments
    are made on copies.
    """

    key: Union[str, bytes, PrivateKey]
    "PEM-formatted private key, or a cryptography private key object"

    cert: Union[str, bytes, x509.Certificate, List]
    """
    The signing certificate: PEM (optionally followed by intermediate certificates), DER bytes, a
    :class:`cryptography.x509.Certificate`, or a list of these with the signing certificate first.
    """

    passphrase: Optional[bytes] = None
    "Passphrase to use to decrypt the key, if any"

    signature_algorithm: SignatureMethod = SignatureMethod.RSA_SHA256
    digest_algorithm: DigestAlgorithm = DigestAlgorithm.SHA256

    c14n_algorithm: CanonicalizationMethod = CanonicalizationMethod.EXCLUSIVE_XML_CANONICALIZATION_1_0
    "SAML 2.0 requires exclusive canonicalization, which is the default"

    reference_uri: Optional[str] = None
    "Set by :func:`sign_root_element` to point at the root element's ID"

    insert_after: Optional[str] = None
    """
    XPath to the element the signature should follow, e.g. ``/samlp:Response/saml:Issuer`` as SAML requires. By
    default the signature is the last child of the root element.
    """

    namespaces: Optional[Dict[str, str]] = None
    "Prefix bindings for **insert_after**"

    inclusive_ns_prefixes: Optional[List[str]] = None
    "Namespace prefixes to list in ``InclusiveNamespaces`` when canonicalizing exclusively"

    key_name: Optional[str] = None
    "Emitted as ``ds:KeyInfo/ds:KeyName`` when set"


class XMLSigner(XMLSignatureProcessor):
    """
    Produces enveloped XML Signatures over a single same-document reference.

    :param signature_algorithm: See :class:`saml_idp.SignatureMethod`. SHA-1 based methods are refused.
    :param digest_algorithm: See :class:`saml_idp.DigestAlgorithm`. SHA-1 is refused.
    :param c14n_algorithm: Canonicalization applied to both ``SignedInfo`` and the referenced element.
    :param parser: Custom :class:`lxml.etree.XMLParser` used when copying the input.
    """

    def __init__(
        self,
        signature_algorithm: SignatureMethod = SignatureMethod.RSA_SHA256,
        digest_algorithm: DigestAlgorithm = DigestAlgorithm.SHA256,
        c14n_algorithm: CanonicalizationMethod = CanonicalizationMethod.EXCLUSIVE_XML_CANONICALIZATION_1_0,
        parser=None,
    ):
        super().__init__(parser)
        self.sign_alg = SignatureMethod(signature_algorithm)
        self.digest_alg = DigestAlgorithm(digest_algorithm)
        self.c14n_alg = CanonicalizationMethod(c14n_algorithm)
        if self.sign_alg.insecure or self.digest_alg.insecure:
            raise InvalidInput("SHA1-based algorithms are not supported for signing because they are not secure")

    def sign(
        self,
        data,
        *,
        key,
        cert,
        reference_uri: str,
        passphrase: Optional[bytes] = None,
        key_name: Optional[str] = None,
        inclusive_ns_prefixes: Optional[List[str]] = None,
    ) -> _Element:
        """
        Sign the element **reference_uri** points at and return the root of a signed copy of **data**. The
        ``ds:Signature`` element is appended as the last child of the root.

        :param data: The document to sign, as an lxml tree (keeping its internal DTD subset) or element
        :param key: PEM private key, or a cryptography private key object
        :param cert: Signing certificate, optionally followed by intermediates (see :class:`SignatureOptions`)
        :param reference_uri: ``#id`` of the element to sign; it must envelop the root's last child
        :raises: :class:`saml_idp.exceptions.SigningError` if the key and certificate cannot produce a signature,
            :class:`saml_idp.exceptions.InvalidInput` if the reference cannot be resolved
        """
        if isinstance(data, (str, bytes)):
            raise InvalidInput("When using enveloped signature, **data** must be an XML element")
        try:
            cert_chain = load_certificate_chain(cert)
        except InvalidCertificate as e:
            raise SigningError(str(e)) from e
        private_key = self._load_key(key, passphrase)
        self._check_key_matches_cert(private_key, cert_chain[0])

        root = self.parse(data)
        payload = self.resolve_reference(root, reference_uri)
        # Computed before the signature joins the document, which is what the enveloped transform reproduces.
        payload_c14n = self.canonicalize(payload, self.c14n_alg, inclusive_ns_prefixes)

        signature = Element(ds_tag("Signature"), nsmap={"ds": nsmap.ds})
        signed_info = self._build_signed_info(
            signature, reference_uri, self.digest(payload_c14n, self.digest_alg), inclusive_ns_prefixes
        )
        signature_value = SubElement(signature, ds_tag("SignatureValue"))
        self._build_key_info(signature, cert_chain, key_name)
        root.append(signature)

        signed_info_c14n = self.canonicalize(signed_info, self.c14n_alg, inclusive_ns_prefixes)
        signature_value.text = b64encode(self._sign_bytes(private_key, signed_info_c14n)).decode()
        return root

    def _load_key(self, key, passphrase) -> PrivateKey:
        if key is None:
            raise SigningError("A signing key is required")
        if not isinstance(key, (str, bytes)):
            return key
        try:
            return load_pem_private_key(ensure_bytes(key), password=passphrase)
        except (ValueError, TypeError) as e:
            raise SigningError(f"Unable to load signing key: {e}") from e

    def _check_key_matches_cert(self, key, cert: x509.Certificate) -> None:
        if not isinstance(key, _private_key_types[self.sign_alg.key_type]):
            raise SigningError(f"Signature method {self.sign_alg.name} cannot be used with {type(key).__name__}")
        key_spki = key.public_key().public_bytes(Encoding.DER, PublicFormat.SubjectPublicKeyInfo)
        if key_spki != cert.public_key().public_bytes(Encoding.DER, PublicFormat.SubjectPublicKeyInfo):
            raise SigningError("Signing key does not match the public key of the signing certificate")

    def _add_c14n_method(self, parent, tag, inclusive_ns_prefixes) -> None:
        method = SubElement(parent, ds_tag(tag), Algorithm=self.c14n_alg.value)
        if inclusive_ns_prefixes and self.c14n_alg.exclusive:
            SubElement(method, ec_tag("InclusiveNamespaces"), PrefixList=" ".join(inclusive_ns_prefixes))

    def _build_signed_info(self, signature, reference_uri, digest, inclusive_ns_prefixes) -> _Element:
        signed_info = SubElement(signature, ds_tag("SignedInfo"))
        self._add_c14n_method(signed_info, "CanonicalizationMethod", inclusive_ns_prefixes)
        SubElement(signed_info, ds_tag("SignatureMethod"), Algorithm=self.sign_alg.value)

        reference = SubElement(signed_info, ds_tag("Reference"), URI=reference_uri)
        transforms = SubElement(reference, ds_tag("Transforms"))
        SubElement(transforms, ds_tag("Transform"), Algorithm=ENVELOPED_SIGNATURE_TRANSFORM)
        self._add_c14n_method(transforms, "Transform", inclusive_ns_prefixes)
        SubElement(reference, ds_tag("DigestMethod"), Algorithm=self.digest_alg.value)
        SubElement(reference, ds_tag("DigestValue")).text = b64encode(digest).decode()
        return signed_info

    def _build_key_info(self, signature, cert_chain: List[x509.Certificate], key_name: Optional[str]) -> None:
        key_info = SubElement(signature, ds_tag("KeyInfo"))
        if key_name is not None:
            SubElement(key_info, ds_tag("KeyName")).text = key_name
        x509_data = SubElement(key_info, ds_tag("X509Data"))
        for cert in cert_chain:
            SubElement(x509_data, ds_tag("X509Certificate")).text = b64encode(cert.public_bytes(Encoding.DER)).decode()

    def _sign_bytes(self, key, data: bytes) -> bytes:
        hash_algorithm = self.sign_alg.digest.hash_algorithm
        if self.sign_alg.key_type == "RSA":
            return key.sign(data, PKCS1v15(), hash_algorithm)
        if self.sign_alg.key_type == "ECDSA":
            der_signature = key.sign(data, ec.ECDSA(hash_algorithm))
            size_in_bits = key.curve.key_size
        else:
            der_signature = key.sign(data, hash_algorithm)
            size_in_bits = key.parameters().parameter_numbers().q.bit_length()
        # XML Signature carries DSA and ECDSA signatures as fixed-width r || s rather than DER.
        r, s = decode_dss_signature(der_signature)
        size = (size_in_bits + 7) // 8
        return r.to_bytes(size, "big") + s.to_bytes(size, "big")


def place_signature(doc_root: _Element, insert_after: str, namespaces: Optional[Dict[str, str]] = None) -> None:
    """
    Move the root element's ``ds:Signature`` child so that it immediately follows the first node matched by
    **insert_after**.
    """
    signature = doc_root.find("ds:Signature", namespaces=nsmap)
    if signature is None:
        raise InvalidInput("Expected to find a Signature element under the root element")
    matches = doc_root.xpath(insert_after, namespaces=namespaces)
    if not matches:
        raise InvalidInput(f"No element matched signature location {insert_after}")
    if matches[0] is doc_root:
        raise InvalidInput("The signature cannot be placed after the root element")
    matches[0].addnext(signature)


def sign_root_element(
    document: XmlDocument,
    options: SignatureOptions,
    insert_after: Optional[str] = None,
    namespaces: Optional[Dict[str, str]] = None,
) -> XmlDocument:
    """
    Sign the root element of **document** with an enveloped signature referencing it by its ``ID`` attribute, and
    return the signed document.

    If the root element has no ``ID`` attribute, one is assigned to it. The element is signed behind a synthetic DTD
    declaring ``ID`` as an ID attribute (see :mod:`saml_idp.dtd`); the returned document carries no DTD.

    :param document: Document to sign. Not modified other than by ID assignment.
    :param options: Signing key, certificate and algorithms
    :param insert_after:
        XPath to the element the signature should follow. Overrides ``options.insert_after``. SAML requires the
        signature of a Response or Assertion to follow its Issuer element.
    :param namespaces: Prefix bindings for **insert_after**. Overrides ``options.namespaces``.

    :raises: :class:`saml_idp.exceptions.SigningError` if the key and certificate cannot produce a signature
    """
    root = document.root
    if root.get("ID") is None:
        root.set("ID", generate_id())

    doc = add_id_doctype(root)
    options = replace(options, reference_uri="#" + doc.getroot().get("ID"))
    if insert_after is not None:
        options = replace(options, insert_after=insert_after)
    if namespaces is not None:
        options = replace(options, namespaces=namespaces)

    signer = XMLSigner(
        signature_algorithm=options.signature_algorithm,
        digest_algorithm=options.digest_algorithm,
        c14n_algorithm=options.c14n_algorithm,
    )
    signed_root = signer.sign(
        doc,
        key=options.key,
        cert=options.cert,
        reference_uri=options.reference_uri,
        passphrase=options.passphrase,
        key_name=options.key_name,
        inclusive_ns_prefixes=options.inclusive_ns_prefixes,
    )
    if options.insert_after:
        place_signature(signed_root, options.insert_after, options.namespaces)

    return XmlDocument(remove_doctype(signed_root))
