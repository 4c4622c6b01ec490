import logging
import traceback
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Union

import cryptography.exceptions
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import dsa, ec, rsa
from cryptography.hazmat.primitives.asymmetric.padding import PKCS1v15
from cryptography.hazmat.primitives.asymmetric.utils import encode_dss_signature
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from lxml import etree

from .algorithms import ENVELOPED_SIGNATURE_TRANSFORM, CanonicalizationMethod, DigestAlgorithm, SignatureMethod
from .document import XmlDocument
from .exceptions import InvalidCertificate, InvalidDigest, InvalidInput, InvalidSignature, MissingCertificate
from .fingerprint import fingerprint_cert
from .namespaces import nsmap
from .processor import XMLSignatureProcessor
from .trust import Certificate, Fingerprint, TrustAnchor
from .util import b64decode_text, load_certificate, remove_enveloped_signature

logger = logging.getLogger(__name__)

_public_key_types = {"RSA": rsa.RSAPublicKey, "ECDSA": ec.EllipticCurvePublicKey, "DSA": dsa.DSAPublicKey}


@dataclass(frozen=True)
class SignatureConfiguration:
    """
    Properties a received signature must have. The defaults accept every supported algorithm, including the SHA-1
    based ones many service providers still sign with; use :meth:`strict` to refuse those.
    """

    signature_methods: FrozenSet[SignatureMethod] = frozenset(SignatureMethod)
    "Acceptable ``SignatureMethod`` algorithms"

    digest_algorithms: FrozenSet[DigestAlgorithm] = frozenset(DigestAlgorithm)
    "Acceptable reference ``DigestMethod`` algorithms"

    ignore_ambiguous_key_info: bool = False
    """
    Ignore a ``KeyValue`` element that does not match the X.509 certificate used for verifying. The presence of both
    is an ambiguity and a security hazard, so by default such signatures are rejected.
    """

    @classmethod
    def strict(cls, **kwargs) -> "SignatureConfiguration":
        "A configuration refusing SHA-1 signature methods and digests"
        return cls(
            signature_methods=frozenset(method for method in SignatureMethod if not method.insecure),
            digest_algorithms=frozenset(digest for digest in DigestAlgorithm if not digest.insecure),
            **kwargs,
        )


class XMLVerifier(XMLSignatureProcessor):
    """
    Checks the first ``ds:Signature`` of a document against a given certificate. The signature must hold exactly one
    reference, to an element that encloses the signature, with the enveloped-signature transform.

    Establishing that the certificate is trusted is up to the caller; :class:`SignatureValidator` does this by
    fingerprint before calling :meth:`verify`.
    """

    def verify(
        self,
        root: etree._Element,
        *,
        x509_cert: Union[str, bytes, x509.Certificate],
        expect_config: SignatureConfiguration = SignatureConfiguration(),
    ) -> None:
        """
        :param root: Root element of the received document
        :param x509_cert: The certificate whose public key must have produced the signature
        :param expect_config: Algorithms and key information to accept
        :raises: :class:`saml_idp.exceptions.InvalidSignature` or :class:`saml_idp.exceptions.InvalidInput` if the
            signature does not verify
        """
        public_key = load_certificate(x509_cert).public_key()
        signatures = root.xpath("//ds:Signature", namespaces=nsmap)
        if not signatures:
            raise InvalidInput("No Signature element found")
        signature = signatures[0]

        signed_info = self.find(signature, "ds:SignedInfo")
        c14n_method_node = self.find(signed_info, "ds:CanonicalizationMethod")
        c14n_method = CanonicalizationMethod(c14n_method_node.get("Algorithm"))
        signature_method = SignatureMethod(self.find(signed_info, "ds:SignatureMethod").get("Algorithm"))
        if signature_method not in expect_config.signature_methods:
            raise InvalidInput(f"Signature method {signature_method.name} forbidden by configuration")

        key_value = self.find(signature, "ds:KeyInfo/ds:KeyValue", required=False)
        if key_value is not None and not expect_config.ignore_ambiguous_key_info:
            if not self._key_value_matches(key_value, public_key):
                raise InvalidInput(
                    "Both X509Data and KeyValue found and they represent different public keys. "
                    "Use SignatureConfiguration(ignore_ambiguous_key_info=True) to validate using X509Data only."
                )

        signed_info_c14n = self.canonicalize(signed_info, c14n_method, self._inclusive_ns_prefixes(c14n_method_node))
        signature_value = b64decode_text(self.find(signature, "ds:SignatureValue").text, "SignatureValue")
        self._verify_signature_value(public_key, signature_method, signature_value, signed_info_c14n)

        references = signed_info.findall("ds:Reference", namespaces=nsmap)
        if len(references) != 1:
            raise InvalidSignature(f"Expected exactly one Reference in SignedInfo, found {len(references)}")
        self._verify_reference(root, signature, references[0], expect_config)

    def _inclusive_ns_prefixes(self, method_node) -> Optional[List[str]]:
        inclusive_namespaces = method_node.find("ec:InclusiveNamespaces", namespaces=nsmap)
        if inclusive_namespaces is None:
            return None
        return inclusive_namespaces.get("PrefixList", "").split()

    def _verify_signature_value(self, public_key, method: SignatureMethod, signature_value: bytes, data: bytes) -> None:
        if not isinstance(public_key, _public_key_types[method.key_type]):
            raise InvalidInput(f"Certificate public key cannot verify a {method.name} signature")
        hash_algorithm = method.digest.hash_algorithm
        try:
            if method.key_type == "RSA":
                public_key.verify(signature_value, data, PKCS1v15(), hash_algorithm)
                return
            half = len(signature_value) // 2
            der_signature = encode_dss_signature(
                int.from_bytes(signature_value[:half], "big"), int.from_bytes(signature_value[half:], "big")
            )
            if method.key_type == "ECDSA":
                public_key.verify(der_signature, data, ec.ECDSA(hash_algorithm))
            else:
                public_key.verify(der_signature, data, hash_algorithm)
        except cryptography.exceptions.InvalidSignature as e:
            raise InvalidSignature(f"Signature verification failed ({method.name})") from e

    def _verify_reference(self, root, signature, reference, expect_config: SignatureConfiguration) -> None:
        uri = reference.get("URI")
        digest_algorithm = DigestAlgorithm(self.find(reference, "ds:DigestMethod").get("Algorithm"))
        if digest_algorithm not in expect_config.digest_algorithms:
            raise InvalidInput(f"Digest algorithm {digest_algorithm.name} forbidden by configuration")

        transforms = reference.findall("ds:Transforms/ds:Transform", namespaces=nsmap)
        algorithms = [transform.get("Algorithm") for transform in transforms]
        if ENVELOPED_SIGNATURE_TRANSFORM not in algorithms:
            raise InvalidSignature(f"Reference {uri} does not use the enveloped-signature transform")
        c14n_transform = None
        for transform, algorithm in zip(transforms, algorithms):
            if CanonicalizationMethod.is_canonicalization(algorithm):
                c14n_transform = transform
            elif algorithm != ENVELOPED_SIGNATURE_TRANSFORM:
                raise InvalidInput(f"Unsupported transform: {algorithm}")

        # The signed element must contain the signature; otherwise the signature may have been moved next to a
        # forged element carrying the signed element's content elsewhere in the document.
        payload = self.resolve_reference(root, uri)
        if not any(ancestor is payload for ancestor in signature.iterancestors()):
            raise InvalidSignature(f"Reference {uri} does not envelop the signature")

        # Apply the enveloped transform to a copy, leaving the caller's document untouched.
        copied_root = self.parse(root.getroottree())
        copied_payload = self.resolve_reference(copied_root, uri)
        remove_enveloped_signature(copied_root.xpath("//ds:Signature", namespaces=nsmap)[0])

        if c14n_transform is None:
            payload_c14n = self.canonicalize(copied_payload, CanonicalizationMethod.CANONICAL_XML_1_0)
        else:
            payload_c14n = self.canonicalize(
                copied_payload,
                CanonicalizationMethod(c14n_transform.get("Algorithm")),
                self._inclusive_ns_prefixes(c14n_transform),
            )

        digest_value = b64decode_text(self.find(reference, "ds:DigestValue").text, "DigestValue")
        if digest_value != self.digest(payload_c14n, digest_algorithm):
            raise InvalidDigest(f"Digest mismatch for reference {uri}")

    def _key_value_matches(self, key_value, public_key) -> bool:
        def integer(parent, tag):
            return int.from_bytes(b64decode_text(self.find(parent, tag).text, tag), "big")

        rsa_key_value = self.find(key_value, "ds:RSAKeyValue", required=False)
        if rsa_key_value is not None:
            if not isinstance(public_key, rsa.RSAPublicKey):
                return False
            numbers = public_key.public_numbers()
            modulus, exponent = integer(rsa_key_value, "ds:Modulus"), integer(rsa_key_value, "ds:Exponent")
            return (modulus, exponent) == (numbers.n, numbers.e)

        dsa_key_value = self.find(key_value, "ds:DSAKeyValue", required=False)
        if dsa_key_value is not None:
            if not isinstance(public_key, dsa.DSAPublicKey):
                return False
            numbers = public_key.public_numbers()
            return integer(dsa_key_value, "ds:Y") == numbers.y and all(
                integer(dsa_key_value, f"ds:{name}") == getattr(numbers.parameter_numbers, name.lower())
                for name in ("P", "Q", "G")
                if dsa_key_value.find(f"ds:{name}", namespaces=nsmap) is not None
            )

        ec_key_value = self.find(key_value, "dsig11:ECKeyValue", required=False)
        if ec_key_value is not None:
            if not isinstance(public_key, ec.EllipticCurvePublicKey):
                return False
            point = b64decode_text(self.find(ec_key_value, "dsig11:PublicKey").text, "PublicKey")
            return point == public_key.public_bytes(Encoding.X962, PublicFormat.UncompressedPoint)

        raise InvalidInput("Unsupported KeyValue: expected RSAKeyValue, DSAKeyValue or ECKeyValue")


class SignatureValidator:
    """
    Decide whether a SAML document received from a service provider (or another IdP) carries a trusted signature.

    Trust rests on the signing certificate's fingerprint alone; no certificate chain is built. Negative outcomes
    (fingerprint mismatch, broken or tampered signature) are logged at INFO level and reported as ``False``. Hard
    failures, where the certificate material needed to decide is missing or unusable, raise
    :class:`saml_idp.exceptions.ValidationError`.

    :param logger: Logger receiving validation failures. Defaults to this module's logger.
    :param expect_config: Signature properties to enforce, see :class:`SignatureConfiguration`.
    :param parser: Custom XML parser for documents given as text and for the verifier's working copies.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        expect_config: SignatureConfiguration = SignatureConfiguration(),
        parser=None,
    ):
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.expect_config = expect_config
        self.parser = parser

    def is_signature_valid(self, document: XmlDocument, trust_anchor: TrustAnchor) -> bool:
        """
        :param document: The received document, as an :class:`saml_idp.XmlDocument` or anything it can parse
        :param trust_anchor: The :class:`saml_idp.Fingerprint` or :class:`saml_idp.Certificate` to trust

        :raises:
            :class:`saml_idp.exceptions.MissingCertificate` if the signature has no X509Certificate element,
            :class:`saml_idp.exceptions.InvalidCertificate` if that certificate cannot be parsed,
            :class:`saml_idp.exceptions.InvalidFingerprint` if the fingerprint length matches no known digest
        """
        if not isinstance(document, XmlDocument):
            document = XmlDocument.parse(document, parser=self.parser)
        if not isinstance(trust_anchor, (Fingerprint, Certificate)):
            raise InvalidInput(f"Expected a Fingerprint or Certificate trust anchor, got {type(trust_anchor).__name__}")

        # An unsigned document is passed through; requiring a signature is the caller's decision.
        signature = document.signature_node
        if signature is None:
            return True

        cert_element = signature.find("ds:KeyInfo/ds:X509Data/ds:X509Certificate", namespaces=nsmap)
        if cert_element is None:
            raise MissingCertificate("Certificate element missing in response (ds:X509Certificate)")
        try:
            cert_der = b64decode_text(cert_element.text, "X509Certificate")
        except InvalidInput as e:
            raise InvalidCertificate(str(e)) from e
        cert = load_certificate(cert_der)

        fingerprint = trust_anchor.to_fingerprint()
        if fingerprint_cert(cert, fingerprint.digest_algorithm) != fingerprint.normalized:
            self.logger.info("Certificate did not match expected fingerprint: %s", fingerprint.value)
            return False

        try:
            XMLVerifier(self.parser).verify(document.root, x509_cert=cert, expect_config=self.expect_config)
        except (cryptography.exceptions.InvalidSignature, InvalidInput) as e:
            self.logger.info("Signature validation error: %s", e)
            self.logger.info(
                "Signature validation error: %s", "".join(traceback.format_tb(e.__traceback__, limit=10)).rstrip()
            )
            return False
        return True


def is_signature_valid(
    document: XmlDocument, trust_anchor: TrustAnchor, logger: Optional[logging.Logger] = None
) -> bool:
    """
    Shorthand for ``SignatureValidator(logger=logger).is_signature_valid(document, trust_anchor)``.
    """
    return SignatureValidator(logger=logger).is_signature_valid(document, trust_anchor)
