#!/usr/bin/env python

import datetime
import logging
import os
import sys
import unittest
from base64 import b64encode
from copy import deepcopy
from dataclasses import replace

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.asymmetric.padding import PKCS1v15
from cryptography.hazmat.primitives.serialization import Encoding, NoEncryption, PrivateFormat
from cryptography.x509.oid import NameOID
from lxml import etree

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from saml_idp import (  # noqa:E402
    CanonicalizationMethod,
    Certificate,
    DigestAlgorithm,
    Fingerprint,
    IdpConfiguration,
    InvalidCertificate,
    InvalidFingerprint,
    InvalidInput,
    MissingCertificate,
    SignatureConfiguration,
    SignatureMethod,
    SignatureOptions,
    SignatureValidator,
    SigningError,
    ValidationError,
    XMLSignatureProcessor,
    XMLSigner,
    XmlDocument,
    fingerprint_cert,
    is_signature_valid,
    namespaces,
    normalize_fingerprint,
    sign_root_element,
    trust_anchor_from_string,
)
from saml_idp.dtd import add_id_doctype, dtd_element_name, id_doctype, remove_doctype  # noqa:E402
from saml_idp.namespaces import nsmap  # noqa:E402
from saml_idp.util import ds_tag  # noqa:E402

saml_response = """<samlp:Response xmlns:samlp="urn:oasis:names:tc:SAML:2.0:protocol"
                xmlns:saml="urn:oasis:names:tc:SAML:2.0:assertion" ID="_response"
                Destination="https://sp.example.com/saml/consume" Version="2.0">
  <saml:Issuer>https://idp.example.com/saml</saml:Issuer>
  <samlp:Status>
    <samlp:StatusCode Value="urn:oasis:names:tc:SAML:2.0:status:Success"/>
  </samlp:Status>
</samlp:Response>"""

saml_namespaces = {"samlp": namespaces.PROTOCOL, "saml": namespaces.ASSERTION}


def make_certificate(key, common_name="saml-idp test"):
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=1))
        .sign(key, hashes.SHA256())
    )


def key_to_pem(key):
    return key.private_bytes(Encoding.PEM, PrivateFormat.PKCS8, NoEncryption())


class ExampleKeysTestCase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        cls.cert = make_certificate(cls.key)
        cls.key_pem = key_to_pem(cls.key)
        cls.cert_pem = cls.cert.public_bytes(Encoding.PEM).decode()
        cls.sha256_fingerprint = cls.cert.fingerprint(hashes.SHA256()).hex()
        cls.sha1_fingerprint = cls.cert.fingerprint(hashes.SHA1()).hex()

    def sign(self, xml, **kwargs):
        options = SignatureOptions(key=self.key_pem, cert=self.cert_pem)
        return sign_root_element(XmlDocument.parse(xml), options, **kwargs)


class TestNamespaces(unittest.TestCase):
    def test_registry(self):
        self.assertEqual(namespaces.METADATA, "urn:oasis:names:tc:SAML:2.0:metadata")
        self.assertEqual(namespaces.ASSERTION, "urn:oasis:names:tc:SAML:2.0:assertion")
        self.assertEqual(namespaces.SIGNATURE, "http://www.w3.org/2000/09/xmldsig#")
        self.assertEqual(namespaces.PROTOCOL, "urn:oasis:names:tc:SAML:2.0:protocol")
        self.assertEqual(namespaces.Statuses.SUCCESS, "urn:oasis:names:tc:SAML:2.0:status:Success")
        self.assertEqual(namespaces.Consents.UNSPECIFIED, "urn:oasis:names:tc:SAML:2.0:consent:unspecified")
        self.assertEqual(
            namespaces.AuthnContextClassRef.PASSWORD_PROTECTED,
            "urn:oasis:names:tc:SAML:2.0:ac:classes:PasswordProtectedTransport",
        )
        self.assertEqual(namespaces.AuthnContextClassRef.PASSWORD, "urn:oasis:names:tc:SAML:2.0:ac:classes:Password")
        self.assertEqual(namespaces.Methods.BEARER, "urn:oasis:names:tc:SAML:2.0:cm:bearer")
        self.assertEqual(namespaces.AttributeFormats.URI, "urn:oasis:names:tc:SAML:2.0:attrname-format:uri")
        self.assertEqual(
            namespaces.NameIdFormats.EMAIL_ADDRESS, "urn:oasis:names:tc:SAML:1.1:nameid-format:emailAddress"
        )
        self.assertEqual(namespaces.NameIdFormats.TRANSIENT, "urn:oasis:names:tc:SAML:2.0:nameid-format:transient")
        self.assertEqual(namespaces.NameIdFormats.PERSISTENT, "urn:oasis:names:tc:SAML:2.0:nameid-format:persistent")
        self.assertEqual(nsmap.ds, namespaces.SIGNATURE)
        self.assertEqual(nsmap["samlp"], namespaces.PROTOCOL)


class TestFingerprint(ExampleKeysTestCase):
    def test_fingerprint_cert(self):
        self.assertEqual(fingerprint_cert(self.cert_pem), self.sha256_fingerprint)
        self.assertEqual(fingerprint_cert(self.cert.public_bytes(Encoding.DER)), self.sha256_fingerprint)
        self.assertEqual(fingerprint_cert(self.cert), self.sha256_fingerprint)
        self.assertEqual(fingerprint_cert(self.cert_pem, DigestAlgorithm.SHA1), self.sha1_fingerprint)
        self.assertEqual(len(fingerprint_cert(self.cert_pem, DigestAlgorithm.SHA1)), 40)
        with self.assertRaises(InvalidCertificate):
            fingerprint_cert(b"not a certificate")

    def test_normalization(self):
        self.assertEqual(normalize_fingerprint("AA:bb-CC dd"), "aabbccdd")
        colon_separated = ":".join(self.sha256_fingerprint[i : i + 2] for i in range(0, 64, 2)).upper()
        self.assertEqual(Fingerprint(colon_separated).normalized, self.sha256_fingerprint)
        self.assertEqual(Fingerprint(colon_separated).normalized, Fingerprint(self.sha256_fingerprint).normalized)

    def test_digest_selection(self):
        self.assertEqual(Fingerprint("a" * 64).digest_algorithm, DigestAlgorithm.SHA256)
        self.assertEqual(Fingerprint("A:" * 40).digest_algorithm, DigestAlgorithm.SHA1)
        for length in 0, 32, 39, 41, 63, 65, 128:
            with self.assertRaisesRegex(InvalidFingerprint, "Unexpected certificate fingerprint length"):
                Fingerprint("a" * length).digest_algorithm

    def test_trust_anchors(self):
        self.assertEqual(Certificate(self.cert_pem).to_fingerprint(), Fingerprint(self.sha256_fingerprint))
        self.assertIsInstance(trust_anchor_from_string(self.cert_pem), Certificate)
        self.assertIsInstance(trust_anchor_from_string(self.sha1_fingerprint), Fingerprint)
        self.assertIsInstance(trust_anchor_from_string(self.cert_pem.encode()), Certificate)


class TestIdDoctype(unittest.TestCase):
    def test_dtd_element_name(self):
        self.assertEqual(dtd_element_name(etree.fromstring('<ns:Response xmlns:ns="urn:x"/>')), "ns:Response")
        self.assertEqual(dtd_element_name(etree.fromstring('<Response xmlns="urn:x"/>')), "Response")
        self.assertEqual(dtd_element_name(etree.fromstring("<Response/>")), "Response")
        self.assertEqual(dtd_element_name(etree.fromstring(saml_response)), "samlp:Response")

    def test_id_doctype(self):
        self.assertEqual(
            id_doctype("ns:Response"),
            "<!DOCTYPE ns:Response [ <!ELEMENT ns:Response (#PCDATA)> <!ATTLIST ns:Response ID ID #IMPLIED> ]>",
        )

    def test_add_and_remove_doctype(self):
        for xml in '<ns:Response xmlns:ns="urn:x" ID="_x"><ns:Issuer/></ns:Response>', '<Response ID="_x"/>':
            element = etree.fromstring(xml)
            tree = add_id_doctype(element)
            self.assertIsNotNone(tree.docinfo.internalDTD)
            self.assertIsNone(element.getroottree().docinfo.internalDTD)
            self.assertEqual(tree.getroot().xpath("id('_x')"), [tree.getroot()])
            self.assertIs(XMLSignatureProcessor().resolve_reference(tree.getroot(), "#_x"), tree.getroot())

            stripped = remove_doctype(tree.getroot())
            self.assertIsNone(stripped.getroottree().docinfo.internalDTD)
            self.assertEqual(etree.tostring(stripped), etree.tostring(element))

    def test_ambiguous_reference(self):
        root = etree.fromstring('<a><b ID="x"/><c ID="x"/></a>')
        with self.assertRaisesRegex(InvalidInput, "Ambiguous reference URI"):
            XMLSignatureProcessor().resolve_reference(root, "#x")
        with self.assertRaisesRegex(InvalidInput, "Unable to resolve reference URI"):
            XMLSignatureProcessor().resolve_reference(root, "#y")


class TestXmlDocument(unittest.TestCase):
    def test_serialization(self):
        doc = XmlDocument.parse(b'<?xml version="1.0" encoding="UTF-8"?>\n<a ID="x"><b>\xc3\xa9</b></a>\n')
        self.assertEqual(doc.to_xml(), '<a ID="x"><b>é</b></a>')
        self.assertEqual(doc.to_bytes(), '<a ID="x"><b>é</b></a>'.encode("utf-8"))
        self.assertFalse(doc.signed)
        self.assertIsNone(doc.signature_node)
        self.assertFalse(doc.has_internal_dtd)
        self.assertEqual(doc.signature_namespace, namespaces.SIGNATURE)

    def test_text_with_encoding_declaration(self):
        doc = XmlDocument.parse('<?xml version="1.0" encoding="UTF-8"?>\n<a ID="x"><b>é</b></a>')
        self.assertEqual(doc.to_xml(), '<a ID="x"><b>é</b></a>')

    def test_entities_rejected(self):
        with self.assertRaisesRegex(InvalidInput, "Entities are not supported"):
            XmlDocument.parse('<!DOCTYPE a [<!ENTITY e "x">]><a>&e;</a>')


class TestSignRootElement(ExampleKeysTestCase):
    def test_minimal_response(self):
        signed = self.sign('<Response ID="_x"/>')
        self.assertTrue(signed.signed)
        self.assertEqual(len(signed.root.findall(".//ds:Signature", namespaces=nsmap)), 1)
        self.assertEqual(signed.root[-1].tag, ds_tag("Signature"))
        reference = signed.root.find("ds:Signature/ds:SignedInfo/ds:Reference", namespaces=nsmap)
        self.assertEqual(reference.get("URI"), "#_x")
        cert_text = signed.root.find(".//ds:X509Certificate", namespaces=nsmap).text
        self.assertEqual(cert_text, b64encode(self.cert.public_bytes(Encoding.DER)).decode())

        received = XmlDocument.parse(signed.to_bytes())
        self.assertTrue(SignatureValidator().is_signature_valid(received, Fingerprint(self.sha256_fingerprint)))

    def test_no_dtd_in_output(self):
        signed = self.sign(saml_response)
        self.assertFalse(signed.has_internal_dtd)
        self.assertNotIn("DOCTYPE", signed.to_xml())
        self.assertNotIn("<?xml", signed.to_xml())
        self.assertEqual(signed.to_xml(), signed.to_xml().strip())

    def test_assigns_id(self):
        doc = XmlDocument.parse("<Response><Issuer>idp</Issuer></Response>")
        signed = sign_root_element(doc, SignatureOptions(key=self.key_pem, cert=self.cert_pem))
        root_id = signed.root.get("ID")
        self.assertTrue(root_id.startswith("_"))
        self.assertEqual(doc.root.get("ID"), root_id)
        reference = signed.root.find(".//ds:Reference", namespaces=nsmap)
        self.assertEqual(reference.get("URI"), "#" + root_id)
        self.assertTrue(signed.valid_signature(Fingerprint(self.sha256_fingerprint)))

    def test_options_not_modified(self):
        options = SignatureOptions(key=self.key_pem, cert=self.cert_pem)
        sign_root_element(XmlDocument.parse(saml_response), options, "/samlp:Response/saml:Issuer", saml_namespaces)
        self.assertIsNone(options.reference_uri)
        self.assertIsNone(options.insert_after)

    def test_signature_after_issuer(self):
        signed = self.sign(saml_response, insert_after="/samlp:Response/saml:Issuer", namespaces=saml_namespaces)
        self.assertEqual(signed.root[0].tag, "{%s}Issuer" % namespaces.ASSERTION)
        self.assertEqual(signed.root[1].tag, ds_tag("Signature"))
        self.assertEqual(signed.root[2].tag, "{%s}Status" % namespaces.PROTOCOL)
        self.assertTrue(is_signature_valid(XmlDocument.parse(signed.to_xml()), Fingerprint(self.sha1_fingerprint)))

        options = SignatureOptions(
            key=self.key_pem,
            cert=self.cert_pem,
            insert_after="/samlp:Response/saml:Issuer",
            namespaces=saml_namespaces,
        )
        signed = sign_root_element(XmlDocument.parse(saml_response), options)
        self.assertEqual(signed.root[1].tag, ds_tag("Signature"))

        with self.assertRaisesRegex(InvalidInput, "No element matched"):
            self.sign(saml_response, insert_after="/samlp:Response/saml:Subject", namespaces=saml_namespaces)
        with self.assertRaisesRegex(InvalidInput, "after the root element"):
            self.sign(saml_response, insert_after="/samlp:Response", namespaces=saml_namespaces)

    def test_inclusive_namespace_prefixes(self):
        options = SignatureOptions(key=self.key_pem, cert=self.cert_pem, inclusive_ns_prefixes=["saml"])
        signed = sign_root_element(XmlDocument.parse(saml_response), options)
        prefix_lists = signed.root.findall(".//ec:InclusiveNamespaces", namespaces=nsmap)
        self.assertEqual([element.get("PrefixList") for element in prefix_lists], ["saml", "saml"])
        self.assertTrue(signed.valid_signature(Fingerprint(self.sha256_fingerprint)))

    def test_default_namespace_root(self):
        signed = self.sign('<Response xmlns="urn:oasis:names:tc:SAML:2.0:protocol" ID="_d"><Issuer/></Response>')
        self.assertTrue(signed.valid_signature(Certificate(self.cert_pem)))

    def test_key_and_certificate_mismatch(self):
        other_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        options = SignatureOptions(key=self.key_pem, cert=self.cert_pem)
        with self.assertRaisesRegex(SigningError, "does not match"):
            sign_root_element(XmlDocument.parse('<Response ID="_x"/>'), replace(options, key=key_to_pem(other_key)))
        with self.assertRaisesRegex(SigningError, "Unable to load signing key"):
            sign_root_element(XmlDocument.parse('<Response ID="_x"/>'), replace(options, key=b"junk"))
        with self.assertRaises(SigningError):
            sign_root_element(XmlDocument.parse('<Response ID="_x"/>'), replace(options, cert=b"junk"))

    def test_sha1_refused(self):
        options = SignatureOptions(key=self.key_pem, cert=self.cert_pem, digest_algorithm=DigestAlgorithm.SHA1)
        with self.assertRaisesRegex(InvalidInput, "SHA1"):
            sign_root_element(XmlDocument.parse('<Response ID="_x"/>'), options)

    def test_ecdsa(self):
        key = ec.generate_private_key(curve=ec.SECP256R1())
        cert = make_certificate(key)
        options = SignatureOptions(key=key, cert=cert, signature_algorithm=SignatureMethod.ECDSA_SHA256)
        signed = sign_root_element(XmlDocument.parse(saml_response), options)
        self.assertTrue(signed.valid_signature(Fingerprint(fingerprint_cert(cert))))

        with self.assertRaisesRegex(SigningError, "cannot be used with"):
            rsa_options = replace(options, signature_algorithm=SignatureMethod.RSA_SHA256)
            sign_root_element(XmlDocument.parse(saml_response), rsa_options)

    def test_idp_configuration(self):
        config = IdpConfiguration(x509_certificate=self.cert_pem, secret_key=self.key_pem)
        self.assertEqual(config.fingerprint(), self.sha256_fingerprint)
        self.assertEqual(config.fingerprint(DigestAlgorithm.SHA1), self.sha1_fingerprint)
        options = config.signature_options(key_name="idp")
        self.assertEqual(options.key_name, "idp")
        signed = sign_root_element(XmlDocument.parse(saml_response), options)
        self.assertEqual(signed.root.find(".//ds:KeyName", namespaces=nsmap).text, "idp")
        self.assertTrue(signed.valid_signature(Fingerprint(config.fingerprint())))
        with self.assertRaises(InvalidInput):
            IdpConfiguration(x509_certificate=self.cert_pem).signature_options()


class TestSignatureValidator(ExampleKeysTestCase):
    def setUp(self):
        self.logger = logging.getLogger("test.saml_idp")
        self.validator = SignatureValidator(logger=self.logger)
        self.signed = self.sign(saml_response, insert_after="/samlp:Response/saml:Issuer", namespaces=saml_namespaces)
        self.signed_xml = self.signed.to_bytes()
        self.anchor = Fingerprint(self.sha256_fingerprint)

    def received(self, data=None):
        return XmlDocument.parse(self.signed_xml if data is None else data)

    def test_valid(self):
        self.assertTrue(self.validator.is_signature_valid(self.received(), self.anchor))
        self.assertTrue(self.validator.is_signature_valid(self.signed_xml, self.anchor))
        self.assertTrue(self.validator.is_signature_valid(self.received(), Fingerprint(self.sha1_fingerprint.upper())))
        self.assertTrue(self.validator.is_signature_valid(self.received(), Certificate(self.cert_pem)))
        self.assertTrue(self.validator.is_signature_valid(self.received(), trust_anchor_from_string(self.cert_pem)))

    def test_unsigned_document(self):
        self.assertTrue(self.validator.is_signature_valid(XmlDocument.parse(saml_response), Fingerprint("00")))
        self.assertTrue(XmlDocument.parse("<Response/>").valid_signature(Certificate(b"")))

    def test_fingerprint_mismatch(self):
        with self.assertLogs("test.saml_idp", level="INFO") as cm:
            self.assertFalse(self.validator.is_signature_valid(self.received(), Fingerprint("ab" * 32)))
        self.assertIn("Certificate did not match expected fingerprint", cm.output[0])

        other_cert = make_certificate(rsa.generate_private_key(public_exponent=65537, key_size=2048))
        with self.assertLogs("test.saml_idp", level="INFO"):
            anchor = Certificate(other_cert.public_bytes(Encoding.PEM))
            self.assertFalse(self.validator.is_signature_valid(self.received(), anchor))

    def test_unexpected_fingerprint_length(self):
        with self.assertRaises(ValidationError):
            self.validator.is_signature_valid(self.received(), Fingerprint(self.sha256_fingerprint[:-2]))
        with self.assertRaises(InvalidFingerprint):
            self.validator.is_signature_valid(self.received(), Fingerprint("ab" * 16))

    def test_missing_certificate(self):
        doc = self.received()
        key_info = doc.root.find(".//ds:KeyInfo", namespaces=nsmap)
        key_info.getparent().remove(key_info)
        with self.assertRaisesRegex(MissingCertificate, "Certificate element missing"):
            self.validator.is_signature_valid(doc, self.anchor)

    def test_malformed_certificate(self):
        doc = self.received()
        doc.root.find(".//ds:X509Certificate", namespaces=nsmap).text = b64encode(b"not DER").decode()
        with self.assertRaises(InvalidCertificate):
            self.validator.is_signature_valid(doc, self.anchor)

    def test_tampered_content(self):
        for original, replacement in (
            (b"https://sp.example.com/saml/consume", b"https://evil.example.com/saml/consume"),
            (b"https://idp.example.com/saml</saml:Issuer>", b"https://evil.example.com</saml:Issuer>"),
            (b'Version="2.0"', b'Version="2.1"'),
            (b"status:Success", b"status:Requester"),
        ):
            self.assertIn(original, self.signed_xml)
            with self.assertLogs("test.saml_idp", level="INFO") as cm:
                tampered = self.received(self.signed_xml.replace(original, replacement))
                self.assertFalse(self.validator.is_signature_valid(tampered, self.anchor))
            self.assertIn("Signature validation error", cm.output[0])

    def test_tampered_id(self):
        with self.assertLogs("test.saml_idp", level="INFO") as cm:
            tampered = self.received(self.signed_xml.replace(b'ID="_response"', b'ID="_other"'))
            self.assertFalse(self.validator.is_signature_valid(tampered, self.anchor))
        self.assertIn("Unable to resolve reference URI", cm.output[0])

    def test_tampered_signature_value(self):
        doc = self.received()
        doc.root.find(".//ds:SignatureValue", namespaces=nsmap).text = b64encode(b"\x01" * 256).decode()
        with self.assertLogs("test.saml_idp", level="INFO"):
            self.assertFalse(self.validator.is_signature_valid(doc, self.anchor))

    def test_wrapped_signature(self):
        original = self.received().root
        signature = original.find("ds:Signature", namespaces=nsmap)
        original.remove(signature)
        wrapper = etree.Element("{%s}Response" % namespaces.PROTOCOL, ID="_evil")
        wrapper.append(signature)
        extensions = etree.SubElement(wrapper, "{%s}Extensions" % namespaces.PROTOCOL)
        extensions.append(original)
        with self.assertLogs("test.saml_idp", level="INFO") as cm:
            self.assertFalse(self.validator.is_signature_valid(XmlDocument(wrapper), self.anchor))
        self.assertIn("does not envelop the signature", cm.output[0])

    def resign(self, doc):
        signed_info = doc.root.find(".//ds:SignedInfo", namespaces=nsmap)
        method = CanonicalizationMethod.EXCLUSIVE_XML_CANONICALIZATION_1_0
        c14n = XMLSignatureProcessor().canonicalize(signed_info, method)
        signature_value = self.key.sign(c14n, PKCS1v15(), hashes.SHA256())
        doc.root.find(".//ds:SignatureValue", namespaces=nsmap).text = b64encode(signature_value).decode()
        return doc

    def test_single_enveloped_reference(self):
        doc = self.received()
        signed_info = doc.root.find(".//ds:SignedInfo", namespaces=nsmap)
        signed_info.append(deepcopy(signed_info.find("ds:Reference", namespaces=nsmap)))
        with self.assertLogs("test.saml_idp", level="INFO") as cm:
            self.assertFalse(self.validator.is_signature_valid(self.resign(doc), self.anchor))
        self.assertIn("Expected exactly one Reference", cm.output[0])

        doc = self.received()
        self.assertTrue(self.validator.is_signature_valid(self.resign(doc), self.anchor))
        for transform in doc.root.iterfind(".//ds:Transform", namespaces=nsmap):
            if transform.get("Algorithm") == "http://www.w3.org/2000/09/xmldsig#enveloped-signature":
                transform.getparent().remove(transform)
        with self.assertLogs("test.saml_idp", level="INFO") as cm:
            self.assertFalse(self.validator.is_signature_valid(self.resign(doc), self.anchor))
        self.assertIn("does not use the enveloped-signature transform", cm.output[0])

    def test_ambiguous_key_value(self):
        doc = self.received()
        other_key = rsa.generate_private_key(public_exponent=65537, key_size=2048).public_key()
        key_value = etree.SubElement(doc.root.find(".//ds:KeyInfo", namespaces=nsmap), ds_tag("KeyValue"))
        rsa_key_value = etree.SubElement(key_value, ds_tag("RSAKeyValue"))
        etree.SubElement(rsa_key_value, ds_tag("Modulus")).text = b64encode(
            other_key.public_numbers().n.to_bytes(256, "big")
        ).decode()
        etree.SubElement(rsa_key_value, ds_tag("Exponent")).text = b64encode(
            other_key.public_numbers().e.to_bytes(3, "big")
        ).decode()
        with self.assertLogs("test.saml_idp", level="INFO") as cm:
            self.assertFalse(self.validator.is_signature_valid(doc, self.anchor))
        self.assertIn("represent different public keys", cm.output[0])

    def test_text_with_encoding_declaration(self):
        text = '<?xml version="1.0" encoding="UTF-8"?>\n' + self.signed.to_xml()
        self.assertTrue(self.validator.is_signature_valid(text, self.anchor))
        self.assertTrue(XmlDocument.parse(text).valid_signature(self.anchor))

    def test_sha1_signed_document(self):
        # Service providers still sign with SHA-1, which the IdP itself never does.
        signer = XMLSigner()
        signer.sign_alg, signer.digest_alg = SignatureMethod.RSA_SHA1, DigestAlgorithm.SHA1
        root = signer.sign(etree.fromstring(saml_response), key=self.key, cert=self.cert, reference_uri="#_response")
        doc = XmlDocument.parse(etree.tostring(root))
        signature_method = doc.root.find(".//ds:SignatureMethod", namespaces=nsmap)
        self.assertEqual(signature_method.get("Algorithm"), SignatureMethod.RSA_SHA1.value)
        digest_method = doc.root.find(".//ds:DigestMethod", namespaces=nsmap)
        self.assertEqual(digest_method.get("Algorithm"), DigestAlgorithm.SHA1.value)
        self.assertTrue(self.validator.is_signature_valid(doc, self.anchor))
        self.assertTrue(self.validator.is_signature_valid(doc, Fingerprint(self.sha1_fingerprint)))

        strict = SignatureValidator(logger=self.logger, expect_config=SignatureConfiguration.strict())
        with self.assertLogs("test.saml_idp", level="INFO") as cm:
            self.assertFalse(strict.is_signature_valid(doc, self.anchor))
        self.assertIn("RSA_SHA1 forbidden by configuration", cm.output[0])
        self.assertTrue(strict.is_signature_valid(self.received(), self.anchor))

    def test_trust_anchor_type(self):
        with self.assertRaises(InvalidInput):
            self.validator.is_signature_valid(self.received(), self.sha256_fingerprint)


if __name__ == "__main__":
    unittest.main()
