from typing import TYPE_CHECKING, Optional

from lxml import etree

from .namespaces import SIGNATURE, nsmap
from .processor import XMLProcessor

if TYPE_CHECKING:
    from .trust import TrustAnchor
    from .verifier import SignatureValidator


class XmlDocument:
    """
    A parsed XML document with a single root element, as exchanged with SAML service providers.

    Instances are owned by a single signing or verification call at a time. Use :meth:`parse` to load untrusted input:
    entities are never resolved and any entity reference is rejected.
    """

    signature_namespace = SIGNATURE

    def __init__(self, root: etree._Element):
        self.root = root

    @classmethod
    def parse(cls, data, parser=None) -> "XmlDocument":
        """
        :param data: XML to load
        :type data: String, bytes, lxml element or tree, or XML ElementTree Element API compatible object
        :param parser: Custom :class:`lxml.etree.XMLParser` to use instead of the default safe parser
        """
        return cls(XMLProcessor(parser).parse(data))

    @property
    def signature_node(self) -> Optional[etree._Element]:
        "The first ``ds:Signature`` element in document order, or None"
        signatures = self.root.xpath("//ds:Signature", namespaces=nsmap)
        return signatures[0] if signatures else None

    @property
    def signed(self) -> bool:
        return self.signature_node is not None

    @property
    def has_internal_dtd(self) -> bool:
        return self.root.getroottree().docinfo.internalDTD is not None

    def to_xml(self) -> str:
        """
        Serialize the root element without an XML declaration or DOCTYPE.
        """
        return etree.tostring(self.root, encoding="unicode").strip()

    def to_bytes(self) -> bytes:
        "UTF-8 form of :meth:`to_xml`"
        return etree.tostring(self.root, encoding="utf-8", xml_declaration=False).strip()

    def valid_signature(self, trust_anchor: "TrustAnchor", validator: Optional["SignatureValidator"] = None) -> bool:
        """
        Shorthand for :meth:`saml_idp.SignatureValidator.is_signature_valid`.
        """
        if validator is None:
            from .verifier import SignatureValidator

            validator = SignatureValidator()
        return validator.is_signature_valid(self, trust_anchor)

    def __str__(self):
        return self.to_xml()
