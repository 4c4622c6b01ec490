"""
XML handling shared by documents, the DTD phases, the signer and the verifier.
"""

import logging
from typing import Optional
from xml.etree import ElementTree as stdlibElementTree

from cryptography.hazmat.primitives.hashes import Hash
from lxml import etree

from .algorithms import CanonicalizationMethod, DigestAlgorithm
from .exceptions import InvalidInput
from .namespaces import nsmap

logger = logging.getLogger(__name__)


class XMLProcessor:
    """
    Parses XML safely: external entities are never resolved, the network is never consulted and any entity reference
    in the input is rejected.

    :param parser: Custom :class:`lxml.etree.XMLParser` to use instead of the safe default
    """

    def __init__(self, parser=None):
        if parser is None:
            parser = etree.XMLParser(resolve_entities=False, no_network=True)
        self.parser = parser

    def fromstring(self, data) -> etree._Element:
        if isinstance(data, str):
            # lxml refuses str input carrying an encoding declaration; received documents often have one.
            data = data.encode("utf-8")
        root = etree.fromstring(data, parser=self.parser)
        if next(root.iter(etree.Entity), None) is not None:
            raise InvalidInput("Entities are not supported in XML input")
        return root

    def tostring(self, node) -> bytes:
        return etree.tostring(node)

    def parse(self, data) -> etree._Element:
        """
        Return a root element for **data**. Elements and trees are re-parsed from their serialization, so the result
        never shares nodes with the caller's document. A tree's internal DTD subset survives the copy; an element's
        does not.
        """
        if isinstance(data, (str, bytes)):
            return self.fromstring(data)
        if isinstance(data, stdlibElementTree.Element):
            return self.fromstring(stdlibElementTree.tostring(data, encoding="utf-8"))
        return self.fromstring(self.tostring(data))


class XMLSignatureProcessor(XMLProcessor):
    """
    The XML Signature operations common to signing and verification.
    """

    def find(self, element, path: str, required=True) -> Optional[etree._Element]:
        "Find **path** (with ``ds:``-style prefixes from :data:`saml_idp.namespaces.nsmap`) below **element**"
        result = element.find(path, namespaces=nsmap)
        if required and result is None:
            raise InvalidInput(f"Expected to find XML element {path} in {element.tag}")
        return result

    def digest(self, data: bytes, algorithm: DigestAlgorithm) -> bytes:
        hasher = Hash(algorithm.hash_algorithm)
        hasher.update(data)
        return hasher.finalize()

    def canonicalize(self, node, method: CanonicalizationMethod, inclusive_ns_prefixes=None) -> bytes:
        c14n = etree.tostring(
            node,
            method="c14n",
            exclusive=method.exclusive,
            with_comments=method.with_comments,
            inclusive_ns_prefixes=inclusive_ns_prefixes if method.exclusive else None,
        )
        logger.debug("Canonicalized %s with %s: %s", node.tag, method.name, c14n)
        return c14n

    def resolve_reference(self, root, uri: Optional[str]) -> etree._Element:
        """
        Resolve a same-document reference URI (``""`` or ``#id``) against the document holding **root**.

        IDs declared by the document's internal DTD subset are looked up first. Otherwise an element carrying the
        value in an ``ID``-like attribute is searched for, and more than one match is rejected.
        """
        if uri is None:
            raise InvalidInput("References without a URI are not supported")
        if uri == "":
            return root
        if not uri.startswith("#") or uri.startswith("#xpointer("):
            raise InvalidInput(f"Only same-document ID references are supported, got {uri}")

        fragment = uri[1:]
        if root.getroottree().docinfo.internalDTD is not None:
            declared = root.xpath("id($fragment)", fragment=fragment)
            if len(declared) == 1:
                return declared[0]

        matches = root.xpath(
            "//*[@*[local-name() = 'ID' or local-name() = 'Id' or local-name() = 'id']=$fragment]",
            fragment=fragment,
        )
        if len(matches) > 1:
            raise InvalidInput(f"Ambiguous reference URI {uri} resolved to {len(matches)} nodes")
        if not matches:
            raise InvalidInput(f"Unable to resolve reference URI: {uri}")
        return matches[0]
