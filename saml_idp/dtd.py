"""
Synthetic ID-type DTD handling for enveloped SAML signatures.

A signature reference such as ``URI="#_abc"`` points at the element whose ``ID`` attribute has that value. XML only
knows an attribute is an ID when a DTD declares it so, and validators differ in how they resolve undeclared ones. Before
signing, the element is therefore re-parsed behind a minimal internal subset declaring ``ID`` as type ID; after
signing, the subset is dropped again so the published document carries no DTD.

The steps are kept as separate functions:

1. :func:`dtd_element_name` works out the name the DTD must use for the element;
2. :func:`id_doctype` builds the DOCTYPE declaration;
3. :func:`add_id_doctype` re-parses the element behind that declaration;
4. the tree is signed (see :func:`saml_idp.sign_root_element`);
5. :func:`remove_doctype` moves the signed element into a fresh document without a DTD.
"""

from lxml import etree

from .processor import XMLProcessor


def dtd_element_name(element: etree._Element) -> str:
    """
    DTDs do not understand XML namespaces, so the declared name has to be the element's name as written. For example:

    * ``<a/>`` and ``<a xmlns="http://defaultns.com"/>`` are declared as ``a``;
    * ``<ns:a xmlns:ns="http://example.com"/>`` is declared as ``ns:a``.
    """
    qname = etree.QName(element)
    if qname.namespace and element.prefix:
        return f"{element.prefix}:{qname.localname}"
    return qname.localname


def id_doctype(element_name: str) -> str:
    return (
        f"<!DOCTYPE {element_name} [ <!ELEMENT {element_name} (#PCDATA)> "
        f"<!ATTLIST {element_name} ID ID #IMPLIED> ]>"
    )


def add_id_doctype(element: etree._Element, parser=None) -> etree._ElementTree:
    """
    Return a new tree holding a copy of **element** behind an internal subset that declares its ``ID`` attribute.
    """
    processor = XMLProcessor(parser)
    doctype = id_doctype(dtd_element_name(element))
    root = processor.parse(doctype.encode() + processor.tostring(element))
    return root.getroottree()


def remove_doctype(element: etree._Element, parser=None) -> etree._Element:
    """
    Return a copy of **element** as the root of a new document with no internal subset.
    """
    processor = XMLProcessor(parser)
    # Serializing an element (as opposed to its tree) never writes the DOCTYPE.
    return processor.parse(processor.tostring(element))
