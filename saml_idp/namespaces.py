"""
SAML 2.0 and XML Signature vocabulary used by the IdP.

This is a closed table of string constants. Consumers that need additional SAML identifiers should add them here rather
than computing them.
"""

METADATA = "urn:oasis:names:tc:SAML:2.0:metadata"
ASSERTION = "urn:oasis:names:tc:SAML:2.0:assertion"
SIGNATURE = "http://www.w3.org/2000/09/xmldsig#"
PROTOCOL = "urn:oasis:names:tc:SAML:2.0:protocol"


class Statuses:
    SUCCESS = "urn:oasis:names:tc:SAML:2.0:status:Success"


class Consents:
    UNSPECIFIED = "urn:oasis:names:tc:SAML:2.0:consent:unspecified"


class AuthnContextClassRef:
    PASSWORD = "urn:oasis:names:tc:SAML:2.0:ac:classes:Password"
    PASSWORD_PROTECTED = "urn:oasis:names:tc:SAML:2.0:ac:classes:PasswordProtectedTransport"


class Methods:
    BEARER = "urn:oasis:names:tc:SAML:2.0:cm:bearer"


class AttributeFormats:
    URI = "urn:oasis:names:tc:SAML:2.0:attrname-format:uri"


class NameIdFormats:
    EMAIL_ADDRESS = "urn:oasis:names:tc:SAML:1.1:nameid-format:emailAddress"
    TRANSIENT = "urn:oasis:names:tc:SAML:2.0:nameid-format:transient"
    PERSISTENT = "urn:oasis:names:tc:SAML:2.0:nameid-format:persistent"


class Namespace(dict):
    def __getattr__(self, a):
        return dict.__getitem__(self, a)


nsmap = Namespace(
    ds=SIGNATURE,
    dsig11="http://www.w3.org/2009/xmldsig11#",
    ec="http://www.w3.org/2001/10/xml-exc-c14n#",
    md=METADATA,
    saml=ASSERTION,
    samlp=PROTOCOL,
)
"""
Prefix bindings used for XPath lookups throughout the package.
"""
