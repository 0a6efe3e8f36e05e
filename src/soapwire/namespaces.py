SOAP11 = "http://schemas.xmlsoap.org/soap/envelope/"
SOAP12 = "http://www.w3.org/2003/05/soap-envelope"

XSD = "http://www.w3.org/2001/XMLSchema"
XSI = "http://www.w3.org/2001/XMLSchema-instance"

VERSIONS = (1, 2)

# Envelope namespace by SOAP version.
NAMESPACES = {1: SOAP11, 2: SOAP12}

# Content-Types by SOAP version.
CONTENT_TYPES = {
    1: "text/xml;charset=UTF-8",
    2: "application/soap+xml;charset=UTF-8",
}

# XML Schema type namespaces, declared on every envelope.
SCHEMA_TYPES = {
    "xmlns:xsd": XSD,
    "xmlns:xsi": XSI,
}

MULTIPART_RELATED = 'multipart/related; type="text/xml"'
SOAP_PART_TYPE = "text/xml; charset=utf-8"
