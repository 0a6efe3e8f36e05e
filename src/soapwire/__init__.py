from .client import Client
from .config import settings
from .envelope import Envelope
from .exceptions import (
    SoapError, InvalidVersion, InvalidResponseError, SoapFault, HttpError
)
from .models import HTTPRequest, HTTPResponse, Outcome
from .part import Part
from .request import Request
from .response import Response
from .transport import Transport
from .version import __version__

__all__ = [
    "Client", "settings", "Envelope", "Part", "Request", "Response", "Transport",
    "HTTPRequest", "HTTPResponse", "Outcome",
    "SoapError", "InvalidVersion", "InvalidResponseError", "SoapFault", "HttpError",
    "__version__",
]
