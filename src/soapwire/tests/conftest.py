import pytest

from soapwire.config import settings
from soapwire.models import HTTPResponse
from soapwire.response import Response

from . import soap_fixtures as fixtures


@pytest.fixture(autouse=True)
def reset_settings():
    settings.reset()
    yield
    settings.reset()


@pytest.fixture
def soap_response():
    def factory(code=200, headers=None, body=fixtures.AUTHENTICATION, raise_errors=None):
        return Response(HTTPResponse(code, headers or {}, body), raise_errors=raise_errors)

    return factory


@pytest.fixture
def no_raise():
    settings.raise_errors = False
