import threading
import xml.etree.ElementTree as ET

import pytest

from soapwire.config import settings
from soapwire.exceptions import HttpError, InvalidResponseError, SoapFault
from soapwire.models import HTTPResponse, Outcome
from soapwire.response import Response

from . import soap_fixtures as fixtures


class TestConstruction:
    def test_raises_soap_fault(self, soap_response):
        with pytest.raises(SoapFault) as e:
            soap_response(code=500, body=fixtures.SOAP_FAULT)
        assert e.value.response.http.code == 500
        assert str(e.value) == "(soap:Server) Fault occurred while processing."

    def test_raises_soap_fault_for_2xx_fault_body(self, soap_response):
        with pytest.raises(SoapFault):
            soap_response(code=200, body=fixtures.SOAP_FAULT)

    def test_raises_http_error(self, soap_response):
        with pytest.raises(HttpError) as e:
            soap_response(code=404, body="Not found")
        assert str(e.value) == "HTTP error (404): Not found"

    def test_no_raise_when_disabled_globally(self, soap_response, no_raise):
        response = soap_response(code=500, body=fixtures.SOAP_FAULT)
        assert response.classify() is Outcome.SOAP_FAULT

    def test_per_response_flag_overrides_settings(self, soap_response):
        response = soap_response(code=404, body="Not found", raise_errors=False)
        assert response.is_http_error()

        settings.raise_errors = False
        with pytest.raises(HttpError):
            soap_response(code=404, body="Not found", raise_errors=True)

    def test_settings_read_at_construction(self, soap_response):
        settings.raise_errors = False
        soap_response(code=500, body=fixtures.SOAP_FAULT)
        settings.raise_errors = True
        with pytest.raises(SoapFault):
            soap_response(code=500, body=fixtures.SOAP_FAULT)

    def test_invalid_body_does_not_raise_on_construction(self, soap_response):
        response = soap_response(body="I'm not SOAP")
        assert response.is_success()


@pytest.mark.usefixtures("no_raise")
class TestClassification:
    def test_success(self, soap_response):
        response = soap_response()
        assert response.classify() is Outcome.SUCCESS
        assert response.is_success()
        assert not response.is_soap_fault()
        assert not response.is_http_error()

    def test_soap_fault_with_500(self, soap_response):
        response = soap_response(code=500, body=fixtures.SOAP_FAULT)
        assert response.classify() is Outcome.SOAP_FAULT
        assert response.is_soap_fault()
        assert not response.is_http_error()
        assert not response.is_success()

    def test_soap_fault_with_200(self, soap_response):
        response = soap_response(code=200, body=fixtures.SOAP_FAULT)
        assert response.classify() is Outcome.SOAP_FAULT

    def test_http_error(self, soap_response):
        response = soap_response(code=404, body="Not found")
        assert response.classify() is Outcome.HTTP_ERROR
        assert response.is_http_error()
        assert not response.is_success()

    def test_http_error_with_non_fault_envelope(self, soap_response):
        response = soap_response(code=503)
        assert response.classify() is Outcome.HTTP_ERROR

    def test_scenario_success(self, soap_response):
        response = soap_response(
            body="<Envelope><Body><authenticateResponse><return>ok</return></authenticateResponse></Body></Envelope>"
        )
        assert response.classify() is Outcome.SUCCESS
        assert response.body == {"authenticate_response": {"return": "ok"}}

    def test_scenario_fault(self, soap_response):
        response = soap_response(
            code=500, body="<Envelope><Body><Fault><faultcode>Server</faultcode></Fault></Body></Envelope>"
        )
        assert response.classify() is Outcome.SOAP_FAULT
        assert response.soap_fault.code == "Server"

    def test_scenario_http_error(self, soap_response):
        response = soap_response(code=404, body="Not found")
        assert response.classify() is Outcome.HTTP_ERROR
        with pytest.raises(InvalidResponseError):
            response.body


@pytest.mark.usefixtures("no_raise")
class TestFaultViews:
    def test_soap_fault_view(self, soap_response):
        fault = soap_response(code=500, body=fixtures.SOAP_FAULT).soap_fault
        assert isinstance(fault, SoapFault)
        assert fault.present
        assert fault.code == "soap:Server"
        assert fault.reason == "Fault occurred while processing."
        assert isinstance(fault.http, HTTPResponse)

    def test_soap_fault_view_on_success(self, soap_response):
        fault = soap_response().soap_fault
        assert isinstance(fault, SoapFault)
        assert not fault.present
        assert fault.to_dict() == {}
        assert str(fault) == ""

    def test_soap12_fault(self, soap_response):
        fault = soap_response(code=500, body=fixtures.SOAP_FAULT12).soap_fault
        assert fault.code == "soap:Sender"
        assert fault.reason == "Sender Timeout"
        assert fault.detail == {"max_time": "P5M"}

    def test_http_error_view(self, soap_response):
        error = soap_response(code=404, body="Not found").http_error
        assert isinstance(error, HttpError)
        assert error.present
        assert error.to_dict() == {"code": 404, "headers": {}, "body": "Not found"}

    def test_http_error_view_on_success(self, soap_response):
        error = soap_response().http_error
        assert isinstance(error, HttpError)
        assert not error.present

    def test_http_error_view_on_fault(self, soap_response):
        assert not soap_response(code=500, body=fixtures.SOAP_FAULT).http_error.present


class TestBody:
    def test_body(self, soap_response):
        body = soap_response().body
        assert body["authenticate_response"]["return"]["success"] == "true"
        assert body["authenticate_response"]["return"]["authentication_value"]["client"] == "radclient"

    def test_getitem(self, soap_response):
        response = soap_response()
        assert response["authenticate_response"]["return"]["success"] == "true"

    def test_body_is_memoized(self, soap_response):
        response = soap_response()
        assert response.body is response.body
        assert response.header is response.header

    def test_invalid_body_raises_every_time(self, soap_response):
        response = soap_response(body="I'm not SOAP")
        with pytest.raises(InvalidResponseError) as first:
            response.body
        with pytest.raises(InvalidResponseError) as second:
            response.body
        assert str(first.value) == str(second.value)
        assert first.value.response is response

    def test_deeply_nested_body_is_an_invalid_response(self, soap_response):
        nested = "<a>" * 5000 + "x" + "</a>" * 5000
        response = soap_response(body=f"<Envelope><Body>{nested}</Body></Envelope>")
        assert response.is_success()
        assert response.safe_body() == {}
        with pytest.raises(InvalidResponseError) as first:
            response.body
        with pytest.raises(InvalidResponseError) as second:
            response.body
        assert str(first.value) == str(second.value)

    def test_invalid_header_raises(self, soap_response):
        with pytest.raises(InvalidResponseError):
            soap_response(body="I'm not SOAP").header

    def test_xml_without_envelope_raises(self, soap_response):
        response = soap_response(body="<html><body>oops</body></html>")
        with pytest.raises(InvalidResponseError):
            response.body
        assert response.envelope == {"html": {"body": "oops"}}

    def test_multi_ref(self, soap_response):
        body = soap_response(body=fixtures.MULTI_REF).body
        assert isinstance(body["list_response"], dict)
        assert isinstance(body["multi_ref"], list)
        assert len(body["multi_ref"]) == 3

        result = body["list_response"]["list_return"]
        assert result["total"] == "2"
        assert [item["name"] for item in result["items"]] == ["first", "second"]

    def test_namespaced_repeated_elements(self, soap_response):
        body = soap_response(body=fixtures.LIST).body
        history = body["multi_namespaced_entry_response"]["history"]
        assert isinstance(history, dict)
        assert isinstance(history["case"], list)
        assert history["case"][0]["name"] == "first"
        assert history["case"][0]["log_time"] == [
            "2010-09-21T18:22:01.558+10:00",
            "2010-09-21T18:22:07.038+10:00",
        ]
        assert history["case"][1] == {"name": "second"}

    def test_header(self, soap_response):
        header = soap_response(body=fixtures.HEADER).header
        assert header["session_number"] == "ABCD1234"
        assert header["action"] == "ConfigureResponse"
        assert header["security"]["timestamp"]["id"] == "Timestamp-61ba3507"

    def test_missing_header(self, soap_response):
        assert soap_response().header == {}

    def test_nil_element(self, soap_response):
        body = soap_response(body=fixtures.HEADER).body
        obj = body["configure_response_msg"]["results"]["result"]["object"]
        assert obj == {"partner_key": None, "id": "126713"}

    def test_envelope(self, soap_response):
        envelope = soap_response(body=fixtures.HEADER).envelope
        assert envelope["envelope"]["header"]["session_number"] == "ABCD1234"


class TestToArray:
    def test_existing_path(self, soap_response):
        assert soap_response().to_array("authenticate_response", "return", "success") == ["true"]

    def test_list_value(self, soap_response):
        response = soap_response(body=fixtures.LIST)
        cases = response.to_array("multi_namespaced_entry_response", "history", "case")
        assert len(cases) == 2

    def test_nil_value(self, soap_response):
        assert soap_response().to_array("authenticate_response", "undefined") == []

    def test_missing_path(self, soap_response):
        assert soap_response().to_array("authenticate_response", "some", "undefined", "path") == []

    def test_path_through_scalar(self, soap_response):
        assert soap_response().to_array("authenticate_response", "return", "success", "deeper") == []


class TestRaw:
    def test_to_xml(self, soap_response):
        assert soap_response().to_xml() == fixtures.AUTHENTICATION

    def test_doc(self, soap_response):
        assert isinstance(soap_response().doc, ET.Element)

    def test_xpath(self, soap_response):
        response = soap_response()
        assert response.xpath("//client")[0].text == "radclient"
        assert response.xpath("//ns2:authenticateResponse/return/success")[0].text == "true"

    def test_xpath_absolute_and_relative(self, soap_response):
        response = soap_response()
        assert len(response.xpath("/soap:Envelope/soap:Body")) == 1
        assert len(response.xpath("soap:Body")) == 1

    def test_xpath_with_namespaces(self, soap_response):
        nodes = soap_response().xpath(".//a:authenticateResponse", {"a": "http://v1_0.ws.auth.order.example.com/"})
        assert len(nodes) == 1

    def test_doc_of_invalid_response(self, soap_response):
        with pytest.raises(InvalidResponseError):
            soap_response(body="I'm not SOAP").doc

    def test_http(self, soap_response):
        assert isinstance(soap_response().http, HTTPResponse)


class TestMultipart:
    def multipart_response(self, soap_response, body=fixtures.MULTIPART):
        return soap_response(headers={"Content-Type": fixtures.MULTIPART_CONTENT_TYPE}, body=body)

    def test_parsed(self, soap_response):
        response = self.multipart_response(soap_response)
        assert response.to_xml() == fixtures.MULTIPART_SOAP_XML
        assert response.body["submit_req"]["mm7_version"] == "5.3.0"
        assert response.body["submit_req"]["content"] == {
            "href": "cid:attachment_1",
            "allow_adaptations": "true",
        }

    def test_parts(self, soap_response):
        response = self.multipart_response(soap_response)
        assert len(response.parts) == 2
        nested = response.parts[1]
        assert nested.is_multipart
        assert len(nested.parts) == 3
        assert nested.parts[1].body.startswith(b"GIF89a")
        assert nested.parts[2].body == b"This is a test message from Github"

    def test_attachments(self, soap_response):
        response = self.multipart_response(soap_response)
        assert len(response.attachments) == 1
        assert response.attachments[0].headers["Content-ID"] == "<attachment_1>"

    def test_bad_boundary_falls_back_to_plain_body(self, soap_response):
        response = self.multipart_response(soap_response, body=fixtures.AUTHENTICATION)
        assert response.parts == []
        assert response.body["authenticate_response"]["return"]["success"] == "true"


def test_concurrent_first_access_parses_once(soap_response, monkeypatch):
    from soapwire import response as response_module

    calls = []
    real_parse = response_module.parse

    def counting_parse(data):
        calls.append(data)
        return real_parse(data)

    monkeypatch.setattr(response_module, "parse", counting_parse)
    response = Response(HTTPResponse(200, {}, fixtures.AUTHENTICATION), raise_errors=False)

    results = []
    threads = [threading.Thread(target=lambda: results.append(response.body)) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(calls) == 1
    assert all(r is results[0] for r in results)
