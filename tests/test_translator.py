"""Tests for the Azure Translator client."""
from unittest import mock

import pytest
import requests

from azsub.exceptions import NetworkError, TranslationError
from azsub.translator import AzureTranslator


def _response(status_code=200, payload=None, text=""):
    response = mock.Mock()
    response.status_code = status_code
    response.text = text
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


def _translator(response):
    translator = AzureTranslator("key", region="westus", endpoint="https://example.test/")
    translator.session = mock.Mock()
    if isinstance(response, Exception):
        translator.session.post.side_effect = response
    else:
        translator.session.post.return_value = response
    return translator


def test_single_batched_request_grouped_by_language():
    payload = [
        {"translations": [{"text": "hola", "to": "es"}, {"text": "bonjour", "to": "fr"}]},
        {"translations": [{"text": "mundo", "to": "es"}, {"text": "monde", "to": "fr"}]},
    ]
    translator = _translator(_response(payload=payload))

    result = translator.translate_batch(["hello", "world"], "en-US", ["es", "fr"])

    assert result == {"es": ["hola", "mundo"], "fr": ["bonjour", "monde"]}
    translator.session.post.assert_called_once()
    args, kwargs = translator.session.post.call_args
    assert args[0] == "https://example.test/translate"
    assert ("from", "en") in kwargs["params"]
    assert [v for k, v in kwargs["params"] if k == "to"] == ["es", "fr"]
    assert kwargs["json"] == [{"Text": "hello"}, {"Text": "world"}]
    assert kwargs["headers"]["Ocp-Apim-Subscription-Key"] == "key"
    assert kwargs["headers"]["Ocp-Apim-Subscription-Region"] == "westus"


def test_short_response_is_returned_for_the_merger_to_reject():
    payload = [{"translations": [{"text": "hola", "to": "es"}]}]
    translator = _translator(_response(payload=payload))

    assert translator.translate_batch(["hello", "world"], "en", ["es"]) == {"es": ["hola"]}


def test_nothing_to_translate_makes_no_request():
    translator = _translator(_response(payload=[]))

    assert translator.translate_batch([], "en", ["es"]) == {"es": []}
    translator.session.post.assert_not_called()


def test_transport_failure_is_a_network_error():
    translator = _translator(requests.ConnectionError("unreachable"))

    with pytest.raises(NetworkError):
        translator.translate_batch(["hello"], "en", ["es"])


def test_http_error_is_a_network_error():
    translator = _translator(_response(status_code=401, text='{"error": {"code": 401000}}'))

    with pytest.raises(NetworkError) as excinfo:
        translator.translate_batch(["hello"], "en", ["es"])
    assert "401" in str(excinfo.value)


def test_non_json_body_is_a_network_error():
    translator = _translator(_response(payload=ValueError("no json"), text="<html>"))

    with pytest.raises(NetworkError):
        translator.translate_batch(["hello"], "en", ["es"])


@pytest.mark.parametrize("payload", [{"error": "bad"}, [{"no_translations": []}], [None]])
def test_malformed_payload_is_a_translation_error(payload):
    translator = _translator(_response(payload=payload))

    with pytest.raises(TranslationError):
        translator.translate_batch(["hello"], "en", ["es"])


def test_key_is_required():
    with pytest.raises(TranslationError):
        AzureTranslator("")
