"""Unit tests for the dictionary client (HTTP mocked)."""

from __future__ import annotations

import unittest
from unittest import mock

import requests

from wordy.dictionary import DictionaryClient
from wordy.errors import DictionaryError, LookupNotFound, LookupTransportError

PAYLOAD = [
    {
        "word": "ephemeral",
        "meanings": [
            {
                "partOfSpeech": "adjective",
                "definitions": [{"definition": "Lasting for a very short time."}],
            }
        ],
    }
]


def _response(status: int, payload=None, bad_json: bool = False) -> mock.Mock:
    resp = mock.Mock(status_code=status)
    if bad_json:
        resp.json.side_effect = ValueError("not json")
    else:
        resp.json.return_value = payload
    return resp


class TestDictionaryClient(unittest.TestCase):
    """Tests for DictionaryClient.lookup."""

    def setUp(self) -> None:
        self.session = mock.Mock(spec=requests.Session)
        self.client = DictionaryClient(session=self.session, timeout=5.0)

    def test_first_definition(self) -> None:
        self.session.get.return_value = _response(200, PAYLOAD)
        self.assertEqual(self.client.lookup(" Ephemeral "), "Lasting for a very short time.")
        url = self.session.get.call_args[0][0]
        self.assertEqual(url, "https://api.dictionaryapi.dev/api/v2/entries/en/ephemeral")
        self.assertEqual(self.session.get.call_args[1]["timeout"], 5.0)

    def test_empty_word(self) -> None:
        with self.assertRaises(LookupNotFound) as ctx:
            self.client.lookup("   ")
        self.assertEqual(ctx.exception.message, "Invalid word provided")
        self.session.get.assert_not_called()

    def test_not_found(self) -> None:
        self.session.get.return_value = _response(404)
        with self.assertRaises(LookupNotFound) as ctx:
            self.client.lookup("zzyzx")
        self.assertEqual(ctx.exception.apology, "Sorry, I couldn't find a definition for zzyzx.")

    def test_server_error(self) -> None:
        self.session.get.return_value = _response(500)
        with self.assertRaises(LookupTransportError) as ctx:
            self.client.lookup("apple")
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(ctx.exception.message, "Server error: 500")

    def test_network_error(self) -> None:
        self.session.get.side_effect = requests.ConnectionError("offline")
        with self.assertRaises(LookupTransportError) as ctx:
            self.client.lookup("apple")
        self.assertTrue(ctx.exception.message.startswith("Failed to lookup word"))
        self.assertIsNone(ctx.exception.status_code)

    def test_invalid_json(self) -> None:
        self.session.get.return_value = _response(200, bad_json=True)
        with self.assertRaises(LookupTransportError) as ctx:
            self.client.lookup("apple")
        self.assertEqual(ctx.exception.message, "Invalid response from server")

    def test_missing_definition(self) -> None:
        self.session.get.return_value = _response(200, [{"word": "apple", "meanings": []}])
        with self.assertRaises(LookupNotFound) as ctx:
            self.client.lookup("apple")
        self.assertEqual(ctx.exception.message, "No definition available for this word")

    def test_errors_share_a_base(self) -> None:
        self.assertTrue(issubclass(LookupNotFound, DictionaryError))
        self.assertTrue(issubclass(LookupTransportError, DictionaryError))


if __name__ == "__main__":
    unittest.main()
