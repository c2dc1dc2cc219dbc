import base64
import json
import unittest
from unittest.mock import MagicMock, patch

from pelion_indexer import lambda_function
from pelion_indexer.exceptions import ConfigurationError, TransportError
from pelion_indexer.signed_http import HttpResponse


def put_event(body, **extra):
    event = {"httpMethod": "PUT", "body": json.dumps(body)}
    event.update(extra)
    return event


class TestLambdaHandler(unittest.TestCase):

    def setUp(self):
        self.client = MagicMock()
        self.client.bulk.return_value = HttpResponse(200, "OK", {}, {"errors": False, "items": []})
        self.client_patch = patch.object(lambda_function, "SignedHttpClient", return_value=self.client)
        self.client_patch.start()
        lambda_function._dispatcher = None

    def tearDown(self):
        self.client_patch.stop()
        lambda_function._dispatcher = None

    def test_notification_callback(self):
        event = put_event({"notifications": [{"ep": "node1", "path": "/3/0/1", "payload": "SGVsbG8="}]})

        response = lambda_function.lambda_handler(event, None)

        self.assertEqual(response["statusCode"], 200)
        self.assertEqual(json.loads(response["body"]), "success")
        self.assertEqual(response["headers"], {"Content-Type": "application/json"})
        payload = self.client.bulk.call_args.args[0]
        document = json.loads(payload.splitlines()[1])
        self.assertEqual(document["value"], "Hello")

    def test_get_is_rejected_without_engine_call(self):
        response = lambda_function.lambda_handler({"httpMethod": "GET", "body": "{}"}, None)

        self.assertEqual(response["statusCode"], 400)
        self.assertEqual(response["body"], 'Unsupported method "GET"')
        self.client.bulk.assert_not_called()

    def test_missing_method(self):
        response = lambda_function.lambda_handler({}, None)
        self.assertEqual(response["body"], 'Unsupported method "None"')

    def test_unknown_body_is_acknowledged(self):
        response = lambda_function.lambda_handler(put_event({"something": "else"}), None)

        self.assertEqual(response["statusCode"], 200)
        self.client.bulk.assert_not_called()

    def test_invalid_json(self):
        response = lambda_function.lambda_handler({"httpMethod": "PUT", "body": "{not json"}, None)

        self.assertEqual(response["statusCode"], 400)
        self.assertIn("Invalid callback body", response["body"])

    def test_missing_body(self):
        response = lambda_function.lambda_handler({"httpMethod": "PUT"}, None)

        self.assertEqual(response["statusCode"], 400)
        self.assertEqual(response["body"], "Missing request body")

    def test_base64_encoded_body(self):
        raw = json.dumps({"registrations-expired": ["node1"]}).encode()
        event = {"httpMethod": "PUT", "body": base64.b64encode(raw).decode(), "isBase64Encoded": True}

        response = lambda_function.lambda_handler(event, None)

        self.assertEqual(response["statusCode"], 200)
        self.client.bulk.assert_called_once()

    def test_transport_error_is_400(self):
        self.client.bulk.side_effect = TransportError("POST", "/_bulk", ConnectionError("refused"))

        response = lambda_function.lambda_handler(put_event({"registrations-expired": ["a"]}), None)

        self.assertEqual(response["statusCode"], 400)
        self.assertEqual(response["body"], "POST /_bulk failed: refused")

    def test_missing_configuration_is_400(self):
        with patch.object(lambda_function.ElasticsearchConfig, "from_env",
                          side_effect=ConfigurationError("CRITICAL: missing")):
            response = lambda_function.lambda_handler(put_event({"registrations-expired": ["a"]}), None)

        self.assertEqual(response["statusCode"], 400)
        self.assertEqual(response["body"], "CRITICAL: missing")

    def test_dispatcher_is_reused(self):
        lambda_function.lambda_handler(put_event({"registrations-expired": ["a"]}), None)
        first = lambda_function._dispatcher
        lambda_function.lambda_handler(put_event({"registrations-expired": ["b"]}), None)

        self.assertIs(lambda_function._dispatcher, first)
        self.assertEqual(self.client.bulk.call_count, 2)


class TestBuildResponse(unittest.TestCase):

    def test_success(self):
        self.assertEqual(lambda_function.build_response(None, "success"), {
            "statusCode": 200,
            "body": '"success"',
            "headers": {"Content-Type": "application/json"},
        })

    def test_failure(self):
        response = lambda_function.build_response(ValueError("nope"))
        self.assertEqual(response["statusCode"], 400)
        self.assertEqual(response["body"], "nope")


if __name__ == '__main__':
    unittest.main()
