"""
Tests for domain models (data structures).
"""

import json
import pytest
import sys
import os
from dataclasses import FrozenInstanceError

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from domain.models import (
    ErrorKind,
    OutboundMessage,
    RequestOutcome,
    RequestState,
    ResponseDescriptor,
    ResponseKind,
    ResponseMode,
    Settings,
    ValidationError,
    ValidationResult,
)


class TestSettings:
    """Test Settings dataclass."""

    def test_settings_defaults(self):
        """Test defaults match an OK-mode function with no extras."""
        settings = Settings(recipient_address="to@test.com")

        assert settings.subject_required is False
        assert settings.fallback_subject == "Email received"
        assert settings.response_mode == ResponseMode.OK
        assert settings.allow_user_redirect_urls is False
        assert settings.success_redirect_url == ""
        assert settings.verification_required is False

    def test_verification_required_follows_secret(self):
        """Test verification is required exactly when a secret is set."""
        assert Settings(recipient_address="to@test.com", verification_secret="s3cret").verification_required is True
        assert Settings(recipient_address="to@test.com", verification_secret="").verification_required is False

    def test_settings_are_immutable(self):
        """Test settings cannot be changed after loading."""
        settings = Settings(recipient_address="to@test.com")

        with pytest.raises(FrozenInstanceError):
            settings.recipient_address = "other@test.com"


class TestOutboundMessage:
    """Test OutboundMessage dataclass."""

    def test_outbound_message_is_immutable(self):
        """Test a built message cannot be changed."""
        message = OutboundMessage(
            from_display_name="Captain Test",
            from_address="test@test.com",
            to_address="to@test.com",
            subject="Hello",
            body="Test message!"
        )

        assert message.to_display_name == ""
        with pytest.raises(FrozenInstanceError):
            message.subject = "Changed"


class TestValidationError:
    """Test ValidationError messages."""

    def test_error_messages(self):
        """Test each validation error carries its fixed message."""
        assert ValidationError.missing_details().message == "Missing email details."
        assert ValidationError.blank_details().message == "Blank email details."
        assert ValidationError.missing_details().kind == ErrorKind.MISSING_DETAILS
        assert ValidationError.blank_details().kind == ErrorKind.BLANK_DETAILS

    def test_invalid_email_embeds_value(self):
        """Test the invalid email message quotes the value verbatim."""
        error = ValidationError.invalid_email(" not an email ")

        assert error.kind == ErrorKind.INVALID_EMAIL
        assert error.message == "Invalid from email address ' not an email '."


class TestValidationResult:
    """Test ValidationResult constructors."""

    def test_ok_and_failed(self):
        """Test ok() carries a message and failed() an error."""
        message = OutboundMessage("n", "a@b.com", "to@test.com", "s", "b")

        ok = ValidationResult.ok(message)
        failed = ValidationResult.failed(ValidationError.blank_details())

        assert ok.success is True
        assert ok.message == message
        assert ok.error is None
        assert failed.success is False
        assert failed.message is None
        assert failed.error.kind == ErrorKind.BLANK_DETAILS


class TestResponseDescriptor:
    """Test ResponseDescriptor rendering."""

    def test_status_codes(self):
        """Test every response kind maps to its status code."""
        assert ResponseDescriptor.bad_request("x").status_code == 400
        assert ResponseDescriptor.no_content().status_code == 204
        assert ResponseDescriptor.json_redirect("u").status_code == 200
        assert ResponseDescriptor.http_redirect("u").status_code == 302
        assert ResponseDescriptor.server_error().status_code == 500

    def test_bad_request_response(self):
        """Test a bad request renders its message as plain text."""
        response = ResponseDescriptor.bad_request("Missing email details.").to_lambda_response()

        assert response['statusCode'] == 400
        assert response['body'] == "Missing email details."
        assert response['headers']['Content-Type'].startswith('text/plain')

    def test_json_redirect_response(self):
        """Test a JSON redirect renders a redirect body."""
        response = ResponseDescriptor.json_redirect("email-sent.com").to_lambda_response()

        assert response['statusCode'] == 200
        assert json.loads(response['body']) == {'redirect': 'email-sent.com'}
        assert response['headers']['Content-Type'] == 'application/json'

    def test_http_redirect_response(self):
        """Test an HTTP redirect sets Location and has no body."""
        response = ResponseDescriptor.http_redirect("https://test.com/thanks").to_lambda_response()

        assert response['statusCode'] == 302
        assert response['headers']['Location'] == "https://test.com/thanks"
        assert response['body'] == ''

    def test_empty_responses(self):
        """Test no-content and server error responses have empty bodies."""
        for descriptor in (ResponseDescriptor.no_content(), ResponseDescriptor.server_error()):
            response = descriptor.to_lambda_response()
            assert response['body'] == ''
            assert response['headers'] == {}

    def test_extra_headers_are_added(self):
        """Test extra headers (CORS) are included and not mutated."""
        extra = {'Access-Control-Allow-Origin': '*'}

        response = ResponseDescriptor.json_redirect("u").to_lambda_response(extra)

        assert response['headers']['Access-Control-Allow-Origin'] == '*'
        assert extra == {'Access-Control-Allow-Origin': '*'}

    def test_kind(self):
        """Test constructors set the right kind and payload."""
        descriptor = ResponseDescriptor.http_redirect("u")

        assert descriptor.kind == ResponseKind.HTTP_REDIRECT
        assert descriptor.url == "u"
        assert descriptor.message is None


class TestRequestOutcome:
    """Test RequestOutcome dataclass."""

    def test_outcome_done(self):
        """Test a DONE outcome is a success."""
        outcome = RequestOutcome(
            state=RequestState.DONE,
            response=ResponseDescriptor.no_content(),
            message_sent=True
        )

        assert outcome.success is True
        assert outcome.error is None
        assert "state=DONE" in repr(outcome)
        assert "204" in repr(outcome)

    def test_outcome_errored(self):
        """Test an ERRORED outcome reports its error kind."""
        outcome = RequestOutcome(
            state=RequestState.ERRORED,
            response=ResponseDescriptor.server_error(),
            error=ErrorKind.SEND_FAILURE
        )

        assert outcome.success is False
        assert outcome.message_sent is False
        repr_str = repr(outcome)
        assert "state=ERRORED" in repr_str
        assert "send_failure" in repr_str


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
