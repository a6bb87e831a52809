"""
Tests for the reCAPTCHA verification client.
"""

import pytest
from unittest.mock import Mock
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

import requests

from integrations.recaptcha import (
    RecaptchaClient,
    VerificationRequestError,
    VerificationResponse,
    VERIFY_URL,
)


@pytest.fixture
def mock_session():
    session = Mock()
    session.post.return_value = Mock(status_code=200, text='{"success": true}')
    return session


class TestRecaptchaClient:
    """Test requests sent to the siteverify endpoint."""

    def test_verify_posts_form(self, mock_session):
        """Test the secret and token are posted as form data."""
        client = RecaptchaClient(session=mock_session)

        response = client.verify("s3cret", "user-token", timeout=5.0)

        assert response == VerificationResponse(status_code=200, body='{"success": true}')
        mock_session.post.assert_called_once_with(
            VERIFY_URL,
            data={'secret': "s3cret", 'response': "user-token"},
            timeout=5.0
        )

    def test_verify_includes_remote_ip(self, mock_session):
        """Test the caller's IP is forwarded when known."""
        client = RecaptchaClient(session=mock_session)

        client.verify("s3cret", "user-token", remote_ip="203.0.113.7")

        data = mock_session.post.call_args.kwargs['data']
        assert data['remoteip'] == "203.0.113.7"

    def test_default_timeout(self, mock_session):
        """Test a default timeout is always applied."""
        client = RecaptchaClient(session=mock_session)

        client.verify("s3cret", "user-token")

        assert mock_session.post.call_args.kwargs['timeout'] == 10.0

    def test_error_status_is_returned(self, mock_session):
        """Test non-success statuses are returned, not raised."""
        mock_session.post.return_value = Mock(status_code=503, text='')
        client = RecaptchaClient(session=mock_session)

        response = client.verify("s3cret", "user-token")

        assert response.status_code == 503
        assert response.body == ''

    def test_custom_verify_url(self, mock_session):
        """Test the endpoint can be overridden."""
        client = RecaptchaClient(verify_url="https://test.com/verify", session=mock_session)

        client.verify("s3cret", "user-token")

        assert mock_session.post.call_args[0][0] == "https://test.com/verify"

    @pytest.mark.parametrize('error', [
        requests.exceptions.Timeout("read timed out"),
        requests.exceptions.ConnectionError("connection refused"),
    ])
    def test_transport_errors_raise(self, mock_session, error):
        """Test timeouts and connection errors raise VerificationRequestError once."""
        mock_session.post.side_effect = error
        client = RecaptchaClient(session=mock_session)

        with pytest.raises(VerificationRequestError):
            client.verify("s3cret", "user-token")

        assert mock_session.post.call_count == 1

    def test_transport_error_is_domain_error(self, mock_session):
        """Test the client raises the error type the verification gate catches."""
        from domain import models

        mock_session.post.side_effect = requests.exceptions.ConnectionError("connection refused")
        client = RecaptchaClient(session=mock_session)

        with pytest.raises(models.VerificationRequestError):
            client.verify("s3cret", "user-token")


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
