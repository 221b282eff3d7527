"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
import pytest

# Add src to Python path before any imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

# Set up test environment variables before importing any modules
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-west-2')
os.environ.setdefault('ENVIRONMENT', 'test')
os.environ.setdefault('LOG_LEVEL', 'INFO')


FBL_REPORT = (
    "Return-Path: <fbl@provider.example>\r\n"
    "Received: from mx1.provider.example by mx.example.com\r\n"
    "Received: from relay.provider.example by mx1.provider.example\r\n"
    "From: Feedback Loop <fbl@provider.example>\r\n"
    "To: abuse@example.com\r\n"
    "Subject: FW: Spring sale\r\n"
    "MIME-Version: 1.0\r\n"
    "Content-Type: multipart/report; report-type=feedback-report;\r\n"
    "\tboundary=\"AAA\"\r\n"
    "\r\n"
    "--AAA\r\n"
    "Content-Type: text/plain\r\n"
    "\r\n"
    "This is an email abuse report for an email message received.\r\n"
    "--AAA\r\n"
    "Content-Type: message/feedback-report\r\n"
    "\r\n"
    "Feedback-Type: abuse\r\n"
    "User-Agent: ProviderFBL/1.0\r\n"
    "Version: 1\r\n"
    "Original-Mail-From: <newsletter@example.com>\r\n"
    "Original-Rcpt-To: bob@example.org\r\n"
    "Arrival-Date: Mon, 19 Oct 2026 06:00:00 +0000\r\n"
    "--AAA\r\n"
    "Content-Type: text/rfc822-headers\r\n"
    "\r\n"
    "From: Newsletter <newsletter@example.com>\r\n"
    "To: Bob <bob@example.org>\r\n"
    "Subject: Spring sale\r\n"
    "--AAA--\r\n"
)


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up test environment variables for all tests."""
    yield


@pytest.fixture
def fbl_report():
    """Complete ARF feedback-loop report as raw text."""
    return FBL_REPORT
