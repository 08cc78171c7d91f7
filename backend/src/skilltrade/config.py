"""
Configuration module for Lambda handlers.
Loads all environment variables needed by the work-lifecycle backend.
"""
import os


class Config:
    """Centralized configuration from environment variables."""

    # AWS Region
    AWS_REGION = os.environ.get('AWS_REGION', 'us-east-1')

    # DynamoDB Tables
    WORKS_TABLE = os.environ.get('WORKS_TABLE', 'skilltrade-works')
    APPLICATIONS_TABLE = os.environ.get('APPLICATIONS_TABLE', 'skilltrade-applications')
    COMPLETION_CODES_TABLE = os.environ.get('COMPLETION_CODES_TABLE', 'skilltrade-completion-codes')
    REVIEWS_TABLE = os.environ.get('REVIEWS_TABLE', 'skilltrade-reviews')
    USERS_TABLE = os.environ.get('USERS_TABLE', 'skilltrade-users')

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Work listing
    DEFAULT_WORK_LIST_LIMIT = int(os.environ.get('DEFAULT_WORK_LIST_LIMIT', '50'))
    MAX_WORK_LIST_LIMIT = int(os.environ.get('MAX_WORK_LIST_LIMIT', '200'))

    # Manual work code = first N characters of the work ID (typed instead of scanning the QR code)
    MANUAL_CODE_LENGTH = int(os.environ.get('MANUAL_CODE_LENGTH', '8'))


config = Config()
