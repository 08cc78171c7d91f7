"""
Logging for the work-lifecycle Lambdas.
One named logger; incoming events are logged without bodies, headers or identity claims.
"""
import logging
import json

from .config import config

logger = logging.getLogger('skilltrade')
logger.setLevel(config.LOG_LEVEL)

if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    logger.addHandler(handler)

# Claims kept when an event is logged; email, name and token data are dropped
LOGGED_CLAIMS = ('sub', 'cognito:groups')


def _redacted(event: dict) -> dict:
    safe_event = {k: v for k, v in event.items() if k not in ('body', 'headers', 'multiValueHeaders')}
    try:
        claims = event['requestContext']['authorizer']['claims']
    except (KeyError, TypeError):
        return safe_event
    safe_event['requestContext'] = {
        **event['requestContext'],
        'authorizer': {'claims': {k: v for k, v in claims.items() if k in LOGGED_CLAIMS}}
    }
    return safe_event


def log_event(event: dict) -> None:
    """Log the route, path parameters and caller of an incoming API Gateway event."""
    try:
        logger.info(f"Lambda event: {json.dumps(_redacted(event), default=str)}")
    except Exception as e:
        logger.warning(f"Could not log event: {e}")
