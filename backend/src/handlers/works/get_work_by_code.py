"""
Get Work By Manual Code Handler.
GET /works/code/{manualCode}
The manual code is the first characters of the work ID, typed in when the QR code cannot be scanned.
"""
from skilltrade.errors import SkillTradeError
from skilltrade.logging import logger, log_event
from skilltrade.services import build_services
from skilltrade.utils import error_response, format_response, get_path_param

services = build_services()


def handler(event, context):
    log_event(event)

    try:
        services.identity.resolve_caller(event)
        work = services.works.fetch_by_manual_code(get_path_param(event, 'manualCode'))
        return format_response(200, {'work': work})

    except SkillTradeError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error looking up work by code: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
