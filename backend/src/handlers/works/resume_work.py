"""
Resume Work Handler.
POST /works/{workId}/resume
"""
from skilltrade.errors import SkillTradeError
from skilltrade.logging import logger, log_event
from skilltrade.services import build_services
from skilltrade.utils import error_response, format_response, get_path_param

services = build_services()


def handler(event, context):
    log_event(event)

    try:
        caller = services.identity.resolve_caller(event)
        work = services.works.resume(get_path_param(event, 'workId'), requested_by=caller.user_id)
        return format_response(200, {'message': 'Work resumed', 'work': work})

    except SkillTradeError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error resuming work: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
