"""
Get Completion Code Handler.
GET /works/{workId}/completion-code
Re-displays the current code to the employer (admins may read it too).
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
        work_id = get_path_param(event, 'workId')

        code = services.completion.get_code(work_id, requested_by=caller.user_id, is_admin=caller.is_admin)

        return format_response(200, {'workId': work_id, 'code': code})

    except SkillTradeError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error getting completion code: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
