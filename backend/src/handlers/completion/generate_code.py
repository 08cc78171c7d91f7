"""
Generate Completion Code Handler.
POST /works/{workId}/completion-code
Employer only. Replaces any previous code; the employer tells it to the employee in person.
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

        code = services.completion.generate_code(work_id, requested_by=caller.user_id)

        return format_response(201, {'message': 'Completion code generated', 'workId': work_id, 'code': code})

    except SkillTradeError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error generating completion code: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
