"""
Check Application Handler.
GET /works/{workId}/applications/{applicantId}
Tells the client whether the applicant already applied, so it can hide the apply button.
"""
from skilltrade.errors import SkillTradeError
from skilltrade.logging import logger, log_event
from skilltrade.services import build_services
from skilltrade.utils import error_response, format_response, get_path_param

services = build_services()


def handler(event, context):
    log_event(event)

    try:
        result = services.applications.check_applied(
            get_path_param(event, 'workId'),
            get_path_param(event, 'applicantId')
        )
        return format_response(200, result)

    except SkillTradeError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error checking application: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
