"""
Update Work Handler.
PUT /works/{workId}
Body: any of title, description, location, category, skills, wage, paymentType.
Employer only.
"""
from skilltrade.errors import SkillTradeError
from skilltrade.logging import logger, log_event
from skilltrade.services import build_services
from skilltrade.utils import error_response, format_response, get_path_param, parse_body

services = build_services()


def handler(event, context):
    log_event(event)

    try:
        caller = services.identity.resolve_caller(event)
        work_id = get_path_param(event, 'workId')

        work = services.works.update_details(work_id, parse_body(event), requested_by=caller.user_id)

        return format_response(200, {'message': 'Work updated successfully', 'work': work})

    except SkillTradeError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error updating work: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
