"""
Update Work Status Handler.
PUT /works/{workId}/status
Body: { "status": "InProgress" }
Employer only.
"""
from skilltrade.errors import SkillTradeError, ValidationError
from skilltrade.logging import logger, log_event
from skilltrade.services import build_services
from skilltrade.utils import error_response, format_response, get_path_param, parse_body

services = build_services()


def handler(event, context):
    log_event(event)

    try:
        caller = services.identity.resolve_caller(event)
        work_id = get_path_param(event, 'workId')
        new_status = parse_body(event).get('status')
        if not new_status:
            raise ValidationError('Missing status')

        work = services.works.set_status(work_id, new_status, requested_by=caller.user_id)

        return format_response(200, {
            'message': 'Work status updated successfully',
            'workId': work_id,
            'status': work.get('status')
        })

    except SkillTradeError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error updating work status: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
