"""
Assign Employee Handler.
PUT /works/{workId}/assign
Body: { "employeeId": "...", "status": "InProgress" }
Called by the employer, or by the employee scanning the work's QR code after being accepted.
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
        body = parse_body(event)

        work = services.works.assign_employee(
            work_id,
            body.get('employeeId'),
            requested_by=caller.user_id,
            status=body.get('status')
        )

        return format_response(200, {
            'message': 'Employee assigned successfully',
            'workId': work_id,
            'employeeId': work.get('employeeId'),
            'status': work.get('status')
        })

    except SkillTradeError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error assigning employee: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
