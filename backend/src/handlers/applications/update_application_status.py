"""
Update Application Status Handler.
PUT /applications/{applicationId}/status
Body: { "status": "Accepted" | "Rejected" }
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
        application_id = get_path_param(event, 'applicationId')

        application = services.applications.update_status(
            application_id,
            parse_body(event).get('status'),
            requested_by=caller.user_id
        )

        return format_response(200, {
            'message': 'Application status updated successfully',
            'applicationId': application_id,
            'status': application.get('status')
        })

    except SkillTradeError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error updating application status: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
