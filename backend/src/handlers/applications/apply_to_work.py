"""
Apply To Work Handler.
POST /works/{workId}/applications
Body: { "applicantName": "..." }
The caller is the applicant.
"""
from skilltrade.auth import get_user_name
from skilltrade.errors import SkillTradeError
from skilltrade.logging import logger, log_event
from skilltrade.services import build_services
from skilltrade.utils import error_response, format_response, get_path_param, parse_body

services = build_services()


def handler(event, context):
    log_event(event)

    try:
        caller = services.identity.resolve_caller(event)
        body = parse_body(event)
        applicant_name = body.get('applicantName') or get_user_name(event)

        application = services.applications.apply(
            get_path_param(event, 'workId'),
            caller.user_id,
            applicant_name
        )

        return format_response(201, {
            'message': 'Application submitted successfully',
            'applicationId': application['applicationId'],
            'status': application['status']
        })

    except SkillTradeError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error applying to work: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
