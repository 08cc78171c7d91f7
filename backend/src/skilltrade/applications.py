"""
Application Ledger.
Candidate applications to a work item and their accept/reject/withdraw transitions.
"""
import uuid
from typing import Any, Callable, Dict, List

from .errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from .logging import logger
from .models import ApplicationStatus
from .utils import utc_now


class ApplicationLedger:

    def __init__(self, store, identity, now: Callable[[], str] = utc_now):
        self.store = store
        self.identity = identity
        self.now = now

    def _get_work(self, work_id: str) -> Dict[str, Any]:
        work = self.store.get_work(work_id) if work_id else None
        if not work:
            raise NotFoundError('Work not found')
        return work

    def _get_application(self, application_id: str) -> Dict[str, Any]:
        application = self.store.get_application(application_id) if application_id else None
        if not application:
            raise NotFoundError('Application not found')
        return application

    def apply(self, work_id: str, applicant_id: str, applicant_name: str) -> Dict[str, Any]:
        """
        Create a Pending application. The employer ID is copied from the work now
        and never re-read. Duplicate live applications are rejected by the store.
        """
        if not work_id or not applicant_id or not applicant_name:
            raise ValidationError('Missing required fields')

        work = self._get_work(work_id)
        if work['employerId'] == applicant_id:
            raise ValidationError('You cannot apply to your own work')

        timestamp = self.now()
        application = {
            'applicationId': str(uuid.uuid4()),
            'workId': work_id,
            'applicantId': applicant_id,
            'applicantName': applicant_name,
            'serviceTitle': work.get('title', ''),
            'employerId': work['employerId'],
            'status': ApplicationStatus.PENDING,
            'appliedAt': timestamp,
            'updatedAt': timestamp
        }
        self.store.create_application(application)
        logger.info(f"Application {application['applicationId']}: {applicant_id} applied to work {work_id}")
        return application

    def list_for_work(self, work_id: str, requested_by: str) -> List[Dict[str, Any]]:
        work = self._get_work(work_id)
        if work['employerId'] != requested_by:
            raise AuthorizationError('No permission to view applications for this work')
        applications = self.store.list_applications(work_id)
        applications.sort(key=lambda a: a.get('appliedAt', ''), reverse=True)
        return applications

    def update_status(self, application_id: str, new_status: str, requested_by: str) -> Dict[str, Any]:
        """
        Accept or reject an application. Several applications of the same work
        may be Accepted at once.
        """
        if new_status not in ApplicationStatus.EMPLOYER_SETTABLE:
            raise ValidationError(f'Invalid application status: {new_status}')

        application = self._get_application(application_id)
        if application['employerId'] != requested_by:
            logger.warning(f"User {requested_by} may not change application {application_id}")
            raise AuthorizationError('No permission to modify this application')
        if application.get('status') == ApplicationStatus.WITHDRAWN:
            raise ConflictError('Application has been withdrawn')

        updated = self.store.update_application(application_id, {
            'status': new_status,
            'updatedAt': self.now()
        })
        logger.info(f"Application {application_id}: {application.get('status')} -> {new_status}")
        return updated

    def withdraw(self, application_id: str, requested_by: str) -> Dict[str, Any]:
        """Applicant withdraws; a new application to the same work becomes possible."""
        application = self._get_application(application_id)
        if application['applicantId'] != requested_by:
            raise AuthorizationError('Only the applicant can withdraw an application')
        if application.get('status') not in ApplicationStatus.WITHDRAWABLE:
            raise ConflictError('Application can no longer be withdrawn')

        fields = {'status': ApplicationStatus.WITHDRAWN, 'updatedAt': self.now()}
        self.store.withdraw_application(application, fields, ApplicationStatus.WITHDRAWABLE)
        logger.info(f"Application {application_id} withdrawn")
        return {**application, **fields}

    def check_applied(self, work_id: str, applicant_id: str) -> Dict[str, Any]:
        """Whether the applicant has applied, and the latest application's status."""
        applications = sorted(
            self.store.find_applications(work_id, applicant_id),
            key=lambda a: a.get('appliedAt', ''),
            reverse=True
        )
        if not applications:
            return {'hasApplied': False, 'status': None, 'appliedAt': None, 'applicationId': None}
        latest = applications[0]
        return {
            'hasApplied': True,
            'status': latest.get('status'),
            'appliedAt': latest.get('appliedAt'),
            'applicationId': latest['applicationId']
        }

    def has_accepted(self, work_id: str, applicant_id: str) -> bool:
        return any(
            a.get('status') == ApplicationStatus.ACCEPTED
            for a in self.store.find_applications(work_id, applicant_id)
        )
