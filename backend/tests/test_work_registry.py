"""
Tests for the Work Registry: publish, reads, assignment, status changes,
pause/resume time tracking, edits and cascading delete.
"""
from decimal import Decimal

import pytest

from skilltrade.errors import (
    AuthorizationError,
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from skilltrade.models import WorkStatus
from skilltrade.works import calculate_earnings, parse_wage


class TestPublish:

    def test_publish_creates_published_work(self, services, store):
        work = services.works.publish('E1', {
            'title': 'Paint fence', 'employerName': 'Eve', 'wage': 5000, 'paymentType': 'Cash'
        })

        assert work['status'] == WorkStatus.PUBLISHED
        assert work['employerId'] == 'E1'
        assert work['wage'] == Decimal('5000')
        assert work['createdAt'] == work['updatedAt']
        assert 'employeeId' not in store.works[work['workId']]

    @pytest.mark.parametrize('missing', ['title', 'employerName', 'wage', 'paymentType'])
    def test_missing_required_field(self, services, missing):
        details = {'title': 'Paint fence', 'employerName': 'Eve', 'wage': 5000, 'paymentType': 'Cash'}
        del details[missing]

        with pytest.raises(ValidationError) as exc:
            services.works.publish('E1', details)
        assert missing in str(exc.value)

    def test_missing_employer(self, services):
        with pytest.raises(ValidationError):
            services.works.publish(None, {'title': 'x', 'employerName': 'Eve', 'wage': 1, 'paymentType': 'Cash'})

    @pytest.mark.parametrize('wage', [0, -10, '0', 'abc', True])
    def test_rejects_non_positive_or_invalid_wage(self, services, wage):
        with pytest.raises(ValidationError):
            services.works.publish('E1', {
                'title': 'Paint fence', 'employerName': 'Eve', 'wage': wage, 'paymentType': 'Cash'
            })

    def test_skills_must_be_strings(self, services):
        with pytest.raises(ValidationError):
            services.works.publish('E1', {
                'title': 't', 'employerName': 'Eve', 'wage': 10, 'paymentType': 'Cash', 'skills': 'painting'
            })

    @pytest.mark.parametrize('medium', ['Bitcoin', 'cash', '', ['Cash']])
    def test_rejects_unknown_payment_medium(self, services, store, medium):
        with pytest.raises(ValidationError):
            services.works.publish('E1', {
                'title': 'Paint fence', 'employerName': 'Eve', 'wage': 5000, 'paymentType': medium
            })
        assert store.works == {}

    @pytest.mark.parametrize('medium', ['Cash', 'Card', 'Transfer'])
    def test_accepts_known_payment_media(self, services, medium):
        work = services.works.publish('E1', {
            'title': 'Paint fence', 'employerName': 'Eve', 'wage': 5000, 'paymentType': medium
        })
        assert work['paymentType'] == medium

    def test_parse_wage_keeps_decimals(self):
        assert parse_wage('1250.50') == Decimal('1250.50')


class TestReads:

    def test_fetch_unknown_work(self, services):
        with pytest.raises(NotFoundError):
            services.works.fetch('missing')

    def test_list_works_newest_first_with_filter_and_limit(self, services, publish):
        first = publish('E1', title='First')
        publish('E2', title='Other employer')
        third = publish('E1', title='Third')

        assert [w['workId'] for w in services.works.list_works(employer_id='E1')] == [
            third['workId'], first['workId']
        ]
        assert len(services.works.list_works(limit=2)) == 2
        assert len(services.works.fetch_by_employer('E2')) == 1

    @pytest.mark.parametrize('limit', [0, -1, 'many'])
    def test_list_works_invalid_limit(self, services, limit):
        with pytest.raises(ValidationError):
            services.works.list_works(limit=limit)

    def test_active_work_for_employee(self, services, started_work):
        active = services.works.fetch_active_for_employee('C1')
        assert active['workId'] == started_work['workId']

    def test_no_active_work(self, services, publish):
        publish('E1')
        with pytest.raises(NotFoundError):
            services.works.fetch_active_for_employee('C1')

    def test_active_work_picks_most_recently_updated(self, services, publish, clock):
        older = publish('E1', title='Older')
        newer = publish('E2', title='Newer')
        services.works.assign_employee(older['workId'], 'C1', 'E1')
        clock.advance(60)
        services.works.assign_employee(newer['workId'], 'C1', 'E2')

        assert services.works.fetch_active_for_employee('C1')['workId'] == newer['workId']

    def test_fetch_by_manual_code(self, services, publish):
        work = publish('E1')
        found = services.works.fetch_by_manual_code(work['workId'][:8].upper())
        assert found['workId'] == work['workId']

    def test_manual_code_too_short(self, services):
        with pytest.raises(ValidationError):
            services.works.fetch_by_manual_code('abc')

    def test_manual_code_not_found(self, services, publish):
        publish('E1')
        with pytest.raises(NotFoundError):
            services.works.fetch_by_manual_code('zzzzzzzz')

    def test_manual_code_ambiguous(self, services, store, publish):
        work = publish('E1')
        twin = dict(store.works[work['workId']], workId=work['workId'][:8] + '-twin')
        store.works[twin['workId']] = twin

        with pytest.raises(ConflictError):
            services.works.fetch_by_manual_code(work['workId'][:8])


class TestAssignEmployee:

    def test_employer_assigns_and_starts(self, services, publish, clock):
        work = publish('E1')
        updated = services.works.assign_employee(work['workId'], 'C1', 'E1')

        assert updated['employeeId'] == 'C1'
        assert updated['status'] == WorkStatus.IN_PROGRESS
        assert updated['startTime'] == clock()
        assert updated['updatedAt'] == clock()

    def test_caller_specified_status(self, services, publish):
        work = publish('E1')
        updated = services.works.assign_employee(work['workId'], 'C1', 'E1', status=WorkStatus.NOT_STARTED)

        assert updated['status'] == WorkStatus.NOT_STARTED
        assert 'startTime' not in updated

    def test_unknown_work(self, services):
        with pytest.raises(NotFoundError):
            services.works.assign_employee('missing', 'C1', 'E1')

    def test_unknown_employee(self, services, publish):
        work = publish('E1')
        with pytest.raises(NotFoundError):
            services.works.assign_employee(work['workId'], 'ghost', 'E1')

    def test_accepted_applicant_may_start_work_themself(self, services, publish):
        work = publish('E1')
        application = services.applications.apply(work['workId'], 'C1', 'Candidate One')
        services.applications.update_status(application['applicationId'], 'Accepted', 'E1')

        updated = services.works.assign_employee(work['workId'], 'C1', 'C1')
        assert updated['employeeId'] == 'C1'

    def test_pending_applicant_may_not_assign_themself(self, services, publish):
        work = publish('E1')
        services.applications.apply(work['workId'], 'C1', 'Candidate One')

        with pytest.raises(AuthorizationError):
            services.works.assign_employee(work['workId'], 'C1', 'C1')

    def test_stranger_may_not_assign(self, services, publish):
        work = publish('E1')
        with pytest.raises(AuthorizationError):
            services.works.assign_employee(work['workId'], 'C1', 'E2')

    def test_no_reassignment_while_in_progress(self, services, started_work):
        with pytest.raises(ConflictError):
            services.works.assign_employee(started_work['workId'], 'C2', 'E1')

    def test_unknown_status(self, services, publish):
        work = publish('E1')
        with pytest.raises(ValidationError):
            services.works.assign_employee(work['workId'], 'C1', 'E1', status='Folyamatban')


class TestSetStatus:

    def test_employer_sets_any_status(self, services, started_work):
        work_id = started_work['workId']
        assert services.works.set_status(work_id, WorkStatus.AWAITING_REVIEW, 'E1')['status'] == WorkStatus.AWAITING_REVIEW
        # No transition graph: moving backwards is allowed
        assert services.works.set_status(work_id, WorkStatus.PUBLISHED, 'E1')['status'] == WorkStatus.PUBLISHED

    @pytest.mark.parametrize('status', WorkStatus.ALL)
    @pytest.mark.parametrize('caller', ['E2', 'C1', 'C2'])
    def test_non_owner_rejected(self, services, started_work, store, status, caller):
        with pytest.raises(AuthorizationError):
            services.works.set_status(started_work['workId'], status, caller)
        assert store.works[started_work['workId']]['status'] == WorkStatus.IN_PROGRESS

    def test_in_progress_requires_employee(self, services, publish):
        work = publish('E1')
        with pytest.raises(ValidationError):
            services.works.set_status(work['workId'], WorkStatus.IN_PROGRESS, 'E1')

    def test_unknown_status(self, services, publish):
        work = publish('E1')
        with pytest.raises(ValidationError):
            services.works.set_status(work['workId'], 'Done', 'E1')

    def test_updated_at_refreshed(self, services, publish, clock):
        work = publish('E1')
        clock.advance(300)
        updated = services.works.set_status(work['workId'], WorkStatus.NOT_STARTED, 'E1')
        assert updated['updatedAt'] == clock()
        assert updated['updatedAt'] != work['updatedAt']


class TestUpdateDetails:

    def test_employer_edits_allowed_fields_only(self, services, publish):
        work = publish('E1')
        updated = services.works.update_details(work['workId'], {
            'title': 'New title', 'wage': '7500', 'skills': ['painting'], 'employerId': 'E2'
        }, 'E1')

        assert updated['title'] == 'New title'
        assert updated['wage'] == Decimal('7500')
        assert updated['skills'] == ['painting']
        assert updated['employerId'] == 'E1'

    def test_no_valid_fields(self, services, publish):
        work = publish('E1')
        with pytest.raises(ValidationError):
            services.works.update_details(work['workId'], {'status': 'Completed'}, 'E1')

    def test_invalid_wage(self, services, publish):
        work = publish('E1')
        with pytest.raises(ValidationError):
            services.works.update_details(work['workId'], {'wage': -1}, 'E1')

    def test_unknown_payment_medium(self, services, store, publish):
        work = publish('E1')
        with pytest.raises(ValidationError):
            services.works.update_details(work['workId'], {'paymentType': 'Cheque'}, 'E1')
        assert store.works[work['workId']]['paymentType'] == 'Cash'

    def test_non_owner(self, services, publish):
        work = publish('E1')
        with pytest.raises(AuthorizationError):
            services.works.update_details(work['workId'], {'title': 'Mine now'}, 'E2')


class TestPauseResume:

    def test_pause_then_resume_accumulates_paused_time(self, services, started_work, clock):
        work_id = started_work['workId']
        clock.advance(600)
        paused = services.works.pause(work_id, 'C1')
        assert paused['pausedAt'] == clock()
        assert paused['status'] == WorkStatus.IN_PROGRESS

        clock.advance(120)
        resumed = services.works.resume(work_id, 'C1')
        assert 'pausedAt' not in resumed
        assert resumed['pausedSeconds'] == 120

    def test_double_pause(self, services, started_work):
        services.works.pause(started_work['workId'], 'E1')
        with pytest.raises(ConflictError):
            services.works.pause(started_work['workId'], 'C1')

    def test_resume_without_pause(self, services, started_work):
        with pytest.raises(ConflictError):
            services.works.resume(started_work['workId'], 'C1')

    def test_pause_requires_in_progress(self, services, publish):
        work = publish('E1')
        with pytest.raises(ValidationError):
            services.works.pause(work['workId'], 'E1')

    def test_outsider_cannot_pause(self, services, started_work):
        with pytest.raises(AuthorizationError):
            services.works.pause(started_work['workId'], 'C2')


class TestCompletionSummary:

    def test_complete_records_duration_and_earnings(self, services, started_work, clock):
        work_id = started_work['workId']
        clock.advance(3600)
        services.works.pause(work_id, 'C1')
        clock.advance(1800)
        services.works.resume(work_id, 'C1')
        clock.advance(1800)

        completed = services.works.complete(work_id)

        assert completed['status'] == WorkStatus.COMPLETED
        assert completed['endTime'] == clock()
        assert completed['duration'] == 5400
        assert completed['pausedSeconds'] == 1800
        assert completed['earnings'] == Decimal('7500.00')

    def test_completing_while_paused_excludes_open_pause(self, services, started_work, clock):
        work_id = started_work['workId']
        clock.advance(3600)
        services.works.pause(work_id, 'C1')
        clock.advance(600)

        completed = services.works.complete(work_id)

        assert completed['duration'] == 3600
        assert 'pausedAt' not in completed

    def test_calculate_earnings_rounds_to_cents(self):
        assert calculate_earnings(Decimal('1000'), 1) == Decimal('0.28')


class TestDelete:

    def test_delete_cascades_to_applications(self, services, store, publish):
        work = publish('E1')
        services.applications.apply(work['workId'], 'C1', 'Candidate One')
        services.applications.apply(work['workId'], 'C2', 'Candidate Two')
        other = publish('E1', title='Keep me')
        services.applications.apply(other['workId'], 'C1', 'Candidate One')

        services.works.delete(work['workId'], 'E1')

        assert work['workId'] not in store.works
        assert [a['workId'] for a in store.applications.values()] == [other['workId']]
        with pytest.raises(NotFoundError):
            services.applications.list_for_work(work['workId'], 'E1')

    @pytest.mark.parametrize('caller', ['E2', 'C1'])
    def test_non_owner_cannot_delete(self, services, store, publish, caller):
        work = publish('E1')
        with pytest.raises(AuthorizationError):
            services.works.delete(work['workId'], caller)
        assert work['workId'] in store.works

    def test_unknown_work(self, services):
        with pytest.raises(NotFoundError):
            services.works.delete('missing', 'E1')

    def test_application_step_failure_leaves_everything(self, services, store, publish):
        work = publish('E1')
        services.applications.apply(work['workId'], 'C1', 'Candidate One')
        store.fail_on.add('delete_applications_for_work')

        with pytest.raises(InternalError) as exc:
            services.works.delete(work['workId'], 'E1')

        assert exc.value.step == 'applications'
        assert work['workId'] in store.works
        assert len(store.applications) == 1

    def test_work_step_failure_is_reported(self, services, store, publish):
        work = publish('E1')
        services.applications.apply(work['workId'], 'C1', 'Candidate One')
        store.fail_on.add('delete_work')

        with pytest.raises(InternalError) as exc:
            services.works.delete(work['workId'], 'E1')

        assert exc.value.step == 'work'
        assert work['workId'] in store.works
        assert store.applications == {}
