"""
Shared fixtures: an in-memory store implementing the DynamoStore contract,
a controllable clock and scripted completion codes.
"""
import copy
import os
import sys
import threading
from datetime import datetime, timedelta, timezone

import pytest

# Add src to path for import
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from skilltrade.errors import ConflictError, InternalError, NotFoundError  # noqa: E402
from skilltrade.services import build_services  # noqa: E402


class InMemoryStore:
    """Dict-backed store with the same uniqueness semantics as the DynamoDB guards."""

    def __init__(self):
        self.works = {}
        self.applications = {}
        self.application_guards = set()
        self.codes = {}
        self.reviews = {}
        self.review_guards = set()
        self.users = {}
        self.fail_on = set()
        self._lock = threading.Lock()

    def _check(self, operation):
        if operation in self.fail_on:
            raise InternalError(f'Database error while {operation}')

    def add_user(self, user_id, **fields):
        self.users[user_id] = {'userId': user_id, **fields}

    # Works

    def get_work(self, work_id):
        self._check('get_work')
        return copy.deepcopy(self.works.get(work_id))

    def put_work(self, item):
        self._check('put_work')
        with self._lock:
            if item['workId'] in self.works:
                raise ConflictError('Work already exists')
            self.works[item['workId']] = {k: v for k, v in copy.deepcopy(item).items() if v is not None}

    def update_work(self, work_id, fields):
        self._check('update_work')
        with self._lock:
            if work_id not in self.works:
                raise NotFoundError('workId not found')
            work = self.works[work_id]
            for key, value in fields.items():
                if value is None:
                    work.pop(key, None)
                else:
                    work[key] = copy.deepcopy(value)
            return copy.deepcopy(work)

    def delete_work(self, work_id):
        self._check('delete_work')
        self.works.pop(work_id, None)

    def list_works(self, employer_id=None, limit=None):
        items = [w for w in self.works.values() if not employer_id or w['employerId'] == employer_id]
        items.sort(key=lambda w: w['createdAt'], reverse=True)
        return copy.deepcopy(items[:limit] if limit else items)

    def list_works_for_employee(self, employee_id):
        items = [w for w in self.works.values() if w.get('employeeId') == employee_id]
        items.sort(key=lambda w: w['updatedAt'], reverse=True)
        return copy.deepcopy(items)

    def find_works_by_id_prefix(self, prefix):
        return copy.deepcopy([w for w in self.works.values() if w['workId'].startswith(prefix)])

    # Applications

    def create_application(self, item):
        self._check('create_application')
        guard = (item['workId'], item['applicantId'])
        with self._lock:
            if guard in self.application_guards:
                raise ConflictError('You have already applied for this work')
            self.application_guards.add(guard)
            self.applications[item['applicationId']] = copy.deepcopy(item)

    def get_application(self, application_id):
        return copy.deepcopy(self.applications.get(application_id))

    def list_applications(self, work_id):
        items = [a for a in self.applications.values() if a['workId'] == work_id]
        items.sort(key=lambda a: a['appliedAt'], reverse=True)
        return copy.deepcopy(items)

    def find_applications(self, work_id, applicant_id):
        return [a for a in self.list_applications(work_id) if a['applicantId'] == applicant_id]

    def update_application(self, application_id, fields):
        with self._lock:
            if application_id not in self.applications:
                raise NotFoundError('applicationId not found')
            self.applications[application_id].update(copy.deepcopy(fields))
            return copy.deepcopy(self.applications[application_id])

    def withdraw_application(self, application, fields, allowed_statuses):
        with self._lock:
            stored = self.applications[application['applicationId']]
            if stored['status'] not in allowed_statuses:
                raise ConflictError('Application can no longer be withdrawn')
            stored.update(copy.deepcopy(fields))
            self.application_guards.discard((stored['workId'], stored['applicantId']))

    def delete_applications_for_work(self, work_id):
        self._check('delete_applications_for_work')
        with self._lock:
            doomed = [a for a in self.applications.values() if a['workId'] == work_id]
            for application in doomed:
                del self.applications[application['applicationId']]
                self.application_guards.discard((work_id, application['applicantId']))
        return len(doomed)

    # Completion codes

    def put_completion_code(self, item):
        self._check('put_completion_code')
        self.codes[item['workId']] = copy.deepcopy(item)

    def get_completion_code(self, work_id):
        return copy.deepcopy(self.codes.get(work_id))

    # Reviews

    def create_review(self, item):
        self._check('create_review')
        guard = (item['reviewerId'], item['reviewedUserId'], item['workId'])
        with self._lock:
            if guard in self.review_guards:
                raise ConflictError('You have already reviewed this user for this work')
            self.review_guards.add(guard)
            self.reviews[item['reviewId']] = copy.deepcopy(item)

    def get_review(self, review_id):
        return copy.deepcopy(self.reviews.get(review_id))

    def delete_review(self, review):
        with self._lock:
            self.reviews.pop(review['reviewId'], None)
            self.review_guards.discard((review['reviewerId'], review['reviewedUserId'], review['workId']))

    def list_reviews_for_user(self, user_id, review_type=None):
        with self._lock:
            items = [
                r for r in self.reviews.values()
                if r['reviewedUserId'] == user_id and (not review_type or r['type'] == review_type)
            ]
            return copy.deepcopy(items)

    def list_reviews_for_work(self, work_id):
        return copy.deepcopy([r for r in self.reviews.values() if r['workId'] == work_id])

    def list_reviews_by_reviewer(self, reviewer_id):
        return copy.deepcopy([r for r in self.reviews.values() if r['reviewerId'] == reviewer_id])

    # Users

    def get_user(self, user_id):
        return copy.deepcopy(self.users.get(user_id))

    def set_user_rating(self, user_id, average, count, timestamp):
        self._check('set_user_rating')
        with self._lock:
            user = self.users.setdefault(user_id, {'userId': user_id})
            if user.get('ratingUpdatedAt', '') > timestamp:
                return False
            user.update({'averageRating': average, 'reviewCount': count, 'ratingUpdatedAt': timestamp})
            return True


class FakeClock:
    """Callable returning ISO timestamps; advance() moves time forward."""

    def __init__(self, start=None):
        self.current = start or datetime(2024, 5, 1, 8, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.current.isoformat()

    def advance(self, seconds=1):
        self.current += timedelta(seconds=seconds)


class ScriptedCodes:
    """Code generator returning the given codes in order."""

    def __init__(self, *codes):
        self.codes = list(codes)

    def __call__(self):
        return self.codes.pop(0)


@pytest.fixture
def store():
    s = InMemoryStore()
    for user_id in ('E1', 'E2', 'C1', 'C2', 'C3'):
        s.add_user(user_id, name=user_id)
    return s


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def codes():
    return ScriptedCodes('123456', '654321', '111111')


@pytest.fixture
def services(store, clock, codes):
    return build_services(store=store, now=clock, code_generator=codes)


@pytest.fixture
def publish(services, clock):
    """Publish a work as the given employer; each call advances the clock."""
    def _publish(employer_id='E1', **overrides):
        details = {
            'title': 'Garden cleanup',
            'employerName': f'Employer {employer_id}',
            'wage': 5000,
            'paymentType': 'Cash',
            'location': 'Budapest',
            'skills': ['gardening'],
        }
        details.update(overrides)
        work = services.works.publish(employer_id, details)
        clock.advance(1)
        return work
    return _publish


@pytest.fixture
def started_work(services, publish, clock):
    """W1 published by E1, C1 accepted and assigned, status InProgress."""
    work = publish('E1')
    application = services.applications.apply(work['workId'], 'C1', 'Candidate One')
    services.applications.update_status(application['applicationId'], 'Accepted', 'E1')
    clock.advance(1)
    return services.works.assign_employee(work['workId'], 'C1', 'E1', status='InProgress')


def make_event(user_id=None, body=None, path=None, query=None, groups=None):
    """API Gateway proxy event with Cognito claims."""
    import json

    event = {
        'httpMethod': 'GET',
        'pathParameters': path,
        'queryStringParameters': query,
        'body': json.dumps(body) if body is not None else None,
        'requestContext': {}
    }
    if user_id:
        claims = {'sub': user_id, 'name': f'User {user_id}'}
        if groups:
            claims['cognito:groups'] = ','.join(groups)
        event['requestContext'] = {'authorizer': {'claims': claims}}
    return event


@pytest.fixture
def event():
    return make_event
