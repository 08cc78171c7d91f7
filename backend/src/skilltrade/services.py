"""
Service wiring for Lambda handlers.
Each handler module builds its services once per container and reuses them across invocations.
"""
from typing import NamedTuple

from .applications import ApplicationLedger
from .auth import IdentityProvider
from .completion import CompletionHandshake, generate_completion_code
from .dynamo import DynamoStore
from .ratings import RatingAggregator
from .utils import utc_now
from .works import WorkRegistry


class Services(NamedTuple):
    identity: IdentityProvider
    works: WorkRegistry
    applications: ApplicationLedger
    completion: CompletionHandshake
    ratings: RatingAggregator


def build_services(store=None, identity=None, now=utc_now, code_generator=generate_completion_code) -> Services:
    """Construct every service around one store and identity provider."""
    store = store if store is not None else DynamoStore()
    identity = identity if identity is not None else IdentityProvider(store)
    applications = ApplicationLedger(store, identity, now=now)
    works = WorkRegistry(store, identity, applications=applications, now=now)
    return Services(
        identity=identity,
        works=works,
        applications=applications,
        completion=CompletionHandshake(store, works, code_generator=code_generator, now=now),
        ratings=RatingAggregator(store, now=now)
    )
