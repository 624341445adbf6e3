"""Load generation: request generator, virtual users and workload driver."""

from .cancellation import CancellationToken
from .counter import UsageCounter
from .generator import RequestDescriptor, RequestGenerator, generate
from .report import AggregateReport
from .virtual_user import VirtualUser, default_client_factory
from .driver import WorkloadDriver, run_load_test

__all__ = [
    # Request generation
    "RequestDescriptor",
    "RequestGenerator",
    "generate",
    # Execution
    "CancellationToken",
    "UsageCounter",
    "VirtualUser",
    "default_client_factory",
    "WorkloadDriver",
    "run_load_test",
    # Reporting
    "AggregateReport",
]
