"""Job id of the task currently driving a job, for log records."""
from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

_current_job: ContextVar[Optional[str]] = ContextVar("fsclient_job_id", default=None)


def current_job_id() -> Optional[str]:
    return _current_job.get()


@contextmanager
def job_context(job_id: str) -> Iterator[None]:
    """Tag everything logged inside the block (and tasks it creates) with ``job_id``."""
    token = _current_job.set(job_id)
    try:
        yield
    finally:
        _current_job.reset(token)
