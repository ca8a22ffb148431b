# unique_jobs/core/context.py

import contextvars
from contextlib import contextmanager
from typing import Iterator

digest_ctx = contextvars.ContextVar("digest", default=None)
jid_ctx = contextvars.ContextVar("jid", default=None)


@contextmanager
def bind_lock_context(digest: str, jid: str) -> Iterator[None]:
    """Expose digest and jid to log records emitted inside the block."""
    digest_token = digest_ctx.set(digest)
    jid_token = jid_ctx.set(jid)
    try:
        yield
    finally:
        jid_ctx.reset(jid_token)
        digest_ctx.reset(digest_token)
