"""Column defaults shared by the models."""

from uuid import uuid4

from matrisync.utils import now_utc


def new_id() -> str:
    return str(uuid4())


def utc_now_naive():
    return now_utc().replace(tzinfo=None)
