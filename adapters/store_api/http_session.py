from __future__ import annotations

import threading
from typing import Optional

import requests

USER_AGENT = "storefront-admin/1.0"

_thread_local = threading.local()


def get_session() -> requests.Session:
    """Return a thread-local requests.Session for the storefront backend.

    Flask serves each request on its own worker thread; one Session per thread
    keeps connection reuse without sharing a Session across threads.
    """
    sess: Optional[requests.Session] = getattr(_thread_local, "session", None)
    if sess is None:
        sess = requests.Session()
        sess.headers.update({"Accept": "application/json", "User-Agent": USER_AGENT})
        _thread_local.session = sess
    return sess


def reset_session() -> None:
    """Drop this thread's Session (used after the backend URL changes)."""
    sess: Optional[requests.Session] = getattr(_thread_local, "session", None)
    if sess is not None:
        sess.close()
        _thread_local.session = None
