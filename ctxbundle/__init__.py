"""
ctxbundle — context document bundling and SEARCH/REPLACE patch round trips.

Public API for library usage::

    from ctxbundle import ContextSession, collect_files

    with ContextSession() as session:
        session.load_files(collect_files("my_project"))
        blob = session.build_context()
        session.review_proposal(proposal_text)
        result = session.apply_to_blob()
"""

from .config import Config
from .errors import CtxBundleError
from .scanner import collect_files
from .session import ContextSession

__all__ = ["Config", "CtxBundleError", "collect_files", "ContextSession"]
