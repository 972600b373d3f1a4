"""
Error taxonomy shared by the context and patch pipelines.

Concrete exceptions live next to the code that raises them; they all derive
from :class:`CtxBundleError` so callers can catch the family in one place.
"""


class CtxBundleError(Exception):
    """Base class for every error surfaced by ctxbundle."""
