"""
Estimation guard.

Any error or warning raised by a numerical estimator marks that
estimation as failed. Deprecation-style warnings are library noise,
not estimation problems, and stay quiet.
"""

from contextlib import contextmanager
import warnings

from armagarch.exceptions import FitError

_IGNORED_CATEGORIES = (DeprecationWarning, PendingDeprecationWarning, FutureWarning)


@contextmanager
def warnings_as_errors():
    """Escalate estimator warnings to exceptions inside the block."""
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        for category in _IGNORED_CATEGORIES:
            warnings.simplefilter("ignore", category)
        yield


def guarded(fn, *args, order=None, **kwargs):
    """
    Call an estimator with warnings escalated.

    Raises:
        FitError: If ``fn`` raised anything or emitted a warning
    """
    try:
        with warnings_as_errors():
            return fn(*args, **kwargs)
    except FitError:
        raise
    except Exception as e:
        raise FitError(f"{type(e).__name__}: {e}", order=order) from e
