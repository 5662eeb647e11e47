"""
Installation resolver — package re-exports.

    from powercli_install.core.resolver import resolve, InstallStrategy
"""

from powercli_install.core.resolver.cancellation import CancellationToken  # noqa: F401
from powercli_install.core.resolver.engine import resolve  # noqa: F401
from powercli_install.core.resolver.events import (  # noqa: F401
    EventSink,
    EventType,
    FanOutSink,
    LoggingSink,
    RecordingSink,
    ResolutionEvent,
)
from powercli_install.core.resolver.strategy import (  # noqa: F401
    AttemptContext,
    InstallStrategy,
)
