"""
Installer service — package re-exports.

    from agentmgr.core.services.installer import Manager, CancelToken

Layers, bottom-up: errors → runner → providers → manager → update_all.
"""

# ── Errors ──
from agentmgr.core.services.installer.errors import (  # noqa: F401
    CommandCancelled,
    CommandFailed,
    InstallerError,
    InvalidVersionFormat,
    NoCommandSpecified,
    NotSupported,
    PackageNotSpecified,
    ProviderUnavailable,
    UnsupportedMethod,
)
from agentmgr.core.services.installer.error_hints import (  # noqa: F401
    format_install_error,
    hints_for_error,
)

# ── Execution ──
from agentmgr.core.services.installer.runner import (  # noqa: F401
    CancelToken,
    CommandOutput,
    CommandRunner,
)

# ── Providers ──
from agentmgr.core.services.installer.providers import (  # noqa: F401
    BrewProvider,
    NativeProvider,
    NPMProvider,
    PipProvider,
    Provider,
    Result,
    WingetProvider,
)

# ── Orchestration ──
from agentmgr.core.services.installer.manager import Manager  # noqa: F401
from agentmgr.core.services.installer.update_all import UpdateSummary, update_all  # noqa: F401
