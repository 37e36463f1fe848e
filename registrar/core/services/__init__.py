"""
Registrar services — detection, trust, patching and refresh.

Re-exported for callers that want the whole flow's building blocks::

    from registrar.core.services import establish_trust, patch_config
"""

from registrar.core.services.detection import (  # noqa: F401
    detect_architecture,
    is_registered,
)
from registrar.core.services.patcher import (  # noqa: F401
    PatchResult,
    patch_config,
    unregister,
)
from registrar.core.services.preconditions import check_preconditions  # noqa: F401
from registrar.core.services.refresh import RefreshResult, refresh  # noqa: F401
from registrar.core.services.trust import establish_trust  # noqa: F401
