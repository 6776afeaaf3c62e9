"""Host backend implementations.

Importing this package triggers backend registration via @register_backend.
"""

import mdnsbridge.backends.memory  # noqa: F401
import mdnsbridge.backends.networkmanager  # noqa: F401
