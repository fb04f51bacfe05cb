"""Handler modules for the custom resources.

Importing this package registers the kopf handlers of every kind.
"""

from ..constants import ALL_KINDS
from .resource import ResourceHandler, register_handlers

HANDLERS = {kind: ResourceHandler(kind) for kind in ALL_KINDS}

for _handler in HANDLERS.values():
    register_handlers(_handler)
