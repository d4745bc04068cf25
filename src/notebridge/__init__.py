""" Python implementation of notebridge: move short text notes from a
    capture point to a companion receiver over a local TCP link that may
    not be connected when the note is taken.
"""

# Utility components.

from . import json

# Submodules used by multiple other components.

from . import protocol
from . import transport
from . import config
home = config.directory

# Primary public-facing interfaces.

from . import status
from . import delivery
from . import connection

from .bridge import Bridge
from .connection import ConnectionManager, State
from .delivery import DeliveryQueue, QueueClosed
from .receiver import Receiver
from .status import StatusEvent

__version__ = '0.1.0'

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
