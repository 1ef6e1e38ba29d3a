from access_gate.core.db import Base  # noqa
from access_gate.models.access_request import AccessRequest  # noqa
from access_gate.models.session import UserSession  # noqa
from access_gate.models.user import User  # noqa

__all__ = [
    'Base',
    'AccessRequest',
    'User',
    'UserSession',
]
