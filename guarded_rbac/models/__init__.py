"""Database models for guarded_rbac.

Permissions and roles live in ``core``; the link rows attaching them to
user-like records live in ``assignments``.
"""

from guarded_rbac.models.assignments import *
from guarded_rbac.models.core import *
