"""
Faxon Portal API — ORM Models
==============================

Importing this package registers every table with `Base.metadata`
(used by the test suite's `create_all`).
"""

from faxon_api.models.activity_log import ActivityLog
from faxon_api.models.document import Document
from faxon_api.models.team_member import TeamMember

__all__ = ["ActivityLog", "Document", "TeamMember"]
