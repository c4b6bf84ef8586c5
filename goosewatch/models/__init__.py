from goosewatch.models.profile import Profile
from goosewatch.models.report import Report, ReportComment, ReportReaction

__all__ = [
    "Profile",
    "Report",
    "ReportComment",
    "ReportReaction",
]
