from app.models.availability_report import AvailabilityReport
from app.models.building import Building
from app.models.study_space import StudySpace
from app.models.study_space_status import StudySpaceStatus
from app.models.user import User

__all__ = [
    "AvailabilityReport",
    "Building",
    "StudySpace",
    "StudySpaceStatus",
    "User",
]
