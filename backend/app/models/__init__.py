from app.db.base import Base
from app.models.surveyor_form import SurveyorForm

__all__ = [
    "Base",
    "SurveyorForm",
]
