from .user import User
from .survey import Survey
from .response import SurveyResponse
