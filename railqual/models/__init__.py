from .qualification_type import QualificationType
from .qualification import Qualification
from .alert import QualificationAlert
from .history import QualificationHistory

# Export models
__all__ = ['QualificationType', 'Qualification', 'QualificationAlert', 'QualificationHistory']
