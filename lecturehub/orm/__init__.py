from .base import Base

from .user import User
from .discipline import Discipline
from .module import Module
from .concept import Concept, ModuleConcept, ConceptPrerequisite
from .photo import PhotoGroup, Photo
from .user_contribution import UserContribution, ContributionType
