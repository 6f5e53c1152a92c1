# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import resume, profile

# Explicit class exports for cleaner imports
from .resume import Resume, Skill, Feedback, MatchedJob
from .profile import Profile

__all__ = [
    "Resume",
    "Skill",
    "Feedback",
    "MatchedJob",
    "Profile",
]
