"""codespark — step-through Python lessons with animated execution and AI explanations."""

from .controller import ControllerState, StepController  # noqa: F401
from .lessons import Lesson, get_lesson  # noqa: F401
from .plan import build_plan  # noqa: F401
from .session import Session  # noqa: F401
