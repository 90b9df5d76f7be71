# Import models so Base metadata is aware of them
from .scores import ScoreRecord  # noqa: F401
