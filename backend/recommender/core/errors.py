"""Error types raised by the recommendation engine"""


class RecommenderError(Exception):
    """Base class for engine failures"""

    code: str = "recommender_error"

    def __init__(self, message: str = "", *, code: str | None = None):
        super().__init__(message or self.__class__.__name__)
        if code:
            self.code = code


class PersistenceError(RecommenderError):
    """The backing store could not be read or written"""

    code = "persistence_error"


class InvalidRecommendationError(RecommenderError, ValueError):
    """A recommendation violating its invariants reached the write boundary"""

    code = "invalid_recommendation"


class InvalidPreferencesError(RecommenderError, ValueError):
    """A preference patch failed field validation"""

    code = "invalid_preferences"

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors
