class GoalPlanError(ValueError):
    """Base class for checked failures raised outside the pure goal core."""


class GoalValidationError(GoalPlanError):
    """A goal failed the editor gate and must not reach a store mutator."""


class PlanLoadError(GoalPlanError):
    """A persisted plan was malformed; the whole load is rejected."""


class PlanNotFoundError(GoalPlanError):
    pass


class ConfigError(GoalPlanError):
    pass
