# flowcheck/errors.py


class FlowcheckError(Exception):
    """Base class for failures that stop validation before it starts."""


class MalformedGraph(FlowcheckError, ValueError):
    """Input cannot be interpreted as a workflow graph."""


class MalformedRegistry(FlowcheckError, ValueError):
    """A node-type table override does not match the registry schema."""
