"""Exceptions raised by the outer surfaces of autoflow.

The execution engine itself never raises these; node faults become failed
``ExecutionResult`` values and the walk stops with a partial context.
"""


class AutoflowError(Exception):
    """Base exception for autoflow."""

    pass


class WorkflowDefinitionError(AutoflowError):
    """A workflow cannot be executed as defined (no nodes, malformed file)."""

    pass


class TriggerNotFoundError(AutoflowError):
    """No trigger node matched the requested start point."""

    def __init__(self, workflow_id: str, trigger: str | None = None):
        self.workflow_id = workflow_id
        self.trigger = trigger
        if trigger:
            message = f"Workflow '{workflow_id}' has no trigger node '{trigger}'"
        else:
            message = f"Workflow '{workflow_id}' has no trigger node"
        super().__init__(message)
