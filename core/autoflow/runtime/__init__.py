"""Runtime collaborators: webhook delivery and workflow orchestration.

Import from the submodules directly; this package keeps no re-exports so the
graph executor can depend on ``webhook_delivery`` without an import cycle.
"""
