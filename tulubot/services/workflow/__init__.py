"""Per-user teaching/correction workflow.

Use explicit imports:
    from tulubot.services.workflow.contribution import ContributionWorkflow
    from tulubot.services.workflow.state import UserStateStore
"""
