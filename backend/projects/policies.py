# projects/policies.py
"""
Business policy functions for projects.

Return (allowed, reason) tuples; commands decide which error to raise.
"""


def can_change_project_status(actor, project, new_status: str) -> tuple[bool, str]:
    """
    Rules:
    - COMPLETED is final; revenue has been recognized
    - CANCELLED projects cannot be completed
    """
    if new_status == project.status:
        return True, ""

    if project.status == project.Status.COMPLETED:
        return False, "A completed project cannot change status."

    if project.status == project.Status.CANCELLED and new_status == project.Status.COMPLETED:
        return False, "A cancelled project cannot be completed."

    return True, ""


def can_change_budget(actor, project) -> tuple[bool, str]:
    if project.status == project.Status.COMPLETED:
        return False, "Budget is fixed once the project is completed."
    return True, ""
