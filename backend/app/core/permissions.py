"""
Role-based permission checks.
Per-user overrides (True/False) win over the role defaults; None means "use the role".
"""

from app.models.user import User, UserRole


def is_client(user: User) -> bool:
    return user.role == UserRole.CLIENT


def can_generate_invoices(user: User) -> bool:
    """Any internal user may generate invoices from a proposal."""
    return not is_client(user)


def can_create_proposals(user: User) -> bool:
    return not is_client(user)


def can_approve_proposals(user: User) -> bool:
    if user.can_approve_proposals is False:
        return False
    if user.can_approve_proposals is True:
        return True
    return user.role in (UserRole.ADMIN, UserRole.MANAGER)


def can_view_all_clients(user: User) -> bool:
    if user.can_view_all_clients is False:
        return False
    if user.can_view_all_clients is True:
        return True
    return user.role in (UserRole.ADMIN, UserRole.MANAGER, UserRole.STAFF)


def can_approve_proposal_of(approver: User, creator: User) -> bool:
    """
    Internal approval chain: STAFF work is approved by a MANAGER,
    MANAGER work by an ADMIN, and an ADMIN may approve anything.
    """
    if approver.role == UserRole.ADMIN:
        return True
    if creator.role == UserRole.STAFF and approver.role == UserRole.MANAGER:
        return can_approve_proposals(approver)
    return False
