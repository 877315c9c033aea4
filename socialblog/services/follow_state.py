"""
Relationship labels between a viewer and another user.

The label is derived at read time and never stored. Checks run in a fixed
priority order and the first match wins:

1. no viewer           -> "follow"
2. viewer is target    -> "own"
3. viewer follows      -> "following"
4. pending request     -> "requested"
5. otherwise           -> "follow"

A stale PENDING request therefore never hides an accepted follow.
"""
OWN = "own"
FOLLOWING = "following"
REQUESTED = "requested"
FOLLOW = "follow"

STATUSES = (OWN, FOLLOWING, REQUESTED, FOLLOW)


def resolve_status(viewer, target, ledger, users) -> str:
    """Label the relationship from ``viewer`` to the single user ``target``."""
    if viewer is None:
        return FOLLOW
    if viewer.id == target.pk:
        return OWN
    if users.is_follower(target, viewer.id):
        return FOLLOWING
    if ledger.has_pending(viewer.id, target.pk):
        return REQUESTED
    return FOLLOW


def resolve_statuses(viewer, targets, ledger, users) -> dict:
    """
    Label many targets at once, keyed by target id.

    Gives the same answer as calling resolve_status per target but issues one
    follower query and one pending-request query for the whole batch.
    """
    target_ids = {target.pk for target in targets}
    if viewer is None:
        return {target_id: FOLLOW for target_id in target_ids}

    others = target_ids - {viewer.id}
    following = users.following_ids(viewer.id) if others else set()
    undecided = others - following
    pending = ledger.pending_recipients(viewer.id, undecided) if undecided else set()

    statuses = {}
    for target_id in target_ids:
        if target_id == viewer.id:
            statuses[target_id] = OWN
        elif target_id in following:
            statuses[target_id] = FOLLOWING
        elif target_id in pending:
            statuses[target_id] = REQUESTED
        else:
            statuses[target_id] = FOLLOW
    return statuses
