from socialblog.errors import Forbidden


def _follower_ids(owner):
    # Uses the prefetched followers when the caller loaded them.
    return {follower.pk for follower in owner.followers.all()}


def can_view(viewer, owner) -> bool:
    """
    Decide whether ``viewer`` may see content owned by ``owner``.

    Public owners are visible to everyone, including anonymous viewers.
    Private owners are visible only to themselves and their followers.
    """
    if not owner.is_private:
        return True
    if viewer is None:
        return False
    if viewer.id == owner.pk:
        return True
    return viewer.id in _follower_ids(owner)


def ensure_can_view(viewer, owner, detail="This blog is private."):
    if not can_view(viewer, owner):
        raise Forbidden(detail)


def visible_blogs(viewer, blogs) -> list:
    """Drop the blogs ``viewer`` may not see, keeping the input order."""
    return [blog for blog in blogs if can_view(viewer, blog.author)]
