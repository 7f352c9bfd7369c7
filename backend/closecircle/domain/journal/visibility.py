"""Who may see which journals."""
from typing import Optional

from closecircle.domain.journal.models import Journal, Visibility


def allowed_visibilities(viewer_id: str, author_id: str, viewer_in_author_circle: bool) -> set[Visibility]:
    """Visibility tiers of author's journals that viewer may see."""
    if viewer_id == author_id:
        return set(Visibility)
    if viewer_in_author_circle:
        return {Visibility.PUBLIC, Visibility.CLOSE_CIRCLE}
    return {Visibility.PUBLIC}


def can_view(journal: Journal, viewer_id: Optional[str], viewer_in_author_circle: bool) -> bool:
    """Visible iff viewer is the author, the entry is public, or it is close-circle and viewer is in the author's circle."""
    if viewer_id is not None and viewer_id == journal.author_id:
        return True
    if journal.visibility == Visibility.PUBLIC:
        return True
    return journal.visibility == Visibility.CLOSE_CIRCLE and viewer_in_author_circle
