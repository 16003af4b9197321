from .. import messages
from ..domain.models import MenuTree
from ..execution.schemas.outcomes import HandlerOutcome, Reply, Show
from ..state.models import SessionState
from .base import LevelHandler


class AdminHandler(LevelHandler):
    """Admin panel (node "4"): shows the loaded menu tree."""
    node_id = "4"

    def __init__(self, tree: MenuTree):
        self.tree = tree
        super().__init__()

    async def enter(self, session: SessionState) -> HandlerOutcome:
        return Show(Reply(f"{messages.ADMIN['tree_title']}\n\n{self.tree.outline()}"))
