from abc import ABC, abstractmethod
from typing import List

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from ..domain.models import MenuNode, MenuTree
from ..infrastructure.database.tables import MenuNodeDBModel
from ..infrastructure.database.connection import engine as default_engine
from ..data.default_menu import DEFAULT_MENU


# The Interface
class MenuRepository(ABC):
    """
    Source of the validated menu tree. The router only ever sees a built
    MenuTree, never raw rows.
    """

    @abstractmethod
    def load_tree(self) -> MenuTree:
        """
        Loads and validates the whole tree.
        Raises MenuConfigurationError if it cannot be used.
        """
        pass


class StaticMenuRepository(MenuRepository):
    """
    Serves the tree from a hardcoded list in memory.
    """

    def __init__(self, nodes: List[MenuNode] = None):
        self._nodes = list(DEFAULT_MENU if nodes is None else nodes)
        self._tree = None

    def load_tree(self) -> MenuTree:
        # The hardcoded list never changes, validate it once.
        if self._tree is None:
            self._tree = MenuTree.build(self._nodes)
        return self._tree


class PostgresMenuRepository(MenuRepository):
    """
    Reads from the 'buttons' table. The tree is small, so it is loaded whole
    once per request and indexed in memory.
    """

    def __init__(self, engine: Engine = default_engine):
        self.engine = engine

    def load_tree(self) -> MenuTree:
        with Session(self.engine) as db:
            rows = db.exec(select(MenuNodeDBModel)).all()

            nodes = [
                MenuNode(
                    id=row.id,
                    attrs=dict(row.attrs or {}),
                    admin_only=row.admin_only,
                    parent_id=row.parent_id,
                    children_rows=row.children_rows or [],
                )
                for row in rows
            ]

        return MenuTree.build(nodes)
