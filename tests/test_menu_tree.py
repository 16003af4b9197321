"""Tests for MenuTree loading and validation."""

import logging

import pytest

from portfolio_bot.domain.models import MenuConfigurationError, MenuNode, MenuTree
from portfolio_bot.repositories.menu import StaticMenuRepository


def node(node_id, text, parent=None, rows=None, admin_only=None):
    return MenuNode(id=node_id, attrs={"text": text}, admin_only=admin_only,
                    parent_id=parent, children_rows=rows or [])


class TestBuild:
    def test_default_menu_is_valid(self, tree) -> None:
        assert "0" in tree
        assert tree.root.label == "🏠 Main menu"
        assert tree.parent_of("5") == "3"

    def test_missing_root_raises(self) -> None:
        with pytest.raises(MenuConfigurationError):
            MenuTree.build([node("1", "A", parent="0")])

    def test_duplicate_id_raises(self) -> None:
        with pytest.raises(MenuConfigurationError):
            MenuTree.build([node("0", "Root"), node("0", "Again")])

    def test_cycle_raises(self) -> None:
        nodes = [
            node("0", "Root", rows=[["1"]]),
            node("1", "A", parent="0", rows=[["2"]]),
            node("2", "B", parent="1", rows=[["1"]]),
        ]
        with pytest.raises(MenuConfigurationError):
            MenuTree.build(nodes)

    def test_shared_system_actions_are_not_a_cycle(self) -> None:
        nodes = [
            node("0", "Root", rows=[["1", "2"], ["s0"]]),
            node("1", "A", parent="0", rows=[["s0", "s1"]]),
            node("2", "B", parent="0", rows=[["s0"]]),
            node("s0", "Back"),
            node("s1", "Cancel"),
        ]
        tree = MenuTree.build(nodes)
        assert len(tree) == 5

    def test_dangling_child_is_dropped_and_logged(self, caplog) -> None:
        nodes = [node("0", "Root", rows=[["1", "404"], ["405"]]), node("1", "A", parent="0")]
        with caplog.at_level(logging.ERROR):
            tree = MenuTree.build(nodes)
        assert tree.children_rows("0") == [["1"]]
        assert "404" in caplog.text

    def test_dangling_parent_is_kept_and_logged(self, caplog) -> None:
        nodes = [node("0", "Root", rows=[["1"]]), node("1", "A", parent="ghost")]
        with caplog.at_level(logging.ERROR):
            tree = MenuTree.build(nodes)
        assert tree.parent_of("1") == "ghost"
        assert "ghost" in caplog.text


class TestOutline:
    def test_outline_skips_system_actions_and_marks_admin_nodes(self, tree) -> None:
        outline = tree.outline()
        lines = outline.splitlines()
        assert lines[0] == "🏠 Main menu"
        assert "🔙 Back" not in outline
        assert any("🛠 Admin panel 🔒" in line for line in lines)
        assert any(line.strip().endswith("📈 Prices") for line in lines)


class TestStaticMenuRepository:
    def test_load_tree_is_cached(self) -> None:
        repo = StaticMenuRepository()
        assert repo.load_tree() is repo.load_tree()

    def test_custom_nodes(self) -> None:
        repo = StaticMenuRepository([node("0", "Only root")])
        assert repo.load_tree().root.label == "Only root"
