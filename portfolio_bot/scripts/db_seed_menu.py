"""
Database Seeder.

Run this script to populate the database with the default menu tree defined
in data/default_menu.py.

Usage:
    python -m portfolio_bot.scripts.db_seed_menu

The tree is validated before anything is written, so a broken default menu
never reaches the 'buttons' table.
"""

from sqlmodel import Session, select

from portfolio_bot.data.default_menu import DEFAULT_MENU
from portfolio_bot.domain.models import MenuTree
from portfolio_bot.infrastructure.database.connection import engine, init_db
from portfolio_bot.infrastructure.database.tables import MenuNodeDBModel


def seed_menu():
    print("Initializing Database Connection...")

    init_db()
    MenuTree.build(DEFAULT_MENU)

    with Session(engine) as session:
        print(f"Found {len(DEFAULT_MENU)} menu nodes to seed.")

        for node in DEFAULT_MENU:
            print(f"Processing node: {node.id} ({node.label})")

            # Upsert logic: update existing records or insert new ones.
            statement = select(MenuNodeDBModel).where(MenuNodeDBModel.id == node.id)
            existing = session.exec(statement).first()

            if existing:
                print("--> Updating existing record.")
                existing.attrs = dict(node.attrs)
                existing.admin_only = node.admin_only
                existing.parent_id = node.parent_id
                existing.children_rows = node.children_rows or None
                session.add(existing)
            else:
                print("--> Creating new record.")
                session.add(MenuNodeDBModel(
                    id=node.id,
                    attrs=dict(node.attrs),
                    admin_only=node.admin_only,
                    parent_id=node.parent_id,
                    children_rows=node.children_rows or None,
                ))

        session.commit()
        print("Menu seeding complete.")


if __name__ == "__main__":
    seed_menu()
