from portfolio_bot.domain.models import MenuNode

# ==============================================================================
# MENU NODES
# ==============================================================================

root = MenuNode(
    id="0",
    attrs={"text": "🏠 Main menu"},
    admin_only=False,
    parent_id=None,
    children_rows=[["1", "2"], ["3"], ["4"]],
)

# --- FEATURE AREAS ---
holdings = MenuNode(
    id="1",
    attrs={"text": "💼 Holdings"},
    admin_only=False,
    parent_id="0",
    children_rows=[["s0", "s1"]],
)

loans = MenuNode(
    id="2",
    attrs={"text": "🏦 Loans & installments"},
    admin_only=False,
    parent_id="0",
    children_rows=[["s0", "s1"]],
)

tools = MenuNode(
    id="3",
    attrs={"text": "🧰 Tools"},
    admin_only=False,
    parent_id="0",
    children_rows=[["5"], ["6"], ["s0"]],
)

admin = MenuNode(
    id="4",
    attrs={"text": "🛠 Admin panel"},
    admin_only=True,
    parent_id="0",
    children_rows=[["s0"]],
)

prices = MenuNode(
    id="5",
    attrs={"text": "📈 Prices"},
    admin_only=False,
    parent_id="3",
    children_rows=[["s0", "s1"]],
)

assistant = MenuNode(
    id="6",
    attrs={"text": "🤖 AI assistant"},
    admin_only=False,
    parent_id="3",
    children_rows=[["s0"]],
)

# --- SYSTEM ACTIONS ---
back = MenuNode(id="s0", attrs={"text": "🔙 Back"}, admin_only=False)
cancel = MenuNode(id="s1", attrs={"text": "❌ Cancel"}, admin_only=False)


DEFAULT_MENU = [root, holdings, loans, tools, admin, prices, assistant, back, cancel]
