NOT_UNDERSTOOD = "🤔 Sorry, I didn't understand that. Please use the buttons below."

REQUEST_EXPIRED = "⌛ This request has expired or is no longer recognized."

OPERATION_FAILED = "⚠️ Something went wrong while processing your request. Please try again."

PROCESSING = "🧠 Processing your message ..."

NUMBER_ONLY = {
    "price": "Please send the price using digits only (e.g. 1250000 or 12.5).",
    "amount": "Please send the amount using digits only (e.g. 3 or 0.25).",
}

HOLDINGS = {
    "title": "💼 Your holdings:",
    "empty": "You have not registered any holdings yet.",
    "not_found": "No holding was found with this id!",
    "profit": "🟢 Total profit: {value}",
    "loss": "🔴 Total loss: {value}",
    "choose_field": "Which field of this holding do you want to edit?",
    "confirm_delete": "Are you sure you want to delete this holding?",
    "deleted": "🗑 The holding was deleted.",
    "edited": "✅ The holding was updated successfully!",
    "ask_price": "Send the new average purchase price:",
    "ask_amount": "Send the new amount:",
    "ask_date": "When did you buy it? (e.g. \"yesterday at 14:30\" or \"2024-03-01\")",
    "date_not_found": "I couldn't find a date in your message. Please try again, e.g. \"last Monday 10am\".",
    "details_link": "Details: /holding_{id}",
}

HOLDING_DETAIL = {
    "date": "Purchase date: {value}",
    "amount": "Amount: {value}",
    "unit_price": "Purchase price per unit: {value} {currency}",
    "current_price": "Current price per unit: {value} {currency}",
    "total_price": "Total purchase price: {value} {currency}",
    "current_total": "Current total value: {value} {currency}",
    "profit": "🟢 Profit: {value}",
    "loss": "🔴 Loss: {value}",
}

HOLDING_BUTTONS = {
    "chart_placeholder": "📊 Details",
    "edit": "✏️ Edit",
    "edit_price": "💲 Purchase price",
    "edit_amount": "💰 Amount",
    "edit_date": "📅 Purchase date",
    "delete": "🗑 Delete holding",
    "back": "🔙 Back",
    "yes": "✅ Yes",
    "no": "❌ No",
}

LOANS = {
    "title": "🏦 Your loans:",
    "empty": "You have no registered loans.",
    "new_button": "➕ New loan",
    "ask_name": "What is the name of the loan?",
    "ask_amount": "What is the total amount of \"{name}\"?",
    "ask_date": "When did you receive \"{name}\"? (e.g. \"last month\" or \"2024-01-15\")",
    "date_not_found": "I couldn't find a date in your message. Please try again.",
    "name_too_long": "Please choose a name shorter than {limit} characters.",
    "created": "✅ The loan \"{name}\" was registered.",
    "no_installments": "no installments",
}

PRICES = {
    "choose_category": "Choose a category:",
    "favorites_button": "⭐ Favorites",
    "no_categories": "No categories are available yet!",
    "no_assets": "No prices were found!",
    "no_favorites": "You have no favorite assets yet.",
    "latest": "Latest prices ({date} {time}):",
    "asset_not_found": "No asset was found with this id!",
    "alerts_title": "Your alerts for «{name}»:",
    "no_alerts": "You have no alerts registered!",
    "new_alert_button": "🔔 New price alert",
    "alerts_button": "🔔 Price alerts",
    "ask_target": "Send the target price for this alert.\n\nCurrent price of {name}: {price}",
    "alert_created": "✅ The new alert was registered!",
}

ADMIN = {
    "tree_title": "🌳 Current menu tree:",
}
