"""Deep-link messages and inline keyboards for the bot commands."""

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from aiogram.types import InlineKeyboardMarkup, WebAppInfo
from aiogram.utils.keyboard import InlineKeyboardBuilder

SECTIONS = ("start", "store", "wallet", "admin", "help", "products")

MESSAGES = {
    "start": (
        "🛍️ Welcome to TeleShop, {name}!\n\n"
        "Your premium e-commerce experience awaits. Browse products, manage your wallet, "
        "and track your purchases - all within Telegram!\n\n"
        "✨ Features:\n"
        "• 🛒 Browse &amp; purchase products\n"
        "• 💰 Digital wallet management\n"
        "• 📊 Transaction history\n"
        "• 🔐 Secure payments\n\n"
        "Tap the button below to start shopping!"
    ),
    "store": "🛍️ <b>Welcome to our Store!</b>\n\nDiscover amazing products at great prices. Tap below to start browsing!",
    "wallet": "💰 <b>Your Digital Wallet</b>\n\nManage your balance, add funds, and view transaction history.",
    "admin": (
        "🔐 <b>Admin Panel Access</b>\n\n"
        "Access the admin dashboard to manage products, users, and system settings.\n\n"
        "⚠️ <i>This area is restricted to authorized administrators only.</i>"
    ),
    "help": (
        "🆘 <b>TeleShop Help</b>\n\n"
        "<b>Available Commands:</b>\n"
        "/start - Welcome message &amp; main menu\n"
        "/store - Browse our product catalog\n"
        "/wallet - Access your digital wallet\n"
        "/admin - Admin panel access (restricted)\n"
        "/help - Show this help message\n\n"
        "<b>How to use:</b>\n"
        "1️⃣ Tap any button to open the WebApp\n"
        "2️⃣ Browse products and add to cart\n"
        "3️⃣ Add funds to your wallet\n"
        "4️⃣ Complete your purchase securely\n\n"
        "<b>Need Support?</b>\nTap Contact Support below or reply in this chat."
    ),
    "products": "📦 <b>{product}</b> has been delivered.\n\nOpen My Products to see your access details.",
}

CALLBACK_MESSAGES = {
    "store": "🛍️ <b>Product Store</b>\n\nBrowse our collection of premium products!",
    "wallet": "💰 <b>Digital Wallet</b>\n\nManage your funds and view transactions.",
    "help": "🆘 <b>Need Help?</b>\n\nUse /help command for detailed information or contact our support team.",
}


def webapp_link(webapp_url: str, tab: str | None = None, path: str | None = None) -> str:
    """Web app URL with an optional ?tab= for the client router or an extra path segment."""
    scheme, netloc, base_path, query, fragment = urlsplit(webapp_url)
    if path:
        base_path = base_path.rstrip("/") + "/" + path.strip("/")
    params = parse_qsl(query, keep_blank_values=True)
    if tab:
        params = [(k, v) for k, v in params if k != "tab"] + [("tab", tab)]
    return urlunsplit((scheme, netloc, base_path, urlencode(params), fragment))


def build_keyboard(section: str, webapp_url: str, support_url: str | None = None) -> InlineKeyboardMarkup:
    if section not in SECTIONS:
        raise ValueError(f"Unknown section: {section}")
    builder = InlineKeyboardBuilder()
    if section == "start":
        builder.button(text="🚀 Open TeleShop", web_app=WebAppInfo(url=webapp_link(webapp_url)))
        builder.button(text="🛍️ Store", callback_data="store")
        builder.button(text="💰 Wallet", callback_data="wallet")
        builder.button(text="📞 Help", callback_data="help")
        builder.adjust(1, 2, 1)
    elif section == "store":
        builder.button(text="🛍️ Browse Products", web_app=WebAppInfo(url=webapp_link(webapp_url, tab="store")))
    elif section == "wallet":
        builder.button(text="💰 Open Wallet", web_app=WebAppInfo(url=webapp_link(webapp_url, tab="wallet")))
    elif section == "admin":
        builder.button(text="🔐 Admin Login", web_app=WebAppInfo(url=webapp_link(webapp_url, path="admin")))
    elif section == "products":
        builder.button(text="📦 My Products", web_app=WebAppInfo(url=webapp_link(webapp_url, tab="products")))
    else:
        builder.button(text="🚀 Open TeleShop", web_app=WebAppInfo(url=webapp_link(webapp_url)))
        if support_url:
            builder.button(text="📧 Contact Support", url=support_url)
        builder.adjust(1)
    return builder.as_markup()
