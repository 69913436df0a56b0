"""
Conversation State - explicit stages and the bot's fixed vocabulary.

Stages are stored on the customer row:
- IDLE: no draft, no address. Greeting/shop buttons don't change this.
- AWAITING_ADDRESS: draft order held, next free text is the delivery address.

An order is never "stored complete": promotion creates the Order and returns
the customer to IDLE in the same commit.
"""
from enum import Enum


class ConversationStage(str, Enum):
    IDLE = "idle"
    AWAITING_ADDRESS = "awaiting_address"


class ButtonId:
    """Reply-button ids sent with the welcome prompt."""
    YES = "button_yes"
    NO = "button_no"


GREETINGS = {"hi", "hello"}

ORDER_PREFIX = "Order:"

# Length of the address columns on customers and orders
MAX_ADDRESS_LENGTH = 512


class Messages:
    """Every text the bot can send."""
    WELCOME_HEADER = "Welcome to Our Store!"
    WELCOME_BODY = "Welcome! Do you want to shop with us?"
    WELCOME_BUTTONS = [(ButtonId.YES, "Yes"), (ButtonId.NO, "No")]

    CATALOG_HEADER = "Check out our product catalog!"
    CATALOG_BODY = "Browse our products and add them to your cart!"
    CATALOG_FOOTER = "Tap to view more!"

    DECLINED = "Okay! Let us know if you need anything else."
    ASK_ADDRESS = "Please provide your delivery address:"
    ADDRESS_TOO_LONG = "That address is too long. Please send a shorter delivery address:"
    CONFIRMATION = "Thank you for your order! Your total is ${total}. We will deliver to {address}."
    CLARIFY_ORDER = (
        "Sorry, I couldn't read that order. "
        "Please send it as: Order: <product name>, qty: <number>\n"
        "For example: Order: Sony WH-1000XM4, qty: 1"
    )
    FALLBACK = 'Sorry, I didn\'t understand that. Please reply with "Hi" to start shopping.'
