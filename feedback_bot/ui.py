from __future__ import annotations

import random
from typing import Dict, List, Optional

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, WebAppInfo

from .settings import COMMUNITY_URL, WEBAPP_URL

FEEDBACK_CALLBACK = "feedback"
CANCEL_FEEDBACK_CALLBACK = "cancel_feedback"
GET_INSPIRED_CALLBACK = "get_inspired"

STRINGS: Dict[str, str] = {
    "welcome": (
        "🌟 Welcome to Createathon, {name}! 🌟\n\n"
        "Join our vibrant community of creators where imagination knows no bounds! 🎨✨\n\n"
        "🚀 What We Offer:\n"
        "• Connect with fellow creators\n"
        "• Grow your personal brand\n"
        "• Transform creativity into success\n"
        "• Share your feedback\n\n"
        "Here's an inspiring quote to kickstart your creative journey:\n\n"
        "Creativity is intelligence having fun.\n"
        "— Albert Einstein\n\n"
        "Ready to begin your creative journey? Let's make something amazing! ✨"
    ),
    "help": (
        "Available commands:\n"
        "/start - Start the bot\n"
        "/help - Show this help message\n"
        "/feedback - Share your feedback\n"
        "/community - Join our community"
    ),
    "community": "Join our community on Telegram! 🚀\n\nClick the button below to join:",
    "feedback_prompt": (
        "We'd love to hear from you! Please share your feedback, suggestions, or any issues "
        "you've encountered. Your input helps us improve! 🚀\n\n"
        "Just type your message and we'll receive it."
    ),
    "feedback_thanks": (
        "Thank you for your feedback! We appreciate your input and will use it to improve our services. 🚀"
    ),
    "feedback_failed": "Sorry, there was an error sending your feedback. Please try again later. 😔",
    "feedback_canceled": "Feedback canceled",
    "inspiration": "💫 Here's some inspiration for you:\n\n{quote}",
    "command_failed": "Sorry, I encountered an error while processing your request. Please try again.",
    "action_failed": "Sorry, something went wrong. Please try again.",
    "generic_error": "Sorry, something went wrong. Please try again later.",
}

QUOTES: List[str] = [
    "Every child is an artist. The problem is how to remain an artist once we grow up. - Pablo Picasso",
    "Creativity takes courage. - Henri Matisse",
    "The only way to do great work is to love what you do. - Steve Jobs",
]


def pick_quote(rng: Optional[random.Random] = None) -> str:
    return (rng or random).choice(QUOTES)


def start_keyboard() -> InlineKeyboardMarkup:
    rows = [
        [
            InlineKeyboardButton("🎨 Join Community", url=COMMUNITY_URL),
            InlineKeyboardButton("💬 Give Feedback", callback_data=FEEDBACK_CALLBACK),
        ],
        [InlineKeyboardButton("💫 Get Inspired", callback_data=GET_INSPIRED_CALLBACK)],
    ]
    if WEBAPP_URL:
        rows.append([InlineKeyboardButton("Open App", web_app=WebAppInfo(url=WEBAPP_URL))])
    return InlineKeyboardMarkup(rows)


def community_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[InlineKeyboardButton("Join Createathon", url=COMMUNITY_URL)]])


def cancel_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[InlineKeyboardButton("❌ Cancel", callback_data=CANCEL_FEEDBACK_CALLBACK)]])
