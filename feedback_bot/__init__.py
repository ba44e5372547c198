"""Telegram bot that relays user feedback to the mail backend."""
