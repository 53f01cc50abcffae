"""Telegram entry point package."""
