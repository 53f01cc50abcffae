"""Reply rendering package."""

from src.rendering.summary import render_failure, render_summary

__all__ = ["render_failure", "render_summary"]
