"""
Spend Tracker Bot - Source Package

Turns a chat message (text, receipt photo, voice note or audio) into
itemized ledger records and a short summary reply.

DESIGN PRINCIPLES:
1. Fail early, fail visibly
2. All or nothing: a spend is either fully recorded or not at all
3. Collaborators are passed in, never looked up globally
4. Every step is traceable by correlation id
"""

__version__ = "1.0.0"
__author__ = "Spend Tracker Team"
