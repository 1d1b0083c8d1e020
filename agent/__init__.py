"""Agent internals for gitchat.

The conversation window, response classification, command substitution and
batch execution live in separate modules so the chat and commit agents stay
small orchestrators over them.
"""
