"""autoreply - Webex auto-responder bot

Watches a bot's event stream and answers every message that mentions the bot
with an echo of what was said. The messaging service sits behind an adapter
interface, so the responder loop can run against the real Webex API or an
in-memory mock.
"""

__all__ = [
    "__version__",
]

__version__ = "0.1.0"
