"""
Activation Relay - Stripe checkout and webhook relay for the game server.
"""

__version__ = "0.1.0"
