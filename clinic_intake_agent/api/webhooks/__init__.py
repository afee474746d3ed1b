"""
Webhook handlers.
"""

from .zapi import ZApiWebhook

__all__ = ["ZApiWebhook"]
