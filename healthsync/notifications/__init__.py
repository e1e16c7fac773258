"""
Outbound notification forwarding (Home Assistant, IFTTT, n8n, Notify Me).

One canonical Notification is turned into a provider-specific wire body by a
payload builder and delivered with exactly one POST.
"""

from healthsync.notifications.payloads import Notification, build_payload

__all__ = [
    "Notification",
    "build_payload",
]
