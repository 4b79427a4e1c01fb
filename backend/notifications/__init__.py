"""
Notification system for the dining menu tracker.

This module handles:
- Matching active subscriptions against a day's menu
- Composing and sending menu alert emails via Resend
- One-click unsubscribe tokens
- The daily notification run
"""

from .email_sender import NotificationDispatcher, ResendMailTransport
from .matcher import MatchingEngine
from .process_notifications import process_notifications

__all__ = [
    'MatchingEngine',
    'NotificationDispatcher',
    'ResendMailTransport',
    'process_notifications',
]
