"""
Console code sender adapter - Implements CodeSender protocol.

This module provides a console-based implementation of the domain's
code sender port, logging verification codes and reset tokens
for development.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleCodeSender:
    """
    Implements CodeSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    A notification-service adapter replaces it in production.
    """

    def send_verification_code(self, email: str, code: str) -> None:
        """
        Log verification code (simulates email delivery).

        Args:
            email: Recipient email address (normalized by domain layer)
            code: Numeric verification code
        """
        logger.info("[VERIFICATION] Email: %s Code: %s", email, code)

    def send_password_reset(self, email: str, token: str) -> None:
        """Log the reset token (simulates sending the reset link)."""
        logger.info("[PASSWORD RESET] Email: %s Token: %s", email, token)
