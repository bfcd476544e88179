"""
Identifier helpers for idempotent provider calls.
"""

import uuid


def generate_idempotency_key() -> str:
    """
    Generate a fresh idempotency key for a single logical mutating operation.

    Returns:
        A random UUID4 string (e.g., "3f1c2a4e-...")
    """
    return str(uuid.uuid4())


def local_customer_id(user_id: int) -> str:
    """
    Build the placeholder customer id used for users not linked to the provider.

    Args:
        user_id: Local user primary key

    Returns:
        Customer id such as "local_42"
    """
    return f"local_{user_id}"
