"""Per-owner serialization of cart writes.

An existing cart is protected by its aggregate version, but a cart that does
not exist yet has nothing to conflict on: two first writes for the same owner
would each create a cart, and only one of them would stay visible. Handlers
that may create a cart therefore run one at a time per owner.
"""

import functools
import threading
import weakref

_guard = threading.Lock()
_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()


def owner_key(user_id=None, session_id=None) -> str:
    if user_id:
        return f"user:{user_id}"
    return f"session:{session_id}"


def owner_lock(user_id=None, session_id=None) -> threading.Lock:
    key = owner_key(user_id, session_id)
    with _guard:
        lock = _locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _locks[key] = lock
        return lock


def serialized_per_owner(handler):
    """Run a cart command handler while holding the lock of the command's owner.

    Goes above ``@handle`` so the lock spans the handler's unit of work,
    commit and version retries included.
    """

    @functools.wraps(handler)
    def wrapper(instance, command):
        with owner_lock(command.user_id, getattr(command, "session_id", None)):
            return handler(instance, command)

    return wrapper
