"""Per-installation voting identity.

The id is generated locally on first use and never issued or checked by the
server. Anyone can obtain a fresh one by clearing the cache; that is accepted.
"""

import uuid

from format_poker.client.cache import DEVICE_KEY, LocalStore


def get_device_id(store: LocalStore) -> str:
    """Return the stored device id, creating and persisting one if needed."""
    device_id = store.get(DEVICE_KEY)
    if isinstance(device_id, str) and device_id.strip():
        return device_id
    device_id = str(uuid.uuid4())
    store.put(DEVICE_KEY, device_id)
    return device_id
