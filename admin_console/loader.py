"""
Loader for the user collection.

One best-effort GET per workspace. Any failure is logged and the
console simply shows zero rows: no retry, no user-visible error.
"""

import logging
from typing import Any, List, Optional, Set

import requests

from .models import REQUIRED_FIELDS, UserRecord

logger = logging.getLogger(__name__)


def fetch_users(url: str, timeout: Optional[float] = None) -> List[UserRecord]:
    """
    Fetch and decode the user array.

    Args:
        url: JSON document expected to hold an array of user objects
        timeout: Seconds to wait for the server, None to wait indefinitely

    Returns:
        Records in source order, or an empty list if the fetch failed
    """
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
    except requests.exceptions.RequestException as e:
        logger.error(f"There was a problem with the fetch operation: {e}")
        return []
    except ValueError as e:
        logger.error(f"Could not decode user list from {url}: {e}")
        return []

    if not isinstance(payload, list):
        logger.error(f"Expected a JSON array from {url}, got {type(payload).__name__}")
        return []

    users = parse_users(payload)
    logger.info(f"Loaded {len(users)} users from {url}")
    return users


def parse_users(payload: List[Any]) -> List[UserRecord]:
    """
    Convert decoded JSON entries to records.

    Entries that are not objects or lack a required field are skipped,
    as are repeats of an id already seen.
    """
    users: List[UserRecord] = []
    seen: Set[str] = set()

    for index, entry in enumerate(payload):
        if not isinstance(entry, dict):
            logger.warning(f"Skipping entry {index}: not an object")
            continue

        missing = [name for name in REQUIRED_FIELDS if name not in entry]
        if missing:
            logger.warning(f"Skipping entry {index}: missing {', '.join(missing)}")
            continue

        user = UserRecord.from_dict(entry)
        if user.id in seen:
            logger.warning(f"Skipping entry {index}: duplicate id {user.id}")
            continue

        seen.add(user.id)
        users.append(user)

    return users
