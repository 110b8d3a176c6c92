"""User-Agent header sent with every request.

The EquipsTIC API sits behind the university SOA bus; a stable product token
with the client version makes requests traceable in the bus logs.
"""

from functools import cache
from typing import Final

from equipstic import __version__

PRODUCT: Final[str] = "equipstic-client"


@cache
def get_user_agent() -> str:
    """Return ``equipstic-client (version <version>)``."""
    return f"{PRODUCT} (version {__version__})"
