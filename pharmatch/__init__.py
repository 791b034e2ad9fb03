"""PharMatch: swipe matching engine for the pharmacy marketplace."""

from pharmatch.utils.constants import APP_NAME as __app_name__
from pharmatch.utils.constants import VERSION as __version__

__all__ = ["__app_name__", "__version__"]
