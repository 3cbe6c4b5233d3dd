"""Package metadata for sesmail."""

__app_name__ = "sesmail"
__version__ = "0.3.0"
__description__ = "Raw MIME mail assembly with AWS SES dispatch"
__author__ = "sesmail contributors"
__license_type__ = "MIT"

__all__ = [
    "__app_name__",
    "__author__",
    "__description__",
    "__license_type__",
    "__version__",
]
