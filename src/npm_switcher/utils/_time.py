import pendulum


def utc_now() -> pendulum.DateTime:
    """Return the current UTC time."""
    return pendulum.now("UTC")


def utc_now_iso() -> str:
    """Get current timestamp in ISO 8601 format."""
    return utc_now().to_iso8601_string()


def file_timestamp(moment: pendulum.DateTime | None = None) -> str:
    """Format a UTC timestamp for use in file names.

    Microseconds are included so that two artifacts written in the same
    second get distinct names.

    Args:
        moment: Time to format. Defaults to now.

    Returns:
        A string such as ``20250114T093000123456Z``.
    """
    value = (moment or utc_now()).in_timezone("UTC")
    return value.format("YYYYMMDD[T]HHmmssSSSSSS[Z]")
