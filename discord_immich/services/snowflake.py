from datetime import datetime, timedelta, timezone

from discord.utils import DISCORD_EPOCH

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MAX_SNOWFLAKE = 2**64


class InvalidSnowflakeError(ValueError):
    pass


def snowflake_to_datetime(value: int | str) -> datetime:
    """
    Creation time embedded in a Discord snowflake ID.

    The top 42 bits hold milliseconds since the Discord epoch (2015-01-01 UTC).
    Integer math keeps the result exact to the millisecond.
    """
    if isinstance(value, str):
        if not value.isascii() or not value.isdigit():
            raise InvalidSnowflakeError(f"{value!r} is not a snowflake")
        value = int(value)
    elif not isinstance(value, int) or isinstance(value, bool):
        raise InvalidSnowflakeError(f"{value!r} is not a snowflake")

    if not 0 <= value < _MAX_SNOWFLAKE:
        raise InvalidSnowflakeError(f"{value} is out of the 64-bit snowflake range")

    return _UNIX_EPOCH + timedelta(milliseconds=(value >> 22) + DISCORD_EPOCH)
