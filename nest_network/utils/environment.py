import os
from typing import Optional, Union


def str2bool(value: Union[str, bool]) -> bool:
    """Convert a string or boolean value to a boolean.

    Args:
        value (Union[str, bool]): The value to convert. Can be either a string ('true'/'false')
            or a boolean value.

    Returns:
        bool: True for 'true' (case-insensitive) or True input, False for 'false'
            (case-insensitive) or False input.

    Raises:
        ValueError: If the input string is not 'true' or 'false' (case-insensitive).
    """
    if isinstance(value, bool):
        return value
    if value.lower() == "true":
        return True
    elif value.lower() == "false":
        return False
    else:
        raise ValueError(
            f"Expected a boolean environment variable (true or false) but got '{value}'"
        )


def get_optional_float_env(name: str) -> Optional[float]:
    """Read a float from the environment, treating unset or empty as None.

    Args:
        name (str): Name of the environment variable.

    Returns:
        Optional[float]: The parsed value or None.

    Raises:
        ValueError: If the variable is set to something that is not a number.
    """
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError as error:
        raise ValueError(
            f"Expected a numeric environment variable {name} but got '{value}'"
        ) from error
