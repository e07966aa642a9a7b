import importlib
import re
from typing import Any, Dict, Type

first_cap_re = re.compile("(.)([A-Z][a-z]+)")
all_cap_re = re.compile("([a-z0-9])([A-Z])")
names_separator_re = re.compile(r"[,;\s]+")

BUILTIN_TYPES: Dict[str, Type] = {
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "java.lang.String": str,
    "java.lang.Integer": int,
    "java.lang.Double": float,
    "java.lang.Boolean": bool,
}

TRUE_VALUES = {"true", "yes", "on", "1"}
FALSE_VALUES = {"false", "no", "off", "0"}


def to_standard_param_name(name):
    return all_cap_re.sub(r"\1_\2", first_cap_re.sub(r"\1_\2", name)).lower()


def split_names(value):
    """Splits a `name` attribute into aliases, like "a, b;c d"."""
    if not value:
        return []
    return [name for name in names_separator_re.split(value) if name]


def import_class(class_path: str) -> Any:
    """
    Imports an object by dotted path, like "package.module.ClassName".
    Nested classes are supported: "package.module.Outer.Inner".
    """
    if class_path in BUILTIN_TYPES:
        return BUILTIN_TYPES[class_path]

    parts = class_path.split(".")
    if len(parts) < 2 or not all(parts):
        raise ImportError(f"'{class_path}' is not a dotted path to a class")

    # find the longest importable module prefix
    for i in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:i])
        try:
            obj = importlib.import_module(module_name)
        except ModuleNotFoundError as module_error:
            if module_error.name and not module_name.startswith(module_error.name):
                # the module exists but fails to import one of its own dependencies
                raise
            continue
        try:
            for attribute in parts[i:]:
                obj = getattr(obj, attribute)
        except AttributeError:
            raise ImportError(
                f"Module '{module_name}' does not define '{'.'.join(parts[i:])}'"
            )
        return obj

    raise ImportError(f"No module found for '{class_path}'")


def convert_value(value: str, desired_type: Type) -> Any:
    """Converts a string value read from configuration to the desired type."""
    from beandi.errors import TypeMismatchException

    if desired_type is str or isinstance(value, desired_type):
        return value

    if desired_type is bool:
        lowered = value.strip().lower()
        if lowered in TRUE_VALUES:
            return True
        if lowered in FALSE_VALUES:
            return False
        raise TypeMismatchException(value, bool)

    try:
        return desired_type(value.strip())
    except (TypeError, ValueError) as conversion_error:
        raise TypeMismatchException(value, desired_type) from conversion_error


def class_name(input_type):
    try:
        return input_type.__name__
    except AttributeError:
        # for example, this is the case for List[str], Tuple[str, ...], etc.
        return str(input_type)
