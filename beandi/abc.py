"""
This module defines base types for dependency injection.
"""

from typing import Optional, Protocol, Type, TypeVar, Union

T = TypeVar("T")


class BeanFactoryProtocol(Protocol):
    """
    Generic interface of a bean factory that can obtain beans by name or type,
    and tell if a bean is configured.
    """

    def get_bean(
        self,
        name: Union[str, Type[T]],
        required_type: Optional[Type[T]] = None,
    ) -> T:  # type: ignore
        """Obtains a bean by name, or by type, optionally checking its type."""

    def contains_bean(self, name: str) -> bool:  # type: ignore
        """Returns a value indicating whether a bean with given name is defined."""

    def __contains__(self, item) -> bool:  # type: ignore
        """
        Returns a value indicating whether a given bean is configured in this factory.
        """
