"""
This module defines the types describing beans, independently of the way they are
declared (XML documents or code).
"""
from enum import Enum
from typing import Any, List, Optional, Type, Union

from beandi.common import import_class
from beandi.errors import CannotLoadBeanClassException


class BeanScope(Enum):
    SINGLETON = "singleton"
    PROTOTYPE = "prototype"


class Autowire(Enum):
    NO = "no"
    BY_NAME = "byName"
    BY_TYPE = "byType"
    CONSTRUCTOR = "constructor"


class BeanReference:
    __slots__ = ("bean_name",)

    def __init__(self, bean_name: str):
        self.bean_name = bean_name

    def __eq__(self, other):
        return isinstance(other, BeanReference) and other.bean_name == self.bean_name

    def __hash__(self):
        return hash(self.bean_name)

    def __repr__(self):
        return f"<BeanReference {self.bean_name}>"


class TypedValue:
    __slots__ = ("value", "type_name")

    def __init__(self, value: str, type_name: Optional[str] = None):
        self.value = value
        self.type_name = type_name

    def __eq__(self, other):
        return (
            isinstance(other, TypedValue)
            and other.value == self.value
            and other.type_name == self.type_name
        )

    def __hash__(self):
        return hash((self.value, self.type_name))

    def __repr__(self):
        if self.type_name:
            return f"<TypedValue {self.value!r} ({self.type_name})>"
        return f"<TypedValue {self.value!r}>"


ValueType = Union[BeanReference, TypedValue, None]


class ConstructorArgument:
    __slots__ = ("value", "index", "name")

    def __init__(
        self,
        value: ValueType,
        index: Optional[int] = None,
        name: Optional[str] = None,
    ):
        self.value = value
        self.index = index
        self.name = name

    def __repr__(self):
        return (
            f"<ConstructorArgument value={self.value!r} "
            f"index={self.index} name={self.name}>"
        )


class PropertyValue:
    __slots__ = ("name", "value")

    def __init__(self, name: str, value: ValueType):
        self.name = name
        self.value = value

    def __repr__(self):
        return f"<PropertyValue {self.name}={self.value!r}>"


class BeanDefinition:
    """
    Describes a bean: its class, lifetime, and the dependencies that must be
    injected through its constructor and its setters.
    """

    def __init__(
        self,
        class_name: Union[str, Type, None] = None,
        *,
        scope: BeanScope = BeanScope.SINGLETON,
        lazy_init: bool = False,
        autowire: Autowire = Autowire.NO,
        constructor_arguments: Optional[List[ConstructorArgument]] = None,
        property_values: Optional[List[PropertyValue]] = None,
        init_method: Optional[str] = None,
        destroy_method: Optional[str] = None,
        factory_method: Optional[str] = None,
        aliases: Optional[List[str]] = None,
        source: Optional[str] = None,
    ):
        if isinstance(class_name, type):
            self._bean_class: Optional[Type] = class_name
            class_name = f"{class_name.__module__}.{class_name.__qualname__}"
        else:
            self._bean_class = None
        self.class_name = class_name
        self.scope = scope
        self.lazy_init = lazy_init
        self.autowire = autowire
        self.constructor_arguments = constructor_arguments or []
        self.property_values = property_values or []
        self.init_method = init_method
        self.destroy_method = destroy_method
        self.factory_method = factory_method
        self.aliases = aliases or []
        self.source = source

    @property
    def is_singleton(self) -> bool:
        return self.scope == BeanScope.SINGLETON

    @property
    def is_prototype(self) -> bool:
        return self.scope == BeanScope.PROTOTYPE

    def add_constructor_argument(self, value: Any, index=None, name=None):
        self.constructor_arguments.append(ConstructorArgument(value, index, name))
        return self

    def add_property_value(self, name: str, value: Any):
        self.property_values.append(PropertyValue(name, value))
        return self

    def resolve_class(self, bean_name: str) -> Type:
        """
        Returns the class of the bean, importing it by dotted path the first time.
        """
        if self._bean_class is None:
            if not self.class_name:
                raise CannotLoadBeanClassException(bean_name, self.class_name)
            try:
                self._bean_class = import_class(self.class_name)
            except ImportError as import_error:
                raise CannotLoadBeanClassException(
                    bean_name, self.class_name
                ) from import_error
        return self._bean_class

    def __repr__(self):
        return (
            f"<BeanDefinition class={self.class_name} scope={self.scope.value} "
            f"autowire={self.autowire.value}>"
        )
