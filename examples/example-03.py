"""
This example illustrates autowiring by constructor: parameters are resolved by their
type annotations, without declaring constructor arguments explicitly. Beans can be
obtained by name, by alias, or by type.
"""
from abc import ABC, abstractmethod

from beandi import Autowire, BeanDefinition, BeanFactory


class OS(ABC):
    @abstractmethod
    def name(self) -> str:
        """Returns the name of the operating system."""


class Linux(OS):
    def name(self) -> str:
        return "Linux"


class Laptop:
    def __init__(self, os: OS, model: str = "Generic"):
        self.os = os
        self.model = model


factory = BeanFactory()

factory.register_bean_definition("linux", BeanDefinition(Linux, aliases=["os"]))
factory.register_bean_definition(
    "laptop", BeanDefinition(Laptop, autowire=Autowire.CONSTRUCTOR)
)

laptop = factory.get_bean(Laptop)

assert isinstance(laptop.os, Linux)
assert laptop.os.name() == "Linux"
assert laptop.model == "Generic"

assert factory.get_bean("os") is factory.get_bean("linux")
assert factory.get_bean(OS) is laptop.os
