"""
This example illustrates a basic usage of the BeanFactory class to register
two beans in code, and the injection of one into the other through the constructor.

Beans are singletons by default, meaning that the same instance is returned
whenever the bean is requested.
"""

from beandi import BeanDefinition, BeanFactory, BeanReference


class OS:
    pass


class Laptop:
    def __init__(self, os: OS):
        self.os = os


factory = BeanFactory()

factory.register_bean_definition("os", BeanDefinition(OS))
factory.register_bean_definition(
    "laptop", BeanDefinition(Laptop).add_constructor_argument(BeanReference("os"))
)

example_1 = factory.get_bean("laptop")

assert isinstance(example_1, Laptop)
assert isinstance(example_1.os, OS)

example_2 = factory.get_bean("laptop", Laptop)

assert example_1 is example_2
assert example_1.os is factory.get_bean("os")
