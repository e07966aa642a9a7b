"""
This example illustrates how to configure beans in an XML document, using setter
injection, literal values, and prototype beans (a new instance is created whenever
the bean is requested).
"""
from beandi import GenericXmlApplicationContext


class Battery:
    def __init__(self):
        self.capacity = 0

    def set_capacity(self, capacity: int) -> None:
        self.capacity = capacity


class Laptop:
    def __init__(self):
        self.battery = None

    def set_battery(self, battery: Battery) -> None:
        self.battery = battery


context = GenericXmlApplicationContext().load_string(
    f"""
    <beans>
        <bean id="battery" class="{__name__}.Battery" scope="prototype">
            <property name="capacity" value="4500"/>
        </bean>
        <bean id="laptop" class="{__name__}.Laptop" scope="prototype">
            <property name="battery" ref="battery"/>
        </bean>
    </beans>
    """
)
context.refresh()

example_1 = context.get_bean("laptop")
example_2 = context.get_bean("laptop")

assert isinstance(example_1.battery, Battery)
assert example_1.battery.capacity == 4500

assert example_1 is not example_2
assert example_1.battery is not example_2.battery
