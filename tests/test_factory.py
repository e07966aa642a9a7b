import logging

import pytest
from pytest import raises

from beandi import (
    AliasAlreadyDefined,
    Autowire,
    BeanCreationException,
    BeanDefinition,
    BeanFactory,
    BeanFactoryProtocol,
    BeanNotOfRequiredTypeException,
    BeanReference,
    BeanScope,
    CannotLoadBeanClassException,
    CircularDependencyException,
    InvalidFactoryMethod,
    InvalidPropertyException,
    NoSuchBeanDefinitionException,
    NoUniqueBeanDefinitionException,
    OverridingBeanException,
    TypedValue,
    TypeMismatchException,
    UnsatisfiedDependencyException,
)
from tests import examples
from tests.examples import (
    OS,
    AnnotatedLaptop,
    AutowiredWorkstation,
    CamelCaseSetter,
    Chicken,
    Connection,
    Counter,
    Egg,
    Engine,
    Exploding,
    FaultyEngine,
    Laptop,
    Linux,
    Monitor,
    PropertyLaptop,
    ReadOnlyLaptop,
    SetterChicken,
    SetterEgg,
    SetterLaptop,
    Specs,
    UntypedSpecs,
    Windows,
    Workstation,
)


def arrange_laptop_example(scope: BeanScope = BeanScope.SINGLETON) -> BeanFactory:
    factory = BeanFactory()
    factory.register_bean_definition("os", BeanDefinition(Linux))
    factory.register_bean_definition(
        "laptop",
        BeanDefinition(Laptop, scope=scope).add_constructor_argument(
            BeanReference("os")
        ),
    )
    return factory


@pytest.fixture(autouse=True)
def clear_events():
    examples.events.clear()
    yield
    examples.events.clear()


def test_bean_factory_implements_protocol():
    factory: BeanFactoryProtocol = BeanFactory()

    assert "os" not in factory
    assert factory.contains_bean("os") is False


def test_constructor_injection_by_reference():
    factory = arrange_laptop_example()

    laptop = factory.get_bean("laptop")

    assert isinstance(laptop, Laptop)
    assert laptop.os is factory.get_bean("os")
    assert laptop.build() == "Laptop built, Linux booted"


def test_singleton_beans_are_created_once():
    factory = arrange_laptop_example()

    assert factory.get_bean("laptop") is factory.get_bean("laptop")
    assert factory.is_singleton("laptop") is True
    assert factory.is_prototype("laptop") is False


def test_prototype_beans_are_created_every_time():
    factory = arrange_laptop_example(BeanScope.PROTOTYPE)

    laptop_1 = factory.get_bean("laptop")
    laptop_2 = factory.get_bean("laptop")

    assert laptop_1 is not laptop_2
    # the os is a singleton
    assert laptop_1.os is laptop_2.os
    assert factory.is_prototype("laptop") is True


def test_setter_injection_by_reference():
    factory = BeanFactory()
    factory.register_bean_definition("os", BeanDefinition(Windows))
    factory.register_bean_definition(
        "laptop",
        BeanDefinition(SetterLaptop).add_property_value("os", BeanReference("os")),
    )

    laptop = factory.get_bean("laptop")

    assert isinstance(laptop.os, Windows)
    assert laptop.set_calls == 1


def test_setter_injection_with_camel_case_property_name():
    factory = BeanFactory()
    factory.register_bean_definition(
        "holder",
        BeanDefinition(CamelCaseSetter).add_property_value(
            "osName", TypedValue("Linux")
        ),
    )

    assert factory.get_bean("holder").os_name == "Linux"


def test_setter_injection_with_i_prefixed_property_name():
    factory = BeanFactory()
    factory.register_bean_definition(
        "counter",
        BeanDefinition(Counter).add_property_value("i_count", TypedValue("3")),
    )

    assert factory.get_bean("counter").count == 3


def test_setter_injection_through_property():
    factory = BeanFactory()
    factory.register_bean_definition("os", BeanDefinition(Linux))
    factory.register_bean_definition(
        "laptop",
        BeanDefinition(PropertyLaptop).add_property_value("os", BeanReference("os")),
    )

    assert isinstance(factory.get_bean("laptop").os, Linux)


def test_setter_injection_of_annotated_attribute_converts_value():
    factory = BeanFactory()
    factory.register_bean_definition(
        "laptop",
        BeanDefinition(AnnotatedLaptop).add_property_value(
            "brand", TypedValue("Acme")
        ),
    )

    assert factory.get_bean("laptop").brand == "Acme"


def test_setter_injection_of_null_value():
    factory = BeanFactory()
    factory.register_bean_definition(
        "laptop", BeanDefinition(SetterLaptop).add_property_value("os", None)
    )

    laptop = factory.get_bean("laptop")

    assert laptop.os is None
    assert laptop.set_calls == 1


@pytest.mark.parametrize(
    "bean_class,property_name",
    [(ReadOnlyLaptop, "os"), (SetterLaptop, "gpu")],
)
def test_invalid_property_raises(bean_class, property_name):
    factory = BeanFactory()
    factory.register_bean_definition(
        "laptop",
        BeanDefinition(bean_class).add_property_value(property_name, TypedValue("x")),
    )

    with raises(InvalidPropertyException, match=property_name):
        factory.get_bean("laptop")


def test_constructor_values_are_converted_to_annotated_types():
    factory = BeanFactory()
    factory.register_bean_definition(
        "specs",
        BeanDefinition(Specs)
        .add_constructor_argument(TypedValue("X1"))
        .add_constructor_argument(TypedValue("16"))
        .add_constructor_argument(TypedValue("1.2"))
        .add_constructor_argument(TypedValue("yes"), name="touch"),
    )

    specs = factory.get_bean("specs")

    assert specs.model == "X1"
    assert specs.memory == 16
    assert specs.weight == 1.2
    assert specs.touch is True


def test_constructor_arguments_by_index_and_declared_type():
    factory = BeanFactory()
    factory.register_bean_definition(
        "specs",
        BeanDefinition(UntypedSpecs)
        .add_constructor_argument(TypedValue("32", "int"), index=1)
        .add_constructor_argument(TypedValue("Y2"), index=0),
    )

    specs = factory.get_bean("specs")

    assert specs.model == "Y2"
    assert specs.memory == 32


def test_untyped_constructor_values_stay_strings():
    factory = BeanFactory()
    factory.register_bean_definition(
        "specs",
        BeanDefinition(UntypedSpecs)
        .add_constructor_argument(TypedValue("Z3"))
        .add_constructor_argument(TypedValue("8")),
    )

    assert factory.get_bean("specs").memory == "8"


def test_named_argument_not_accepted_by_constructor_raises():
    factory = BeanFactory()
    factory.register_bean_definition(
        "specs",
        BeanDefinition(UntypedSpecs)
        .add_constructor_argument(TypedValue("a"), name="model")
        .add_constructor_argument(TypedValue("b"), name="ram"),
    )

    with raises(UnsatisfiedDependencyException, match="ram"):
        factory.get_bean("specs")


def test_gap_in_indexed_arguments_raises():
    factory = BeanFactory()
    factory.register_bean_definition(
        "specs",
        BeanDefinition(Specs).add_constructor_argument(TypedValue("1.5"), index=2),
    )

    with raises(UnsatisfiedDependencyException, match="model"):
        factory.get_bean("specs")


def test_generic_argument_is_not_passed_to_keyword_only_parameter():
    factory = BeanFactory()
    factory.register_bean_definition(
        "monitor",
        BeanDefinition(Monitor).add_constructor_argument(TypedValue("left")),
    )

    with raises(UnsatisfiedDependencyException, match="keyword-only"):
        factory.get_bean("monitor")


def test_named_argument_for_keyword_only_parameter():
    factory = BeanFactory()
    factory.register_bean_definition(
        "monitor",
        BeanDefinition(Monitor).add_constructor_argument(
            TypedValue("left"), name="name"
        ),
    )

    monitor = factory.get_bean("monitor")

    assert monitor.name == "left"
    assert monitor.laptop is None


def test_autowire_constructor_fills_keyword_only_parameters():
    factory = arrange_laptop_example()
    factory.register_bean_definition(
        "monitor",
        BeanDefinition(
            Monitor, autowire=Autowire.CONSTRUCTOR
        ).add_constructor_argument(TypedValue("left"), name="name"),
    )

    monitor = factory.get_bean("monitor")

    assert monitor.name == "left"
    assert monitor.laptop is factory.get_bean("laptop")


def test_conversion_failure_raises_type_mismatch():
    factory = BeanFactory()
    factory.register_bean_definition(
        "specs",
        BeanDefinition(Specs)
        .add_constructor_argument(TypedValue("X1"))
        .add_constructor_argument(TypedValue("lots"))
        .add_constructor_argument(TypedValue("1")),
    )

    with raises(TypeMismatchException, match="lots"):
        factory.get_bean("specs")


def test_missing_constructor_argument_raises_bean_creation_exception():
    factory = BeanFactory()
    factory.register_bean_definition("laptop", BeanDefinition(Laptop))

    with raises(BeanCreationException) as error:
        factory.get_bean("laptop")

    assert isinstance(error.value.__cause__, TypeError)
    assert error.value.bean_name == "laptop"


def test_errors_in_constructors_are_wrapped():
    factory = BeanFactory()
    factory.register_bean_definition("exploding", BeanDefinition(Exploding))

    with raises(BeanCreationException, match="Boom") as error:
        factory.get_bean("exploding")

    assert isinstance(error.value.__cause__, ValueError)
    assert "exploding" in str(error.value)


def test_circular_dependency_through_constructors_raises():
    factory = BeanFactory()
    factory.register_bean_definition(
        "chicken",
        BeanDefinition(Chicken).add_constructor_argument(BeanReference("egg")),
    )
    factory.register_bean_definition(
        "egg", BeanDefinition(Egg).add_constructor_argument(BeanReference("chicken"))
    )

    with raises(CircularDependencyException) as error:
        factory.get_bean("chicken")

    assert error.value.chain == ["chicken", "egg", "chicken"]
    assert "chicken -> egg -> chicken" in str(error.value)


def test_circular_dependency_through_setters_raises():
    factory = BeanFactory()
    factory.register_bean_definition(
        "chicken",
        BeanDefinition(SetterChicken).add_property_value("egg", BeanReference("egg")),
    )
    factory.register_bean_definition(
        "egg",
        BeanDefinition(SetterEgg).add_property_value(
            "chicken", BeanReference("chicken")
        ),
    )

    with raises(CircularDependencyException):
        factory.get_bean("egg")


def test_self_reference_raises():
    factory = BeanFactory()
    factory.register_bean_definition(
        "chicken",
        BeanDefinition(Chicken).add_constructor_argument(BeanReference("chicken")),
    )

    with raises(CircularDependencyException) as error:
        factory.get_bean("chicken")

    assert error.value.chain == ["chicken", "chicken"]


def test_reference_to_missing_bean_raises():
    factory = BeanFactory()
    factory.register_bean_definition(
        "laptop", BeanDefinition(Laptop).add_constructor_argument(BeanReference("os"))
    )

    with raises(NoSuchBeanDefinitionException, match="'os'"):
        factory.get_bean("laptop")


def test_autowire_constructor_by_type():
    factory = BeanFactory()
    factory.register_bean_definition("linux", BeanDefinition(Linux))
    factory.register_bean_definition(
        "laptop", BeanDefinition(Laptop, autowire=Autowire.CONSTRUCTOR)
    )

    laptop = factory.get_bean("laptop")

    assert laptop.os is factory.get_bean("linux")


def test_autowire_constructor_ambiguous_type_raises():
    factory = BeanFactory()
    factory.register_bean_definition("linux", BeanDefinition(Linux))
    factory.register_bean_definition("windows", BeanDefinition(Windows))
    factory.register_bean_definition(
        "laptop", BeanDefinition(Laptop, autowire=Autowire.CONSTRUCTOR)
    )

    with raises(NoUniqueBeanDefinitionException, match="linux, windows"):
        factory.get_bean("laptop")


def test_autowire_constructor_ambiguous_type_resolved_by_parameter_name():
    factory = BeanFactory()
    factory.register_bean_definition("linux", BeanDefinition(Linux))
    factory.register_bean_definition("os", BeanDefinition(Windows))
    factory.register_bean_definition(
        "laptop", BeanDefinition(Laptop, autowire=Autowire.CONSTRUCTOR)
    )

    assert isinstance(factory.get_bean("laptop").os, Windows)


def test_autowire_constructor_by_parameter_name():
    factory = BeanFactory()
    factory.register_bean_definition("linux", BeanDefinition(Linux))
    factory.register_bean_definition(
        "workstation",
        BeanDefinition(AutowiredWorkstation, autowire=Autowire.CONSTRUCTOR),
    )

    workstation = factory.get_bean("workstation")

    assert workstation.linux is factory.get_bean("linux")
    assert workstation.extra is None


def test_autowire_constructor_combined_with_explicit_arguments():
    factory = arrange_laptop_example()
    factory.register_bean_definition(
        "workstation",
        BeanDefinition(Workstation, autowire=Autowire.CONSTRUCTOR)
        .add_constructor_argument(TypedValue("3"), name="monitors"),
    )

    workstation = factory.get_bean("workstation")

    assert workstation.laptop is factory.get_bean("laptop")
    assert workstation.monitors == 3


def test_autowire_constructor_unsatisfied_raises():
    factory = BeanFactory()
    factory.register_bean_definition(
        "laptop", BeanDefinition(Laptop, autowire=Autowire.CONSTRUCTOR)
    )

    with raises(UnsatisfiedDependencyException, match="'os'"):
        factory.get_bean("laptop")


def test_autowire_by_name_uses_setters():
    factory = BeanFactory()
    factory.register_bean_definition("os", BeanDefinition(Linux))
    factory.register_bean_definition(
        "laptop", BeanDefinition(SetterLaptop, autowire=Autowire.BY_NAME)
    )

    laptop = factory.get_bean("laptop")

    assert laptop.os is factory.get_bean("os")
    assert laptop.set_calls == 1


def test_autowire_by_name_does_not_override_explicit_properties():
    factory = BeanFactory()
    factory.register_bean_definition("os", BeanDefinition(Linux))
    factory.register_bean_definition("windows", BeanDefinition(Windows))
    factory.register_bean_definition(
        "laptop",
        BeanDefinition(SetterLaptop, autowire=Autowire.BY_NAME).add_property_value(
            "os", BeanReference("windows")
        ),
    )

    laptop = factory.get_bean("laptop")

    assert isinstance(laptop.os, Windows)
    assert laptop.set_calls == 1


def test_autowire_by_type_uses_class_annotations():
    factory = BeanFactory()
    factory.register_bean_definition("linux", BeanDefinition(Linux))
    factory.register_bean_definition(
        "laptop", BeanDefinition(AnnotatedLaptop, autowire=Autowire.BY_TYPE)
    )

    laptop = factory.get_bean("laptop")

    assert laptop.os is factory.get_bean("linux")
    assert not hasattr(laptop, "brand")


def test_autowire_by_type_ambiguous_raises():
    factory = BeanFactory()
    factory.register_bean_definition("linux", BeanDefinition(Linux))
    factory.register_bean_definition("windows", BeanDefinition(Windows))
    factory.register_bean_definition(
        "laptop", BeanDefinition(AnnotatedLaptop, autowire=Autowire.BY_TYPE)
    )

    with raises(NoUniqueBeanDefinitionException):
        factory.get_bean("laptop")


def test_get_bean_by_type():
    factory = arrange_laptop_example()

    laptop = factory.get_bean(Laptop)

    assert laptop is factory.get_bean("laptop")
    assert factory.get_bean(OS) is factory.get_bean("os")
    assert OS in factory


def test_get_bean_by_type_not_configured_raises():
    factory = BeanFactory()

    with raises(NoSuchBeanDefinitionException, match="Laptop"):
        factory.get_bean(Laptop)


def test_get_bean_by_type_with_many_candidates_raises():
    factory = BeanFactory()
    factory.register_bean_definition("linux", BeanDefinition(Linux))
    factory.register_bean_definition("windows", BeanDefinition(Windows))

    with raises(NoUniqueBeanDefinitionException) as error:
        factory.get_bean(OS)

    assert error.value.candidates == ["linux", "windows"]


def test_get_bean_with_wrong_required_type_raises():
    factory = arrange_laptop_example()

    with raises(BeanNotOfRequiredTypeException):
        factory.get_bean("os", Laptop)


def test_get_bean_not_defined_raises():
    factory = BeanFactory()

    with raises(NoSuchBeanDefinitionException, match="'laptop'"):
        factory.get_bean("laptop")

    with raises(NoSuchBeanDefinitionException):
        factory.get_bean_definition("laptop")


def test_raises_for_overriding_bean():
    factory = arrange_laptop_example()

    with raises(OverridingBeanException):
        factory.register_bean_definition("os", BeanDefinition(Windows))


def test_overriding_bean_when_allowed():
    factory = BeanFactory(allow_overriding=True)
    factory.register_bean_definition("os", BeanDefinition(Linux))
    assert isinstance(factory.get_bean("os"), Linux)

    factory.register_bean_definition("os", BeanDefinition(Windows))
    assert isinstance(factory.get_bean("os"), Windows)


def test_aliases():
    factory = BeanFactory()
    factory.register_bean_definition(
        "linux", BeanDefinition(Linux, aliases=["os", "penguin"])
    )
    factory.register_alias("os", "system")

    assert factory.get_bean("os") is factory.get_bean("linux")
    assert factory.get_bean("system") is factory.get_bean("linux")
    assert sorted(factory.get_aliases("linux")) == ["os", "penguin", "system"]
    assert factory.contains_bean("penguin")
    assert "system" in factory


def test_alias_colliding_with_bean_raises():
    factory = arrange_laptop_example()

    with raises(AliasAlreadyDefined):
        factory.register_alias("laptop", "os")

    factory.register_alias("laptop", "notebook")

    with raises(AliasAlreadyDefined):
        factory.register_alias("os", "notebook")

    with raises(AliasAlreadyDefined):
        factory.register_bean_definition("notebook", BeanDefinition(Linux))


def test_register_singleton():
    factory = BeanFactory()
    windows = Windows()
    factory.register_singleton("os", windows)
    factory.register_bean_definition(
        "laptop", BeanDefinition(Laptop).add_constructor_argument(BeanReference("os"))
    )

    assert factory.get_bean("os") is windows
    assert factory.get_bean("laptop").os is windows
    assert factory.is_singleton("os") is True
    assert factory.get_type("os") is Windows
    assert list(factory) == ["laptop", "os"]
    assert len(factory) == 2


def test_factory_methods():
    factory = BeanFactory()
    factory.register_bean_definition(
        "connection",
        BeanDefinition(Connection, factory_method="create").add_constructor_argument(
            TypedValue(" db://example ")
        ),
    )
    factory.register_bean_definition(
        "default_connection", BeanDefinition(Connection, factory_method="default")
    )

    assert factory.get_bean("connection").url == "db://example"
    assert factory.get_bean("default_connection").url == "memory://"
    assert factory.get_type("connection") is Connection


def test_invalid_factory_method_raises():
    factory = BeanFactory()
    factory.register_bean_definition(
        "connection", BeanDefinition(Connection, factory_method="nope")
    )

    with raises(InvalidFactoryMethod):
        factory.get_bean("connection")


def test_class_that_cannot_be_imported_raises():
    factory = BeanFactory()
    factory.register_bean_definition(
        "ghost", BeanDefinition("tests.examples.Ghost")
    )
    factory.register_bean_definition(
        "missing", BeanDefinition("not_existing_package.Missing")
    )

    with raises(CannotLoadBeanClassException, match="tests.examples.Ghost"):
        factory.get_bean("ghost")

    with raises(CannotLoadBeanClassException):
        factory.get_bean("missing")


def test_get_bean_by_type_skips_lazy_beans_that_cannot_be_loaded():
    factory = BeanFactory()
    factory.register_bean_definition("linux", BeanDefinition(Linux))
    factory.register_bean_definition(
        "broken", BeanDefinition("nowhere.Missing", lazy_init=True)
    )

    assert factory.get_bean_names_for_type(OS) == ["linux"]
    assert factory.get_bean(OS) is factory.get_bean("linux")


def test_class_by_dotted_path():
    factory = BeanFactory()
    factory.register_bean_definition("os", BeanDefinition("tests.examples.Linux"))

    assert isinstance(factory.get_bean("os"), Linux)
    assert factory.get_type("os") is Linux


def test_preinstantiate_singletons_skips_lazy_and_prototype_beans():
    factory = BeanFactory()
    factory.register_bean_definition(
        "eager", BeanDefinition(Engine, init_method="start")
        .add_constructor_argument(TypedValue("eager"))
    )
    factory.register_bean_definition(
        "lazy", BeanDefinition(Engine, lazy_init=True, init_method="start")
        .add_constructor_argument(TypedValue("lazy"))
    )
    factory.register_bean_definition(
        "prototype",
        BeanDefinition(Engine, scope=BeanScope.PROTOTYPE, init_method="start")
        .add_constructor_argument(TypedValue("prototype")),
    )

    factory.preinstantiate_singletons()

    assert examples.events == ["start eager"]

    factory.get_bean("lazy")
    assert examples.events == ["start eager", "start lazy"]


def test_destroy_singletons_in_reverse_order(caplog):
    factory = BeanFactory()
    for name, bean_class in (("a", Engine), ("b", FaultyEngine), ("c", Engine)):
        factory.register_bean_definition(
            name,
            BeanDefinition(bean_class, init_method="start", destroy_method="stop")
            .add_constructor_argument(TypedValue(name)),
        )

    factory.preinstantiate_singletons()
    engine_a = factory.get_bean("a")

    with caplog.at_level(logging.ERROR):
        factory.destroy_singletons()

    assert examples.events == [
        "start a",
        "start b",
        "start c",
        "stop c",
        "fail b",
        "stop a",
    ]
    assert engine_a.stopped is True
    assert "Destroy method 'stop' on bean with name 'b'" in caplog.text

    # singletons are created again after destruction
    assert factory.get_bean("a") is not engine_a


def test_missing_init_method_raises():
    factory = BeanFactory()
    factory.register_bean_definition(
        "engine", BeanDefinition(Engine, init_method="ignite")
    )

    with raises(BeanCreationException, match="ignite"):
        factory.get_bean("engine")
