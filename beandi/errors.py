from beandi.common import class_name


class DIException(Exception):
    """Base exception class for DI exceptions."""


class BeanDefinitionParsingException(DIException):
    """
    Exception risen when a bean definition document cannot be parsed."""

    def __init__(self, message, source=None):
        self.source = source
        if source:
            message = f"{message} (in {source})"
        super().__init__(message)


class NoSuchBeanDefinitionException(DIException):
    """
    Exception risen when a bean is requested by a name, or a type,
    that is not configured."""

    def __init__(self, bean_name):
        self.bean_name = bean_name
        if isinstance(bean_name, str):
            super().__init__(f"No bean named '{bean_name}' is defined.")
        else:
            super().__init__(
                f"No qualifying bean of type '{class_name(bean_name)}' is defined."
            )


class NoUniqueBeanDefinitionException(DIException):
    """
    Exception risen when a bean is requested by type, and more than one
    bean matches it."""

    def __init__(self, desired_type, candidates):
        self.candidates = list(candidates)
        super().__init__(
            f"No qualifying bean of type '{class_name(desired_type)}': "
            f"expected a single matching bean but found {len(self.candidates)}: "
            + ", ".join(self.candidates)
        )


class BeanNotOfRequiredTypeException(DIException):
    def __init__(self, bean_name, required_type, actual_type):
        super().__init__(
            f"Bean named '{bean_name}' is expected to be of type "
            f"'{class_name(required_type)}' but was actually of type "
            f"'{class_name(actual_type)}'."
        )


class BeanCreationException(DIException):
    """
    Exception risen when an error occurs while creating a bean."""

    def __init__(self, bean_name, message):
        self.bean_name = bean_name
        super().__init__(f"Error creating bean with name '{bean_name}': {message}")


class CannotLoadBeanClassException(DIException):
    def __init__(self, bean_name, class_path):
        super().__init__(
            f"Cannot find class '{class_path}' for bean with name '{bean_name}'."
        )


class CircularDependencyException(DIException):
    """Exception risen when a circular dependency between a bean and
    one of its dependencies is detected."""

    def __init__(self, chain):
        self.chain = list(chain)
        super().__init__(
            "A circular dependency was detected while creating bean "
            f"'{self.chain[-1]}': " + " -> ".join(self.chain)
        )


class UnsatisfiedDependencyException(DIException):
    """
    Exception risen when it is not possible to resolve a parameter,
    necessary to instantiate a bean."""

    def __init__(self, bean_name, param_name, message=None):
        super().__init__(
            f"Unsatisfied dependency expressed through parameter '{param_name}' "
            f"of bean '{bean_name}'" + (f": {message}" if message else ".")
        )


class InvalidPropertyException(DIException):
    """Exception risen when a property cannot be set on a bean."""

    def __init__(self, bean_name, property_name, bean_class):
        super().__init__(
            f"Invalid property '{property_name}' of bean '{bean_name}': "
            f"class '{class_name(bean_class)}' defines neither a "
            f"'set_{property_name}' method nor a writable attribute "
            f"'{property_name}'."
        )


class TypeMismatchException(DIException):
    def __init__(self, value, required_type):
        super().__init__(
            f"Failed to convert value '{value}' to required type "
            f"'{class_name(required_type)}'."
        )


class OverridingBeanException(DIException):
    """
    Exception risen when registering a bean
    would override an existing one."""

    def __init__(self, bean_name):
        super().__init__(
            f"A bean with name '{bean_name}' is already "
            f"registered and overriding is not allowed."
        )


class AliasAlreadyDefined(DIException):
    """Exception risen when trying to add an alias that already exists."""

    def __init__(self, name):
        super().__init__(
            f"Cannot define alias '{name}'. "
            f"A bean or an alias with given name is already defined."
        )


class InvalidFactoryMethod(DIException):
    def __init__(self, bean_name, method_name, bean_class):
        super().__init__(
            f"The factory method '{method_name}' specified for bean '{bean_name}' "
            f"is not a callable attribute of class '{class_name(bean_class)}'."
        )


class InvalidOperationOnInactiveContext(DIException):
    def __init__(self):
        super().__init__(
            "The application context is not active: "
            "call refresh() before obtaining beans, or do not use it after close()."
        )
