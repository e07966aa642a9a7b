import logging
import sys
from inspect import Parameter, Signature, isclass
from typing import (
    Any,
    ClassVar,
    Dict,
    Iterator,
    List,
    Optional,
    Set,
    Tuple,
    Type,
    TypeVar,
    Union,
    get_type_hints,
)

from beandi.abc import BeanFactoryProtocol
from beandi.common import (
    class_name,
    convert_value,
    import_class,
    to_standard_param_name,
)
from beandi.definitions import (
    Autowire,
    BeanDefinition,
    BeanReference,
    ConstructorArgument,
    TypedValue,
)
from beandi.errors import (
    AliasAlreadyDefined,
    BeanCreationException,
    BeanNotOfRequiredTypeException,
    CannotLoadBeanClassException,
    CircularDependencyException,
    DIException,
    InvalidFactoryMethod,
    InvalidPropertyException,
    NoSuchBeanDefinitionException,
    NoUniqueBeanDefinitionException,
    OverridingBeanException,
    TypeMismatchException,
    UnsatisfiedDependencyException,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)

CONVERTIBLE_TYPES = (str, int, float, bool)

POSITIONAL_KINDS = (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD)


class CreationContext:
    """
    Keeps track of the beans being created, to detect circular dependencies.
    """

    __slots__ = ("chain",)

    def __init__(self):
        self.chain: List[str] = []

    def enter(self, bean_name: str) -> "CreationContext":
        if bean_name in self.chain:
            start = self.chain.index(bean_name)
            raise CircularDependencyException(self.chain[start:] + [bean_name])
        self.chain.append(bean_name)
        return self

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.chain.pop()


def get_hints(obj) -> Dict[str, Any]:
    """
    Returns the type hints of a class or a function, falling back to raw
    annotations when forward references cannot be evaluated.
    """
    module = sys.modules.get(getattr(obj, "__module__", ""), None)
    try:
        return get_type_hints(obj, vars(module) if module else None)
    except (NameError, TypeError):
        return dict(getattr(obj, "__annotations__", {}))


def _is_class_var(annotation) -> bool:
    try:
        return annotation is ClassVar or annotation.__origin__ is ClassVar
    except AttributeError:
        return False


class BeanFactory(BeanFactoryProtocol):
    """
    Registry of bean definitions, that creates beans and injects their dependencies
    through constructors and setters.
    """

    __slots__ = (
        "_definitions",
        "_aliases",
        "_singletons",
        "_manual_singletons",
        "_creation_order",
        "_creation",
        "allow_overriding",
    )

    def __init__(self, *, allow_overriding: bool = False):
        self._definitions: Dict[str, BeanDefinition] = {}
        self._aliases: Dict[str, str] = {}
        self._singletons: Dict[str, Any] = {}
        self._manual_singletons: Set[str] = set()
        self._creation_order: List[str] = []
        self._creation = CreationContext()
        self.allow_overriding = allow_overriding

    def __iter__(self) -> Iterator[str]:
        yield from self.bean_definition_names
        yield from (
            name for name in self._singletons if name in self._manual_singletons
        )

    def __contains__(self, item) -> bool:
        if isinstance(item, str):
            return self.contains_bean(item)
        return bool(self.get_bean_names_for_type(item))

    def __len__(self) -> int:
        return len(self._definitions) + len(self._manual_singletons)

    @property
    def bean_definition_names(self) -> List[str]:
        return list(self._definitions.keys())

    def register_bean_definition(
        self, name: str, definition: BeanDefinition
    ) -> "BeanFactory":
        """
        Registers a bean definition by name, and the aliases it declares.

        :param name: bean name
        :param definition: bean definition
        :return: the bean factory itself
        """
        if name in self._aliases:
            raise AliasAlreadyDefined(name)

        if name in self._definitions or name in self._manual_singletons:
            if not self.allow_overriding:
                raise OverridingBeanException(name)
            logger.info("Overriding bean definition for bean '%s'", name)
            self._singletons.pop(name, None)
            self._manual_singletons.discard(name)

        self._definitions[name] = definition

        for alias in definition.aliases:
            self.register_alias(name, alias)
        return self

    def register_alias(self, name: str, alias: str) -> "BeanFactory":
        """
        Registers an alternative name for a bean.

        :param name: bean name, or an existing alias
        :param alias: alias to be registered
        :return: the bean factory itself
        """
        if alias == name:
            return self

        existing = self._aliases.get(alias)
        if existing is not None:
            if existing == name:
                return self
            raise AliasAlreadyDefined(alias)

        if alias in self._definitions or alias in self._manual_singletons:
            raise AliasAlreadyDefined(alias)

        self._aliases[alias] = name
        return self

    def register_singleton(self, name: str, instance: Any) -> "BeanFactory":
        """
        Registers an existing object as a singleton bean.

        :param name: bean name
        :param instance: object to be returned for the given name
        :return: the bean factory itself
        """
        if name in self._aliases:
            raise AliasAlreadyDefined(name)
        if name in self._definitions or name in self._manual_singletons:
            if not self.allow_overriding:
                raise OverridingBeanException(name)
            self._definitions.pop(name, None)

        self._singletons[name] = instance
        self._manual_singletons.add(name)
        return self

    def canonical_name(self, name: str) -> str:
        seen = set()
        while name in self._aliases:
            if name in seen:  # pragma: no cover
                raise AliasAlreadyDefined(name)
            seen.add(name)
            name = self._aliases[name]
        return name

    def get_aliases(self, name: str) -> List[str]:
        name = self.canonical_name(name)
        return [
            alias
            for alias in self._aliases
            if alias != name and self.canonical_name(alias) == name
        ]

    def contains_bean(self, name: str) -> bool:
        name = self.canonical_name(name)
        return name in self._definitions or name in self._manual_singletons

    def get_bean_definition(self, name: str) -> BeanDefinition:
        try:
            return self._definitions[self.canonical_name(name)]
        except KeyError:
            raise NoSuchBeanDefinitionException(name)

    def is_singleton(self, name: str) -> bool:
        canonical = self.canonical_name(name)
        if canonical in self._manual_singletons:
            return True
        return self.get_bean_definition(canonical).is_singleton

    def is_prototype(self, name: str) -> bool:
        canonical = self.canonical_name(name)
        if canonical in self._manual_singletons:
            return False
        return self.get_bean_definition(canonical).is_prototype

    def get_type(self, name: str) -> Optional[Type]:
        """
        Returns the type of the bean with given name, without creating it when
        possible. Returns None if the type cannot be determined.
        """
        canonical = self.canonical_name(name)

        if canonical in self._singletons:
            return type(self._singletons[canonical])

        definition = self.get_bean_definition(canonical)
        bean_class = definition.resolve_class(canonical)

        if definition.factory_method:
            factory = getattr(bean_class, definition.factory_method, None)
            if factory is None:
                return None
            return_type = get_hints(factory).get("return")
            return return_type if isclass(return_type) else None

        return bean_class

    def get_bean_names_for_type(self, desired_type: Type) -> List[str]:
        names = []
        for name in self:
            try:
                bean_type = self.get_type(name)
            except CannotLoadBeanClassException:
                logger.debug("Skipping bean %s, its class cannot be loaded", name)
                continue
            if bean_type is None:
                continue
            try:
                if issubclass(bean_type, desired_type):
                    names.append(name)
            except TypeError:
                # ignore, this happens with generic types
                pass
        return names

    def get_bean(
        self,
        name: Union[str, Type[T]],
        required_type: Optional[Type[T]] = None,
    ) -> T:
        """
        Obtains a bean by name, or by type, creating it if necessary.

        :param name: bean name or alias; or the desired type
        :param required_type: optional type the bean must be an instance of
        :return: the bean
        """
        if not isinstance(name, str):
            required_type = name
            name = self._get_unique_name_for_type(name)

        bean = self._get_bean(self.canonical_name(name))

        if required_type is not None and not isinstance(bean, required_type):
            raise BeanNotOfRequiredTypeException(name, required_type, type(bean))
        return bean

    def preinstantiate_singletons(self) -> None:
        """Creates all singletons that are not configured for lazy initialization."""
        for name, definition in list(self._definitions.items()):
            if definition.is_singleton and not definition.lazy_init:
                self._get_bean(name)

    def destroy_singletons(self) -> None:
        """
        Calls the destroy methods of created singletons, in reverse order of
        creation, and forgets them.
        """
        for name in reversed(self._creation_order):
            instance = self._singletons.pop(name, None)
            definition = self._definitions.get(name)

            if instance is None or definition is None or not definition.destroy_method:
                continue

            logger.debug("Invoking destroy method on bean '%s'", name)
            try:
                getattr(instance, definition.destroy_method)()
            except Exception:
                logger.exception(
                    "Destroy method '%s' on bean with name '%s' threw an exception",
                    definition.destroy_method,
                    name,
                )
        self._creation_order.clear()

    def _get_unique_name_for_type(self, desired_type: Type) -> str:
        candidates = self.get_bean_names_for_type(desired_type)
        if not candidates:
            raise NoSuchBeanDefinitionException(desired_type)
        if len(candidates) > 1:
            raise NoUniqueBeanDefinitionException(desired_type, candidates)
        return candidates[0]

    def _get_bean(self, name: str) -> Any:
        # NB: singletons are instantiated only once per bean factory
        if name in self._singletons:
            return self._singletons[name]

        definition = self._definitions.get(name)
        if definition is None:
            raise NoSuchBeanDefinitionException(name)

        with self._creation.enter(name):
            bean = self._create_bean(name, definition)

        if definition.is_singleton:
            self._singletons[name] = bean
            self._creation_order.append(name)
        return bean

    def _create_bean(self, name: str, definition: BeanDefinition) -> Any:
        logger.debug("Creating instance of bean '%s'", name)
        try:
            bean_class = definition.resolve_class(name)
            instance = self._instantiate(name, definition, bean_class)
            self._populate(name, definition, bean_class, instance)
            self._initialize(name, definition, instance)
        except DIException:
            raise
        except Exception as creation_error:
            raise BeanCreationException(name, str(creation_error)) from creation_error
        return instance

    def _instantiate(self, name: str, definition: BeanDefinition, bean_class: Type):
        if definition.factory_method:
            target = getattr(bean_class, definition.factory_method, None)
            if not callable(target):
                raise InvalidFactoryMethod(name, definition.factory_method, bean_class)
            hints = get_hints(target)
        else:
            target = bean_class
            hints = (
                get_hints(bean_class.__init__)
                if bean_class.__init__ is not object.__init__
                else {}
            )

        try:
            signature: Optional[Signature] = Signature.from_callable(target)
        except (TypeError, ValueError):
            # for example, this is the case for some builtins
            signature = None

        args, kwargs = self._get_constructor_arguments(
            name, definition, signature, hints
        )
        return target(*args, **kwargs)

    def _get_constructor_arguments(
        self,
        name: str,
        definition: BeanDefinition,
        signature: Optional[Signature],
        hints: Dict[str, Any],
    ) -> Tuple[List[Any], Dict[str, Any]]:
        params = (
            [
                param
                for param in signature.parameters.values()
                if param.kind not in (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD)
            ]
            if signature is not None
            else []
        )
        params_by_name = {param.name: param for param in params}
        positional = [param for param in params if param.kind in POSITIONAL_KINDS]
        accepts_var_positional = signature is not None and any(
            param.kind == Parameter.VAR_POSITIONAL
            for param in signature.parameters.values()
        )

        indexed: Dict[int, ConstructorArgument] = {}
        named: Dict[str, ConstructorArgument] = {}
        generic: List[ConstructorArgument] = []

        for argument in definition.constructor_arguments:
            if argument.index is not None:
                if argument.index in indexed:
                    raise UnsatisfiedDependencyException(
                        name, argument.index, "the index is defined more than once"
                    )
                indexed[argument.index] = argument
            elif argument.name is not None:
                named[argument.name] = argument
            else:
                generic.append(argument)

        positions: Dict[int, ConstructorArgument] = dict(indexed)
        taken_names = set(named)
        index = 0
        for argument in generic:
            while index in positions or (
                index < len(positional) and positional[index].name in taken_names
            ):
                index += 1
            positions[index] = argument
            index += 1

        def param_type(param: Optional[Parameter]):
            if param is None:
                return None
            return hints.get(param.name)

        values: Dict[int, Any] = {}
        for position, argument in positions.items():
            if (
                signature is not None
                and position >= len(positional)
                and not accepts_var_positional
            ):
                raise UnsatisfiedDependencyException(
                    name,
                    position,
                    f"the constructor accepts {len(positional)} positional "
                    "arguments, keyword-only parameters must be set by name",
                )
            param = positional[position] if position < len(positional) else None
            values[position] = self._resolve_value(argument.value, param_type(param))

        kwargs: Dict[str, Any] = {}
        for param_name, argument in named.items():
            param = params_by_name.get(param_name)
            if signature is not None and param is None and not any(
                p.kind == Parameter.VAR_KEYWORD for p in signature.parameters.values()
            ):
                raise UnsatisfiedDependencyException(
                    name, param_name, "the constructor does not accept it"
                )
            kwargs[param_name] = self._resolve_value(argument.value, param_type(param))

        if definition.autowire == Autowire.CONSTRUCTOR:
            for position, param in enumerate(positional):
                if position in values or param.name in kwargs:
                    continue
                value = self._autowire_parameter(name, param, param_type(param))
                if value is not ...:
                    values[position] = value

            for param in params:
                if param.kind != Parameter.KEYWORD_ONLY or param.name in kwargs:
                    continue
                value = self._autowire_parameter(name, param, param_type(param))
                if value is not ...:
                    kwargs[param.name] = value

        args: List[Any] = []
        for position in range(max(values) + 1 if values else 0):
            if position in values:
                args.append(values[position])
                continue
            param = positional[position] if position < len(positional) else None
            if param is None or param.default is Parameter.empty:
                raise UnsatisfiedDependencyException(
                    name,
                    param.name if param is not None else position,
                    "no value was configured for it",
                )
            args.append(param.default)
        return args, kwargs

    def _autowire_parameter(self, name: str, param: Parameter, annotation: Any):
        if isclass(annotation) and annotation not in CONVERTIBLE_TYPES:
            candidates = [
                candidate
                for candidate in self.get_bean_names_for_type(annotation)
                if candidate != name
            ]
            if len(candidates) == 1:
                return self._get_bean(candidates[0])
            if len(candidates) > 1:
                if param.name in candidates:
                    return self._get_bean(param.name)
                raise NoUniqueBeanDefinitionException(annotation, candidates)

        if param.name != name and self.contains_bean(param.name):
            return self._get_bean(self.canonical_name(param.name))

        if param.default is not Parameter.empty:
            return ...

        raise UnsatisfiedDependencyException(
            name,
            param.name,
            "no bean matches its type"
            + (f" '{class_name(annotation)}'" if annotation is not None else "")
            + " or its name",
        )

    def _resolve_value(self, value: Any, desired_type: Any = None) -> Any:
        if isinstance(value, BeanReference):
            return self._get_bean(self.canonical_name(value.bean_name))

        if isinstance(value, TypedValue):
            if value.type_name:
                try:
                    target_type = import_class(value.type_name)
                except ImportError as import_error:
                    raise TypeMismatchException(
                        value.value, value.type_name
                    ) from import_error
                return convert_value(value.value, target_type)

            if desired_type in CONVERTIBLE_TYPES:
                return convert_value(value.value, desired_type)
            return value.value

        return value

    def _property_type(self, bean_class: Type, property_name: str) -> Any:
        setter = getattr(bean_class, f"set_{property_name}", None)
        if callable(setter):
            hints = get_hints(setter)
            hints.pop("return", None)
            for hint in hints.values():
                return hint
            return None
        return get_hints(bean_class).get(property_name)

    def _is_writable(self, bean_class: Type, instance: Any, attribute: str) -> bool:
        class_attribute = getattr(bean_class, attribute, None)
        if isinstance(class_attribute, property):
            return class_attribute.fset is not None

        if attribute in get_hints(bean_class):
            return True

        return hasattr(instance, attribute) and not callable(
            getattr(instance, attribute)
        )

    def _set_property(
        self,
        name: str,
        bean_class: Type,
        instance: Any,
        property_name: str,
        value: Any,
    ) -> None:
        attribute = to_standard_param_name(property_name)
        setter = getattr(instance, f"set_{attribute}", None)

        if callable(setter):
            setter(value)
            return

        for candidate in dict.fromkeys((property_name, attribute)):
            if self._is_writable(bean_class, instance, candidate):
                setattr(instance, candidate, value)
                return

        raise InvalidPropertyException(name, property_name, bean_class)

    def _get_autowire_candidates(self, bean_class: Type) -> Dict[str, Any]:
        """
        Returns the properties that can be autowired, by name: annotated class
        attributes and `set_*` methods.
        """
        candidates = {}

        for key, annotation in get_hints(bean_class).items():
            if key.startswith("_") or _is_class_var(annotation):
                continue
            candidates[key] = annotation

        for key in dir(bean_class):
            if key.startswith("set_") and callable(getattr(bean_class, key)):
                property_name = key[4:]
                if property_name and property_name not in candidates:
                    candidates[property_name] = self._property_type(
                        bean_class, property_name
                    )
        return candidates

    def _populate(
        self,
        name: str,
        definition: BeanDefinition,
        bean_class: Type,
        instance: Any,
    ) -> None:
        explicit = set()

        for property_value in definition.property_values:
            attribute = to_standard_param_name(property_value.name)
            value = self._resolve_value(
                property_value.value, self._property_type(bean_class, attribute)
            )
            self._set_property(name, bean_class, instance, property_value.name, value)
            explicit.add(attribute)

        if definition.autowire == Autowire.BY_NAME:
            for property_name in self._get_autowire_candidates(bean_class):
                if property_name in explicit or property_name == name:
                    continue
                if self.contains_bean(property_name):
                    value = self._get_bean(self.canonical_name(property_name))
                    self._set_property(
                        name, bean_class, instance, property_name, value
                    )

        elif definition.autowire == Autowire.BY_TYPE:
            for property_name, annotation in self._get_autowire_candidates(
                bean_class
            ).items():
                if property_name in explicit or not isclass(annotation):
                    continue
                if annotation in CONVERTIBLE_TYPES:
                    continue
                candidates = [
                    candidate
                    for candidate in self.get_bean_names_for_type(annotation)
                    if candidate != name
                ]
                if not candidates:
                    continue
                if len(candidates) > 1:
                    raise NoUniqueBeanDefinitionException(annotation, candidates)
                self._set_property(
                    name,
                    bean_class,
                    instance,
                    property_name,
                    self._get_bean(candidates[0]),
                )

    def _initialize(self, name: str, definition: BeanDefinition, instance: Any):
        if not definition.init_method:
            return

        init_method = getattr(instance, definition.init_method, None)
        if not callable(init_method):
            raise BeanCreationException(
                name, f"init method '{definition.init_method}' is not defined"
            )
        logger.debug("Invoking init method on bean '%s'", name)
        init_method()
