"""
This module implements reading of bean definitions from XML documents, using the
same format of Spring's "beans" configuration files:

    <beans xmlns="http://www.springframework.org/schema/beans">
        <bean id="os" class="example.OS"/>
        <bean id="laptop" class="example.Laptop">
            <constructor-arg ref="os"/>
        </bean>
    </beans>
"""
import logging
import xml.etree.ElementTree as ET
from collections import defaultdict
from importlib import resources
from pathlib import Path
from typing import Any, DefaultDict, Optional, Set, Union

from beandi.common import split_names
from beandi.definitions import (
    Autowire,
    BeanDefinition,
    BeanReference,
    BeanScope,
    ConstructorArgument,
    PropertyValue,
    TypedValue,
)
from beandi.errors import BeanDefinitionParsingException
from beandi.factory import BeanFactory

CLASSPATH_PREFIX = "classpath:"

IGNORED_ELEMENTS = {"description", "meta"}

logger = logging.getLogger(__name__)


def local_name(element: ET.Element) -> str:
    tag = element.tag
    if not isinstance(tag, str):
        # comments and processing instructions
        return ""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def child_elements(element: ET.Element):
    for child in element:
        name = local_name(child)
        if name and name not in IGNORED_ELEMENTS:
            yield name, child


class DocumentDefaults:
    __slots__ = ("lazy_init", "autowire", "init_method", "destroy_method")

    def __init__(self, root: ET.Element, source: str):
        self.lazy_init = parse_bool(
            root.get("default-lazy-init", "false"), "default-lazy-init", source
        )
        self.autowire = parse_autowire(
            root.get("default-autowire", "no"), "default-autowire", source
        )
        self.init_method = root.get("default-init-method") or None
        self.destroy_method = root.get("default-destroy-method") or None


def parse_bool(value: str, attribute: str, source: str) -> bool:
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise BeanDefinitionParsingException(
        f"Invalid value '{value}' for attribute '{attribute}': "
        "expected 'true' or 'false'",
        source,
    )


def parse_autowire(value: str, attribute: str, source: str) -> Autowire:
    try:
        return Autowire(value.strip())
    except ValueError:
        raise BeanDefinitionParsingException(
            f"Invalid value '{value}' for attribute '{attribute}': expected one of "
            + ", ".join(f"'{item.value}'" for item in Autowire),
            source,
        )


class XmlBeanDefinitionReader:
    """
    Reads bean definitions from XML documents, registering them into a bean factory.
    """

    def __init__(self, registry: BeanFactory):
        self.registry = registry
        self._generated_names: DefaultDict[str, int] = defaultdict(int)
        self._loading: Set[str] = set()

    def load_from_path(self, path: Union[str, Path]) -> int:
        """
        Loads bean definitions from an XML file.

        :param path: path to the XML file
        :return: the number of bean definitions found
        """
        path = Path(path)
        return self._load(path, path.parent, str(path))

    def load_from_resource(self, package: str, resource: str) -> int:
        """
        Loads bean definitions from an XML file included in a Python package, like
        a class path resource.

        :param package: name of the package containing the resource
        :param resource: relative path of the resource, using "/" as separator,
            optionally prefixed by "classpath:"
        :return: the number of bean definitions found
        """
        if resource.startswith(CLASSPATH_PREFIX):
            resource = resource[len(CLASSPATH_PREFIX) :]
        base: Any = resources.files(package)
        parts = [part for part in resource.split("/") if part]
        for part in parts[:-1]:
            base = base.joinpath(part)
        if not parts:
            raise BeanDefinitionParsingException(
                "Empty resource name", f"package '{package}'"
            )
        return self._load(
            base.joinpath(parts[-1]), base, f"class path resource [{resource}]"
        )

    def load_from_string(
        self,
        text: str,
        source: str = "<string>",
        base: Optional[Union[str, Path]] = None,
    ) -> int:
        """
        Loads bean definitions from an XML document in a string.

        :param text: XML document
        :param source: description of the document, used in messages
        :param base: optional directory used to resolve imported resources
        :return: the number of bean definitions found
        """
        return self._parse_document(
            text, Path(base) if base is not None else Path.cwd(), source
        )

    def _load(self, location: Any, base: Any, source: str) -> int:
        key = str(location)
        if key in self._loading:
            raise BeanDefinitionParsingException(
                "Circular import of bean definitions detected", source
            )
        try:
            text = location.read_bytes()
        except OSError as read_error:
            raise BeanDefinitionParsingException(
                f"Cannot read bean definitions: {read_error}", source
            ) from read_error

        self._loading.add(key)
        try:
            count = self._parse_document(text, base, source)
        finally:
            self._loading.discard(key)

        logger.info("Loaded %d bean definitions from %s", count, source)
        return count

    def _parse_document(
        self, text: Union[str, bytes], base: Any, source: str
    ) -> int:
        try:
            root = ET.fromstring(text)
        except ET.ParseError as parse_error:
            raise BeanDefinitionParsingException(
                f"Invalid XML document: {parse_error}", source
            ) from parse_error

        if local_name(root) != "beans":
            raise BeanDefinitionParsingException(
                f"Unexpected root element '{local_name(root)}': expected 'beans'",
                source,
            )

        defaults = DocumentDefaults(root, source)
        count = 0

        for name, element in child_elements(root):
            if name == "bean":
                self._parse_bean(element, defaults, source)
                count += 1
            elif name == "alias":
                self._parse_alias(element, source)
            elif name == "import":
                count += self._parse_import(element, base, source)
            else:
                raise BeanDefinitionParsingException(
                    f"Unexpected element '{name}' in 'beans'", source
                )
        return count

    def _parse_import(self, element: ET.Element, base: Any, source: str) -> int:
        resource = element.get("resource")
        if not resource:
            raise BeanDefinitionParsingException(
                "Element 'import' requires a 'resource' attribute", source
            )

        if resource.startswith(CLASSPATH_PREFIX):
            package, _, name = resource[len(CLASSPATH_PREFIX) :].partition(":")
            if not name:
                raise BeanDefinitionParsingException(
                    "Class path imports must be in the form "
                    "'classpath:package:resource'",
                    source,
                )
            return self.load_from_resource(package, name)

        location = base
        parts = [part for part in resource.split("/") if part]
        if not parts:
            raise BeanDefinitionParsingException(
                f"Invalid import resource '{resource}'", source
            )
        for part in parts[:-1]:
            location = location.joinpath(part)
        return self._load(
            location.joinpath(parts[-1]), location, f"{resource} (imported by {source})"
        )

    def _parse_alias(self, element: ET.Element, source: str) -> None:
        name = element.get("name")
        alias = element.get("alias")
        if not name or not alias:
            raise BeanDefinitionParsingException(
                "Element 'alias' requires both 'name' and 'alias' attributes", source
            )
        self.registry.register_alias(name, alias)

    def _generate_name(self, class_name: str) -> str:
        index = self._generated_names[class_name]
        self._generated_names[class_name] += 1
        return f"{class_name}#{index}"

    def _parse_bean(
        self, element: ET.Element, defaults: DocumentDefaults, source: str
    ) -> None:
        class_name = element.get("class")
        if not class_name:
            raise BeanDefinitionParsingException(
                "Element 'bean' requires a 'class' attribute", source
            )

        aliases = split_names(element.get("name", ""))
        bean_id = element.get("id")
        if not bean_id:
            bean_id = aliases.pop(0) if aliases else self._generate_name(class_name)

        scope_value = element.get("scope", BeanScope.SINGLETON.value)
        try:
            scope = BeanScope(scope_value)
        except ValueError:
            raise BeanDefinitionParsingException(
                f"Invalid scope '{scope_value}' for bean '{bean_id}': expected "
                "'singleton' or 'prototype'",
                source,
            )

        lazy_init = element.get("lazy-init", "default")
        autowire = element.get("autowire", "default")

        definition = BeanDefinition(
            class_name,
            scope=scope,
            lazy_init=defaults.lazy_init
            if lazy_init == "default"
            else parse_bool(lazy_init, "lazy-init", source),
            autowire=defaults.autowire
            if autowire == "default"
            else parse_autowire(autowire, "autowire", source),
            init_method=element.get("init-method") or defaults.init_method,
            destroy_method=element.get("destroy-method") or defaults.destroy_method,
            factory_method=element.get("factory-method") or None,
            aliases=aliases,
            source=source,
        )

        for name, child in child_elements(element):
            if name == "constructor-arg":
                definition.constructor_arguments.append(
                    self._parse_constructor_arg(child, bean_id, source)
                )
            elif name == "property":
                definition.property_values.append(
                    self._parse_property(child, bean_id, source)
                )
            else:
                raise BeanDefinitionParsingException(
                    f"Unexpected element '{name}' in bean '{bean_id}'", source
                )

        self.registry.register_bean_definition(bean_id, definition)

    def _parse_constructor_arg(
        self, element: ET.Element, bean_id: str, source: str
    ) -> ConstructorArgument:
        index_value = element.get("index")
        index = None
        if index_value is not None:
            try:
                index = int(index_value)
            except ValueError:
                index = -1
            if index < 0:
                raise BeanDefinitionParsingException(
                    f"Invalid index '{index_value}' of constructor argument "
                    f"of bean '{bean_id}': expected a non negative integer",
                    source,
                )

        return ConstructorArgument(
            self._parse_value(element, f"constructor-arg of bean '{bean_id}'", source),
            index=index,
            name=element.get("name") or None,
        )

    def _parse_property(
        self, element: ET.Element, bean_id: str, source: str
    ) -> PropertyValue:
        name = element.get("name")
        if not name:
            raise BeanDefinitionParsingException(
                f"Element 'property' of bean '{bean_id}' requires a 'name' attribute",
                source,
            )
        owner = f"property '{name}' of bean '{bean_id}'"
        return PropertyValue(name, self._parse_value(element, owner, source))

    def _parse_value(self, element: ET.Element, owner: str, source: str) -> Any:
        type_name = element.get("type") or None
        candidates = []

        if element.get("ref") is not None:
            candidates.append(BeanReference(element.get("ref", "")))

        if element.get("value") is not None:
            candidates.append(TypedValue(element.get("value", ""), type_name))

        for name, child in child_elements(element):
            if name == "ref":
                bean_name = child.get("bean") or child.get("local")
                if not bean_name:
                    raise BeanDefinitionParsingException(
                        f"Element 'ref' of {owner} requires a 'bean' attribute",
                        source,
                    )
                candidates.append(BeanReference(bean_name))
            elif name == "value":
                candidates.append(
                    TypedValue(child.text or "", child.get("type") or type_name)
                )
            elif name == "null":
                candidates.append(None)
            else:
                raise BeanDefinitionParsingException(
                    f"Unexpected element '{name}' in {owner}", source
                )

        if len(candidates) != 1:
            raise BeanDefinitionParsingException(
                f"The {owner} must define exactly one of: 'ref' attribute, "
                "'value' attribute, or a sub-element",
                source,
            )
        return candidates[0]
