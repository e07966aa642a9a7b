import inspect
import logging
from pathlib import Path
from typing import List, Optional, Type, TypeVar, Union

from beandi.abc import BeanFactoryProtocol
from beandi.errors import InvalidOperationOnInactiveContext
from beandi.factory import BeanFactory
from beandi.xml_reader import XmlBeanDefinitionReader

T = TypeVar("T")

logger = logging.getLogger(__name__)


class ApplicationContext(BeanFactoryProtocol):
    """
    Application context backed by a bean factory: on refresh, it creates all
    singletons that are not lazy, on close it destroys them.
    """

    def __init__(self, bean_factory: Optional[BeanFactory] = None):
        self.bean_factory = bean_factory or BeanFactory()
        self._active = False
        self._closed = False

    def __enter__(self):
        if not self._active:
            self.refresh()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __contains__(self, item) -> bool:
        return item in self.bean_factory

    def __repr__(self):
        return (
            f"<{type(self).__name__} active={self._active} "
            f"beans={self.bean_factory.bean_definition_names}>"
        )

    @property
    def active(self) -> bool:
        return self._active

    @property
    def bean_definition_names(self) -> List[str]:
        return self.bean_factory.bean_definition_names

    def load_bean_definitions(self) -> int:
        """Registers the bean definitions of this context into its bean factory."""
        return 0

    def refresh(self) -> "ApplicationContext":
        """
        Creates all non lazy singletons. If any bean cannot be created, the
        singletons created so far are destroyed and the exception is propagated.
        """
        if self._active:
            self.bean_factory.destroy_singletons()
            self._active = False

        try:
            self.bean_factory.preinstantiate_singletons()
        except Exception:
            logger.warning(
                "Exception encountered during context initialization, "
                "destroying the singletons created so far"
            )
            self.bean_factory.destroy_singletons()
            raise

        self._active = True
        self._closed = False
        logger.debug("Refreshed %r", self)
        return self

    def close(self) -> None:
        if self._closed:
            return
        logger.debug("Closing %r", self)
        self.bean_factory.destroy_singletons()
        self._active = False
        self._closed = True

    def get_bean(
        self,
        name: Union[str, Type[T]],
        required_type: Optional[Type[T]] = None,
    ) -> T:
        if not self._active:
            raise InvalidOperationOnInactiveContext()
        return self.bean_factory.get_bean(name, required_type)

    def contains_bean(self, name: str) -> bool:
        return self.bean_factory.contains_bean(name)

    def get_aliases(self, name: str) -> List[str]:
        return self.bean_factory.get_aliases(name)

    def is_singleton(self, name: str) -> bool:
        return self.bean_factory.is_singleton(name)

    def is_prototype(self, name: str) -> bool:
        return self.bean_factory.is_prototype(name)

    def get_type(self, name: str) -> Optional[Type]:
        return self.bean_factory.get_type(name)


class GenericXmlApplicationContext(ApplicationContext):
    """
    Application context that reads XML bean definitions from files or strings,
    before an explicit call to `refresh`.
    """

    def __init__(self, bean_factory: Optional[BeanFactory] = None):
        super().__init__(bean_factory)
        self.reader = XmlBeanDefinitionReader(self.bean_factory)

    def load(self, *paths: Union[str, Path]) -> "GenericXmlApplicationContext":
        for path in paths:
            self.reader.load_from_path(path)
        return self

    def load_string(
        self, text: str, source: str = "<string>"
    ) -> "GenericXmlApplicationContext":
        self.reader.load_from_string(text, source)
        return self


class FileSystemXmlApplicationContext(GenericXmlApplicationContext):
    """
    Application context that reads XML bean definitions from files.
    """

    def __init__(
        self,
        *paths: Union[str, Path],
        refresh: bool = True,
        bean_factory: Optional[BeanFactory] = None,
    ):
        super().__init__(bean_factory)
        self.paths = list(paths)
        self.load_bean_definitions()
        if refresh:
            self.refresh()

    def load_bean_definitions(self) -> int:
        return sum(self.reader.load_from_path(path) for path in self.paths)


class ClassPathXmlApplicationContext(GenericXmlApplicationContext):
    """
    Application context that reads XML bean definitions from resources included in
    a Python package. If the package is not specified, the package of the calling
    module is used.
    """

    def __init__(
        self,
        *resources: str,
        package: Optional[str] = None,
        refresh: bool = True,
        bean_factory: Optional[BeanFactory] = None,
    ):
        if package is None:
            frame = inspect.currentframe()
            try:
                caller_globals = frame.f_back.f_globals  # type: ignore
                package = caller_globals.get("__package__") or caller_globals.get(
                    "__name__"
                )
            finally:
                del frame

        super().__init__(bean_factory)
        self.package = package
        self.resources = list(resources)
        self.load_bean_definitions()
        if refresh:
            self.refresh()

    def load_bean_definitions(self) -> int:
        assert self.package, "A package is required to load class path resources"
        return sum(
            self.reader.load_from_resource(self.package, resource)
            for resource in self.resources
        )
