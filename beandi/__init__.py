from beandi.abc import BeanFactoryProtocol as BeanFactoryProtocol
from beandi.common import to_standard_param_name as to_standard_param_name
from beandi.context import ApplicationContext as ApplicationContext
from beandi.context import (
    ClassPathXmlApplicationContext as ClassPathXmlApplicationContext,
)
from beandi.context import (
    FileSystemXmlApplicationContext as FileSystemXmlApplicationContext,
)
from beandi.context import GenericXmlApplicationContext as GenericXmlApplicationContext
from beandi.definitions import *  # type: ignore
from beandi.errors import *  # type: ignore
from beandi.factory import BeanFactory as BeanFactory
from beandi.xml_reader import XmlBeanDefinitionReader as XmlBeanDefinitionReader
