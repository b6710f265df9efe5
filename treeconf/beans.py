from __future__ import annotations

import importlib
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Type

from .declaration import BeanDeclaration, Multiple, NestedDeclaration, Single
from .exceptions import ConfigurationRuntimeError

logger = logging.getLogger(__name__)


class BeanFactory(ABC):
    """Creates bean instances from declarations."""

    @abstractmethod
    def create_bean(
        self,
        bean_class: Type[Any],
        declaration: BeanDeclaration,
        parameter: Any | None,
    ) -> Any:
        raise NotImplementedError

    @property
    def default_bean_class(self) -> Type[Any] | None:
        """Class to use if neither the declaration nor the caller names one."""
        return None


class DefaultBeanFactory(BeanFactory):
    """
    Instantiates the bean class without arguments and initializes the
    instance from the declaration (see BeanHelper.initialize_bean).
    """

    def __init__(self, helper: "BeanHelper"):
        self._helper = helper

    def create_bean(
        self,
        bean_class: Type[Any],
        declaration: BeanDeclaration,
        parameter: Any | None,
    ) -> Any:
        bean = bean_class()
        self._helper.initialize_bean(bean, declaration)
        return bean


class BeanHelper:
    """
    Creates beans from BeanDeclaration objects.

    Factories can be registered under a name and selected by a declaration's
    ``config-factory`` attribute; all other declarations use the default
    factory.

    Typical usage:

        config = ConfigManager([FileSource("beans.xml")]).load_hierarchical()
        helper = BeanHelper()
        person = helper.create_bean(XMLBeanDeclaration.from_key(config, "personBean"))
    """

    def __init__(self, default_factory: BeanFactory | None = None):
        self._factories: Dict[str, BeanFactory] = {}
        self.default_bean_factory = default_factory or DefaultBeanFactory(self)

    def register_bean_factory(self, name: str, factory: BeanFactory) -> None:
        if not name:
            raise ValueError("Bean factory name must not be empty.")
        if factory is None:
            raise ValueError("Bean factory must not be None.")
        self._factories[name] = factory

    def deregister_bean_factory(self, name: str) -> BeanFactory | None:
        """Remove and return the factory registered under name, if any."""
        return self._factories.pop(name, None)

    def registered_factory_names(self) -> List[str]:
        return list(self._factories)

    def create_bean(
        self,
        declaration: BeanDeclaration,
        default_class: Type[Any] | None = None,
        parameter: Any | None = None,
    ) -> Any:
        """
        Create the bean described by declaration.

        The class is taken from the declaration, then default_class, then the
        factory's default class. A factory parameter in the declaration takes
        precedence over parameter.

        :raises ConfigurationRuntimeError: if no class can be determined, the
            class cannot be imported or the factory is unknown.
        """
        if declaration is None:
            raise ValueError("Bean declaration must not be None.")

        factory = self._fetch_bean_factory(declaration)
        bean_class = self._fetch_bean_class(declaration, default_class, factory)
        factory_parameter = declaration.bean_factory_parameter
        if factory_parameter is None:
            factory_parameter = parameter

        logger.debug("Creating bean of class %s", bean_class.__qualname__)
        return factory.create_bean(bean_class, declaration, factory_parameter)

    def initialize_bean(self, bean: Any, declaration: BeanDeclaration) -> None:
        """Set simple and complex properties of bean from declaration."""
        for name, value in declaration.bean_properties.items():
            _set_property(bean, name, value)

        for name, nested in declaration.nested_bean_declarations.items():
            _set_property(bean, name, self._create_nested(nested))

    def _create_nested(self, nested: NestedDeclaration) -> Any:
        match nested:
            case Single(declaration=declaration):
                return self.create_bean(declaration)
            case Multiple(declarations=declarations):
                return [self.create_bean(d) for d in declarations]
        raise TypeError(f"Unsupported nested declaration: {nested!r}")

    def _fetch_bean_factory(self, declaration: BeanDeclaration) -> BeanFactory:
        name = declaration.bean_factory_name
        if name is None:
            return self.default_bean_factory
        try:
            return self._factories[name]
        except KeyError as exc:
            raise ConfigurationRuntimeError(f"Unknown bean factory: {name}") from exc

    def _fetch_bean_class(
        self,
        declaration: BeanDeclaration,
        default_class: Type[Any] | None,
        factory: BeanFactory,
    ) -> Type[Any]:
        class_name = declaration.bean_class_name
        if class_name is not None:
            return load_class(class_name)
        if default_class is not None:
            return default_class
        if factory.default_bean_class is not None:
            return factory.default_bean_class
        raise ConfigurationRuntimeError("Bean class is not specified!")


def load_class(path: str) -> Type[Any]:
    """Import a class given as ``package.module.ClassName``."""
    module_path, _, class_name = path.rpartition(".")
    if not module_path:
        raise ConfigurationRuntimeError(f"Bean class name must be a dotted path: {path!r}")
    try:
        module = importlib.import_module(module_path)
        return getattr(module, class_name)
    except (ImportError, AttributeError) as exc:
        raise ConfigurationRuntimeError(f"Unable to load bean class {path!r}: {exc}") from exc


def _set_property(bean: Any, name: str, value: Any) -> None:
    try:
        setattr(bean, name, value)
    except (AttributeError, TypeError) as exc:
        raise ConfigurationRuntimeError(
            f"Cannot set property {name!r} on {type(bean).__qualname__}: {exc}"
        ) from exc
